from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    seed_initial_state: int = Field(default=42, validation_alias="SEED_INITIAL_STATE")
    default_model: str = Field(default="stable-diffusion-xl", validation_alias="DEFAULT_MODEL")

    quality_threshold: float = Field(default=75.0, ge=0.0, le=100.0, validation_alias="QUALITY_THRESHOLD")
    batch_chunk_size: int = Field(default=4, ge=1, validation_alias="BATCH_CHUNK_SIZE")


settings = Settings()
