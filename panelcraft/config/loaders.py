from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from panelcraft.core.exceptions import ConfigurationError
from panelcraft.schemas import Quality, RenderStyle, StyleGuide


class StylePresetsV1(BaseModel):
    version: str
    presets: dict[str, StyleGuide] = Field(min_length=1)


class ModelProfile(BaseModel):
    max_size: str
    supports_seed: bool
    supports_negative_prompt: bool
    max_prompt_length: int = Field(ge=4)
    batch_size: int = Field(default=1, ge=1)
    # Names resolved against the transform registry in model_optimization
    transforms: list[str] = Field(default_factory=list)


class ModelProfilesV1(BaseModel):
    version: str
    profiles: dict[str, ModelProfile]
    emphasis_terms: list[str] = Field(default_factory=list)
    emphasis_weight: float = 1.2
    midjourney_suffix: str = ""


class CameraSetup(BaseModel):
    camera: str
    lens: str
    settings: str


class CameraSetupsV1(BaseModel):
    version: str
    fallback_render_style: RenderStyle
    setups: dict[RenderStyle, CameraSetup]


class QualityPreset(BaseModel):
    steps: int = Field(ge=1)
    guidance_scale: float = Field(gt=0.0)
    size: str
    quality: str


class QualityPresetsV1(BaseModel):
    version: str
    presets: dict[Quality, QualityPreset]


# Global config version counter (incremented on cache clear)
_config_version = 0


def clear_config_cache():
    """Clear all cached config data. Call this to force config reload."""
    global _config_version
    _config_version += 1
    load_style_presets_v1.cache_clear()
    load_model_profiles_v1.cache_clear()
    load_camera_setups_v1.cache_clear()
    load_quality_presets_v1.cache_clear()


def get_config_version() -> int:
    """Get current config version (incremented on each cache clear)."""
    return _config_version


def get_style_preset(preset_key: str) -> StyleGuide:
    presets = load_style_presets_v1().presets
    if preset_key not in presets:
        raise KeyError(f"Unknown style preset: {preset_key}")
    return presets[preset_key]


def get_model_profile(model: str) -> ModelProfile:
    profiles = load_model_profiles_v1().profiles
    if model not in profiles:
        raise KeyError(f"Unknown model: {model}")
    return profiles[model]


def get_camera_setup(render_style: str) -> CameraSetup:
    setups = load_camera_setups_v1()
    return setups.setups.get(render_style) or setups.setups[setups.fallback_render_style]


def get_quality_preset(quality: str) -> QualityPreset:
    presets = load_quality_presets_v1().presets
    if quality not in presets:
        raise KeyError(f"Unknown quality preset: {quality}")
    return presets[quality]


# ============================================================================
# Config Loaders
# ============================================================================

_CONFIG_DIR = Path(__file__).parent


def _load_json(filename: str, model: type[BaseModel]):
    path = _CONFIG_DIR / filename
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config file {filename}: {exc}") from exc


@lru_cache(maxsize=1)
def load_style_presets_v1() -> StylePresetsV1:
    """Load the read-only style guide presets."""
    return _load_json("style_presets_v1.json", StylePresetsV1)


@lru_cache(maxsize=1)
def load_model_profiles_v1() -> ModelProfilesV1:
    """Load per-model prompt constraints."""
    return _load_json("model_profiles_v1.json", ModelProfilesV1)


@lru_cache(maxsize=1)
def load_camera_setups_v1() -> CameraSetupsV1:
    """Load camera/lens suggestions keyed by render style."""
    return _load_json("camera_setups_v1.json", CameraSetupsV1)


@lru_cache(maxsize=1)
def load_quality_presets_v1() -> QualityPresetsV1:
    """Load sampler presets keyed by style guide quality."""
    return _load_json("quality_presets_v1.json", QualityPresetsV1)
