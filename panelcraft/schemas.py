"""Plain-data records exchanged with the surrounding application.

Python attributes are snake_case; JSON uses camelCase aliases so characters and
style guides round-trip verbatim through an external key-value store. Both
spellings are accepted on input.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from panelcraft.core.settings import settings

AspectRatio = Literal["16:9", "21:9", "4:3", "1:1", "9:16"]
Resolution = Literal["1024x576", "1920x1080", "2048x1152", "4096x2304"]
Quality = Literal["draft", "standard", "high", "ultra"]
RenderStyle = Literal["photorealistic", "cinematic", "artistic", "animated", "concept-art"]
VariationType = Literal["angle", "lighting", "mood", "style"]

DEFAULT_RENDER_STYLE: RenderStyle = "cinematic"
DEFAULT_QUALITY: Quality = "high"
DEFAULT_ASPECT_RATIO: AspectRatio = "16:9"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Characters
# ============================================================================


class CharacterTraits(CamelModel):
    age: str | None = None
    gender: str | None = None
    ethnicity: str | None = None
    body_type: str | None = None
    hair_style: str | None = None
    hair_color: str | None = None
    eye_color: str | None = None
    clothing_style: str | None = None
    distinctive_features: list[str] = Field(default_factory=list)


class CharacterEntity(CamelModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    traits: CharacterTraits = Field(default_factory=CharacterTraits)
    visual_description: str = ""
    consistency_descriptor: str = ""
    seed: int | None = None
    reference_images: list[str] = Field(default_factory=list)


class SceneContext(CamelModel):
    """Per-call additions to a character's consistency prompt."""

    emotion: str | None = None
    action: str | None = None
    clothing: str | None = None
    props: list[str] = Field(default_factory=list)


class PanelSeed(CamelModel):
    seed: int
    consistency_prompt: str


# ============================================================================
# Style guides
# ============================================================================


class Cinematography(CamelModel):
    shot_types: list[str] = Field(default_factory=list)
    camera_angles: list[str] = Field(default_factory=list)
    lighting: str = ""
    color_palette: list[str] = Field(default_factory=list)
    mood: str = ""
    atmosphere: str = ""


class ArtDirection(CamelModel):
    visual_style: str = ""
    reference_artists: list[str] = Field(default_factory=list)
    reference_movies: list[str] = Field(default_factory=list)
    period: str = ""
    location: str = ""
    environment: str = ""


class TechnicalSpecs(CamelModel):
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    resolution: Resolution = "1920x1080"
    quality: Quality = DEFAULT_QUALITY
    render_style: RenderStyle = DEFAULT_RENDER_STYLE


class StyleGuide(CamelModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    cinematography: Cinematography = Field(default_factory=Cinematography)
    art_direction: ArtDirection = Field(default_factory=ArtDirection)
    technical_specs: TechnicalSpecs = Field(default_factory=TechnicalSpecs)


# ============================================================================
# Composition inputs and outputs
# ============================================================================


class Panel(CamelModel):
    id: str | None = None
    description: str = ""
    visual_prompt: str = ""
    shot_type: str | None = None
    camera_angle: str | None = None
    camera_movement: str | None = None
    character_ids: list[str] = Field(default_factory=list)


class GenerationSettings(CamelModel):
    model: str = Field(default_factory=lambda: settings.default_model)
    seed: int | None = None
    negative_prompt: str | None = None
    steps: int | None = None
    guidance_scale: float | None = None
    size: str | None = None


class EnhancementFlags(CamelModel):
    use_character_reference: bool = False
    use_style_guide: bool = False
    add_cinematography: bool = False
    add_lighting: bool = False
    add_composition: bool = False
    add_technical_details: bool = False
    custom_modifiers: list[str] = Field(default_factory=list)

    @classmethod
    def all_enabled(cls, custom_modifiers: list[str] | None = None) -> "EnhancementFlags":
        return cls(
            use_character_reference=True,
            use_style_guide=True,
            add_cinematography=True,
            add_lighting=True,
            add_composition=True,
            add_technical_details=True,
            custom_modifiers=list(custom_modifiers or []),
        )


class CompositionResult(CamelModel):
    prompt: str
    negative_prompt: str
    seed: int | None = None
    phrases: list[str] = Field(
        default_factory=list,
        description="Assembled phrases in assembly order, before optimization",
    )


class PromptQualityReport(CamelModel):
    score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class CharacterMention(CamelModel):
    """A character name found in scene text; ``end`` is exclusive."""

    character_id: str
    character_name: str
    start: int
    end: int


class ConsistencyReport(CamelModel):
    is_consistent: bool = True
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


# ============================================================================
# Generation
# ============================================================================


class GenerationResult(CamelModel):
    panel_id: str | None = None
    prompt: str
    enhanced_prompt: str
    negative_prompt: str
    image_url: str
    seed: int | None = None
    model: str
    settings: GenerationSettings
    duration_seconds: float = 0.0
    quality_score: float | None = None
    consistency_score: float | None = None


class PanelOutcome(CamelModel):
    panel_id: str | None = None
    result: GenerationResult | None = None
    error: str | None = None
    error_type: str | None = None
    rejected: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None and not self.rejected
