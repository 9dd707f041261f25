"""
Prompt composition.

``PromptComposer.compose`` turns a panel, its characters, a style guide and a
set of enhancement flags into a positive prompt, a negative prompt and a seed.

Assembly stages (each appends zero or more phrases):

1. Base visual prompt (always first)
2. Character consistency descriptors and trait values
3. Shot type, camera angle, camera movement
4. Style guide art direction
5. Style guide cinematography
6. Heuristic lighting
7. Heuristic composition
8. Render-style and quality vocabulary
9. Custom modifiers
10. Aspect ratio

The assembled phrases are then deduplicated and regrouped by
``optimize_prompt`` so style, quality and character signal come first and
camera/technical terms come last.
"""

from __future__ import annotations

import logging
from typing import Sequence

from panelcraft.core.exceptions import EmptyPromptError
from panelcraft.core.metrics import record_compose_failure, record_prompt_composed
from panelcraft.core.request_context import log_context
from panelcraft.core.telemetry import trace_span
from panelcraft.core.vocabulary import STATIC_MOVEMENT
from panelcraft.prompts.loader import get_prompt_data, render_prompt, render_string
from panelcraft.schemas import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_QUALITY,
    DEFAULT_RENDER_STYLE,
    CharacterEntity,
    CompositionResult,
    EnhancementFlags,
    GenerationSettings,
    Panel,
    PromptQualityReport,
    StyleGuide,
    VariationType,
)
from panelcraft.services.characters import trait_values
from panelcraft.services.scene_heuristics import select_composition, select_lighting
from panelcraft.services.seeds import SeededRandomSource

logger = logging.getLogger(__name__)

# Bucket keywords for optimize_prompt, scanned in this order.
PRIORITY_TERMS = ("photorealistic", "cinematic", "masterpiece")
CHARACTER_TERMS = ("character", "person", "face")
SETTING_TERMS = ("location", "environment", "background")
TECHNICAL_TERMS = ("shot", "angle", "lighting", "quality", "resolution")

_BUCKET_SCAN_ORDER = (
    ("priority", PRIORITY_TERMS),
    ("character", CHARACTER_TERMS),
    ("setting", SETTING_TERMS),
    ("technical", TECHNICAL_TERMS),
)
_BUCKET_OUTPUT_ORDER = ("priority", "character", "setting", "other", "technical")


def _bucket_of(phrase: str) -> str:
    for bucket, terms in _BUCKET_SCAN_ORDER:
        if any(term in phrase for term in terms):
            return bucket
    return "other"


def optimize_prompt(phrases: Sequence[str]) -> str:
    """Deduplicate phrases and regroup them; order within a group is preserved.

    A phrase lands only in the first group it matches, scanning priority,
    character, setting, technical. Output order is priority, character,
    setting, other, technical.
    """
    unique = list(dict.fromkeys(p for p in phrases if p and p.strip()))
    buckets: dict[str, list[str]] = {name: [] for name in _BUCKET_OUTPUT_ORDER}
    for phrase in unique:
        buckets[_bucket_of(phrase)].append(phrase)
    return ", ".join(phrase for name in _BUCKET_OUTPUT_ORDER for phrase in buckets[name])


def build_negative_prompt(render_style: str | None = None, custom_negative: str | None = None) -> str:
    """Default defect terms adjusted for the render style, plus user additions.

    Computed on every call so a changed render style is always reflected.
    """
    terms = list(get_prompt_data("negative_prompt_defaults"))
    rule = get_prompt_data("negative_prompt_rules").get(render_style or "")
    if rule:
        excluded = rule.get("exclude_containing") or []
        terms = [t for t in terms if not any(x in t for x in excluded)]
        terms.extend(rule.get("append") or [])

    if custom_negative:
        terms.extend(t.strip() for t in custom_negative.split(","))

    return ", ".join(dict.fromkeys(t for t in terms if t))


def shot_phrases(panel: Panel) -> list[str]:
    phrases: list[str] = []
    if panel.shot_type:
        phrases.append(panel.shot_type.lower())
    if panel.camera_angle:
        phrases.append(f"{panel.camera_angle} angle")
    if panel.camera_movement and panel.camera_movement != STATIC_MOVEMENT:
        phrases.append(f"{panel.camera_movement} motion blur")
    return phrases


def art_direction_phrases(style_guide: StyleGuide) -> list[str]:
    art = style_guide.art_direction
    phrases: list[str] = []
    if art.visual_style:
        phrases.append(art.visual_style)
    if art.reference_artists:
        phrases.append(f"in the style of {' and '.join(art.reference_artists)}")
    if art.period:
        phrases.append(art.period)
    if art.location:
        phrases.append(art.location)
    return phrases


def cinematography_phrases(style_guide: StyleGuide) -> list[str]:
    cine = style_guide.cinematography
    phrases: list[str] = []
    if cine.lighting:
        phrases.append(cine.lighting)
    if cine.mood:
        phrases.append(f"{cine.mood} mood")
    if cine.atmosphere:
        phrases.append(f"{cine.atmosphere} atmosphere")
    if cine.color_palette:
        phrases.append(f"color palette: {', '.join(cine.color_palette)}")
    return phrases


def technical_phrases(style_guide: StyleGuide | None) -> list[str]:
    render_style = style_guide.technical_specs.render_style if style_guide else DEFAULT_RENDER_STYLE
    quality = style_guide.technical_specs.quality if style_guide else DEFAULT_QUALITY
    render_modifiers = get_prompt_data("render_style_modifiers").get(render_style) or []
    quality_modifiers = get_prompt_data("quality_modifiers").get(quality) or []
    return [*render_modifiers, *quality_modifiers]


class PromptComposer:
    """Builds generation prompts for storyboard panels.

    ``compose`` only reads its inputs. When ``seed_source`` is given it is
    advanced for panels that resolve no seed otherwise, which makes those
    calls stateful.
    """

    def __init__(self, seed_source: SeededRandomSource | None = None):
        self.seed_source = seed_source

    def compose(
        self,
        panel: Panel,
        characters: Sequence[CharacterEntity] | None = None,
        style_guide: StyleGuide | None = None,
        flags: EnhancementFlags | None = None,
        settings: GenerationSettings | None = None,
    ) -> CompositionResult:
        """Compose the prompt triple for one panel.

        Missing characters, style guide or flags only skip their stages.

        Raises:
            EmptyPromptError: If the panel has no visual prompt and no description
        """
        flags = flags or EnhancementFlags()
        settings = settings or GenerationSettings()

        base = panel.visual_prompt.strip() or panel.description.strip()
        if not base:
            record_compose_failure("empty_prompt")
            raise EmptyPromptError(panel.id)

        render_style = style_guide.technical_specs.render_style if style_guide else None
        with log_context(panel_id=panel.id), trace_span("compose_prompt", panel_id=panel.id, model=settings.model):
            phrases: list[str] = [base]
            seed = settings.seed

            if flags.use_character_reference:
                seed = self._append_character_phrases(phrases, panel, characters or [], seed)

            phrases.extend(shot_phrases(panel))

            if flags.use_style_guide and style_guide is not None:
                phrases.extend(art_direction_phrases(style_guide))

            if flags.add_cinematography and style_guide is not None:
                phrases.extend(cinematography_phrases(style_guide))

            if flags.add_lighting:
                phrases.append(select_lighting(panel.description, style_guide))

            if flags.add_composition:
                phrases.append(select_composition(panel.shot_type))

            if flags.add_technical_details:
                phrases.extend(technical_phrases(style_guide))

            phrases.extend(flags.custom_modifiers)

            aspect_ratio = style_guide.technical_specs.aspect_ratio if style_guide else DEFAULT_ASPECT_RATIO
            phrases.append(f"aspect ratio {aspect_ratio}")

            if seed is None and self.seed_source is not None:
                seed = self.seed_source.next()
                logger.info("fallback_seed_drawn seed=%s", seed)

            prompt = optimize_prompt(phrases)
            negative_prompt = build_negative_prompt(render_style, settings.negative_prompt)

            record_prompt_composed(render_style or "none")
            logger.debug("prompt_composed phrases=%s length=%s seed=%s", len(phrases), len(prompt), seed)

        return CompositionResult(
            prompt=prompt,
            negative_prompt=negative_prompt,
            seed=seed,
            phrases=[p for p in phrases if p and p.strip()],
        )

    def _append_character_phrases(
        self,
        phrases: list[str],
        panel: Panel,
        characters: Sequence[CharacterEntity],
        seed: int | None,
    ) -> int | None:
        referenced = set(panel.character_ids)
        present = [c for c in characters if c.id in referenced]

        missing = referenced - {c.id for c in present}
        if missing:
            logger.warning("panel_characters_missing character_ids=%s", ",".join(sorted(missing)))

        for character in present:
            phrases.append(character.consistency_descriptor)
            values = trait_values(character.traits)
            if values:
                phrases.append(", ".join(values))
            # First character with a seed wins unless settings pinned one
            if seed is None and character.seed is not None:
                seed = character.seed
        return seed

    # Delegates kept on the composer so callers need a single object.

    def optimize_prompt(self, phrases: Sequence[str]) -> str:
        return optimize_prompt(phrases)

    def build_negative_prompt(self, render_style: str | None = None, custom_negative: str | None = None) -> str:
        return build_negative_prompt(render_style, custom_negative)

    def batch_variations(
        self,
        base_prompt: str,
        count: int = 4,
        variation_type: VariationType = "angle",
    ) -> list[str]:
        """Alternative takes of ``base_prompt`` (at most one per known variant)."""
        variations = get_prompt_data("batch_variations")
        if variation_type not in variations:
            raise ValueError(f"Unknown variation type: {variation_type}")
        entry = variations[variation_type]
        return [
            render_prompt(
                "prompt_variation",
                base_prompt=base_prompt,
                suffix=render_string(entry["suffix"], value=value),
            )
            for value in entry["values"][: max(count, 0)]
        ]

    def analyze_prompt_quality(self, prompt: str) -> PromptQualityReport:
        """Rule-based checklist score for a prompt, 0-100."""
        strengths: list[str] = []
        improvements: list[str] = []
        score = 50

        if "shot" in prompt or "angle" in prompt:
            strengths.append("Includes camera information")
            score += 10
        else:
            improvements.append("Add shot type or camera angle")

        if "lighting" in prompt:
            strengths.append("Specifies lighting")
            score += 10
        else:
            improvements.append("Specify lighting conditions")

        if "mood" in prompt or "atmosphere" in prompt:
            strengths.append("Defines mood/atmosphere")
            score += 10
        else:
            improvements.append("Add mood or atmosphere descriptors")

        if 50 < len(prompt) < 500:
            strengths.append("Good prompt length")
            score += 10
        elif len(prompt) < 50:
            improvements.append("Add more detail to the prompt")
            score -= 10
        else:
            improvements.append("Consider simplifying - prompt may be too long")
            score -= 5

        if "quality" in prompt or "detailed" in prompt:
            strengths.append("Includes quality modifiers")
            score += 10
        else:
            improvements.append("Add quality descriptors")

        return PromptQualityReport(
            score=min(100, max(0, score)),
            strengths=strengths,
            improvements=improvements,
        )
