"""
Style guide catalog.

Holds project style guides, creates them from the read-only preset catalog,
and blends two guides. Blending is asymmetric: list fields are
unioned or sliced, text fields are joined with fixed connectives, and
technical specs come wholesale from one side.
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from typing import Any, Mapping

from pydantic.alias_generators import to_camel

from panelcraft.config.loaders import CameraSetup, get_camera_setup, get_style_preset, load_style_presets_v1
from panelcraft.core.exceptions import NotFoundError
from panelcraft.schemas import ArtDirection, Cinematography, StyleGuide, TechnicalSpecs
from panelcraft.services.store import InMemoryStore

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

# (mood keyword of the current guide, mood keyword of a complementary preset)
_MOOD_AFFINITIES = (
    ("dramatic", "intense"),
    ("dark", "mysterious"),
    ("epic", "grand"),
)


def _generate_id(name: str, prefix: str = "style") -> str:
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return f"{prefix}_{slug}_{uuid.uuid4().hex[:8]}"


def _union(first: list[str], second: list[str]) -> list[str]:
    return list(dict.fromkeys([*first, *second]))


def blend_style_guides(a: StyleGuide, b: StyleGuide, ratio: float = 0.5) -> StyleGuide:
    """Blend two guides into a new, unsaved guide.

    ``ratio`` weights ``a``: the palette keeps the first ``floor(len(a) * ratio)``
    colors of ``a`` followed by the first ``floor(len(b) * (1 - ratio))`` colors
    of ``b``. Technical specs are copied from ``a`` when ``ratio > 0.5`` and from
    ``b`` otherwise.
    """
    if not 0.0 <= ratio <= 1.0:
        raise ValueError("ratio must be between 0 and 1")

    palette_a = a.cinematography.color_palette
    palette_b = b.cinematography.color_palette
    palette = [
        *palette_a[: math.floor(len(palette_a) * ratio)],
        *palette_b[: math.floor(len(palette_b) * (1 - ratio))],
    ]

    cinematography = Cinematography(
        shot_types=_union(a.cinematography.shot_types, b.cinematography.shot_types),
        camera_angles=_union(a.cinematography.camera_angles, b.cinematography.camera_angles),
        lighting=f"{a.cinematography.lighting} mixed with {b.cinematography.lighting}",
        color_palette=palette,
        mood=f"{a.cinematography.mood} meets {b.cinematography.mood}",
        atmosphere=f"{a.cinematography.atmosphere} and {b.cinematography.atmosphere}",
    )
    art_direction = ArtDirection(
        visual_style=f"{a.art_direction.visual_style} with {b.art_direction.visual_style} influences",
        reference_artists=[*a.art_direction.reference_artists, *b.art_direction.reference_artists],
        reference_movies=[*a.art_direction.reference_movies, *b.art_direction.reference_movies],
        period=a.art_direction.period or b.art_direction.period,
        location=a.art_direction.location or b.art_direction.location,
        environment=a.art_direction.environment or b.art_direction.environment,
    )
    specs_source = a if ratio > 0.5 else b

    return StyleGuide(
        id=f"blend_{uuid.uuid4().hex[:12]}",
        name=f"{a.name} × {b.name}",
        description=f"Blend of {a.name} and {b.name}",
        cinematography=cinematography,
        art_direction=art_direction,
        technical_specs=specs_source.technical_specs.model_copy(deep=True),
    )


class StyleGuideCatalog:
    def __init__(self, store: InMemoryStore[StyleGuide] | None = None):
        self.store = store if store is not None else InMemoryStore(StyleGuide)

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    def list_presets(self) -> dict[str, StyleGuide]:
        """Return copies of the preset templates keyed by preset key."""
        presets = load_style_presets_v1().presets
        return {key: preset.model_copy(deep=True) for key, preset in presets.items()}

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, name: str, description: str = "", preset_key: str | None = None) -> StyleGuide:
        """Create and store a guide, cloned from ``preset_key`` when it is known.

        Unknown preset keys fall back to the empty skeleton.
        """
        guide_id = _generate_id(name)
        preset: StyleGuide | None = None
        if preset_key:
            try:
                preset = get_style_preset(preset_key)
            except KeyError:
                logger.warning("style_preset_unknown preset_key=%s", preset_key)

        if preset is not None:
            guide = preset.model_copy(deep=True, update={"id": guide_id, "name": name, "description": description})
        else:
            guide = StyleGuide(
                id=guide_id,
                name=name,
                description=description,
                cinematography=Cinematography(),
                art_direction=ArtDirection(),
                technical_specs=TechnicalSpecs(),
            )

        self.store.put(guide)
        logger.info("style_guide_created style_guide_id=%s preset_key=%s", guide.id, preset_key if preset else None)
        return guide

    def get(self, guide_id: str) -> StyleGuide:
        guide = self.store.get(guide_id)
        if guide is None:
            raise NotFoundError("StyleGuide", guide_id)
        return guide

    def list(self) -> list[StyleGuide]:
        return self.store.list()

    def update(self, guide_id: str, updates: Mapping[str, Any]) -> StyleGuide:
        """Replace top-level sections of a guide; the id never changes."""
        current = self.get(guide_id)
        merged = {
            **current.model_dump(by_alias=True),
            **{(to_camel(k) if "_" in k else k): v for k, v in updates.items() if k != "id"},
        }
        updated = StyleGuide.model_validate(merged)
        self.store.put(updated)
        logger.info("style_guide_updated style_guide_id=%s", guide_id)
        return updated

    def delete(self, guide_id: str) -> StyleGuide:
        guide = self.store.delete(guide_id)
        if guide is None:
            raise NotFoundError("StyleGuide", guide_id)
        return guide

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def blend(self, a: StyleGuide, b: StyleGuide, ratio: float = 0.5) -> StyleGuide:
        return blend_style_guides(a, b, ratio)

    def camera_setup_for(self, guide: StyleGuide, shot_type: str | None = None) -> CameraSetup:
        # shot_type is accepted for callers that pass panel metadata; the lookup
        # is keyed by render style only.
        return get_camera_setup(guide.technical_specs.render_style).model_copy()

    def color_grading(self, guide: StyleGuide, intensity: float = 1.0) -> str:
        colors = guide.cinematography.color_palette
        if not colors:
            return ""
        parts = [f"color grading with {colors[0]} shadows"]
        if len(colors) > 1:
            parts.append(f"{colors[1]} midtones")
        if len(colors) > 2:
            parts.append(f"{colors[2]} highlights")
        parts.append(f"intensity {intensity}")
        return ", ".join(parts)

    def lighting_setup(self, guide: StyleGuide) -> str:
        parts = [guide.cinematography.lighting]
        if guide.cinematography.mood:
            parts.append(f"creating {guide.cinematography.mood} mood")
        if guide.art_direction.period:
            parts.append(f"period-appropriate lighting for {guide.art_direction.period}")
        return ", ".join(p for p in parts if p)

    def suggest_complementary(self, guide: StyleGuide) -> list[StyleGuide]:
        """Presets whose mood complements ``guide``'s mood, at most three."""
        current_mood = guide.cinematography.mood.lower()
        suggestions: list[StyleGuide] = []
        for preset in self.list_presets().values():
            if preset.id == guide.id:
                continue
            preset_mood = preset.cinematography.mood.lower()
            if any(mine in current_mood and theirs in preset_mood for mine, theirs in _MOOD_AFFINITIES):
                suggestions.append(preset)
        return suggestions[:MAX_SUGGESTIONS]

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def export_json(self, guide_id: str) -> str:
        return self.get(guide_id).model_dump_json(by_alias=True, indent=2)

    def import_json(self, payload: str) -> StyleGuide:
        guide = StyleGuide.model_validate_json(payload)
        self.store.put(guide)
        logger.info("style_guide_imported style_guide_id=%s", guide.id)
        return guide
