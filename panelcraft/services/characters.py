"""
Character registry.

Stores characters, derives their visual description and consistency
descriptor from traits, and hands out the per-character seeds that keep a
character recognizable across independently generated panels.

The derived strings are always recomputed from ``name`` + ``traits``; they are
never edited directly.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Mapping

from panelcraft.core.exceptions import NotFoundError
from panelcraft.core.request_context import log_context
from panelcraft.core.settings import settings
from panelcraft.prompts.loader import get_prompt_data, render_prompt
from panelcraft.schemas import CharacterEntity, CharacterTraits, PanelSeed, SceneContext
from panelcraft.services.seeds import SeededRandomSource
from panelcraft.services.store import InMemoryStore

logger = logging.getLogger(__name__)

# Spacing between consecutive panel seeds of one character. Callers
# pre-compute expected seeds with this value.
PANEL_SEED_STRIDE = 10

# Trait attributes in the order their values are emitted.
TRAIT_ORDER = (
    "age",
    "gender",
    "ethnicity",
    "body_type",
    "hair_style",
    "hair_color",
    "eye_color",
    "clothing_style",
)


def hair_phrase(traits: CharacterTraits) -> str | None:
    if traits.hair_style and traits.hair_color:
        return f"{traits.hair_style} {traits.hair_color}"
    return traits.hair_style or traits.hair_color or None


def build_visual_description(traits: CharacterTraits) -> str:
    parts: list[str] = []
    if traits.age:
        parts.append(f"{traits.age} years old")
    if traits.gender:
        parts.append(traits.gender)
    if traits.ethnicity:
        parts.append(traits.ethnicity)
    if traits.body_type:
        parts.append(f"{traits.body_type} build")
    hair = hair_phrase(traits)
    if hair:
        parts.append(f"{hair} hair")
    if traits.eye_color:
        parts.append(f"{traits.eye_color} eyes")
    if traits.clothing_style:
        parts.append(f"wearing {traits.clothing_style}")
    parts.extend(f for f in traits.distinctive_features if f)
    return ", ".join(parts)


def build_consistency_descriptor(name: str, traits: CharacterTraits) -> str:
    """Emphatic identity string tagged with the character's name.

    Clothing is left out; it is supplied per scene by
    ``CharacterRegistry.consistency_prompt_for_scene``.
    """
    parts = [f"[{name.strip().upper()}]"]
    if traits.gender:
        parts.append(f"{traits.gender} person")
    if traits.age:
        parts.append(f"{traits.age} years old")
    if traits.ethnicity:
        parts.append(traits.ethnicity)
    if traits.eye_color:
        parts.append(f"distinctive {traits.eye_color} eyes")
    hair = hair_phrase(traits)
    if hair:
        parts.append(f"always with {hair} hair")
    if traits.body_type:
        parts.append(f"{traits.body_type} physique")
    features = [f for f in traits.distinctive_features if f]
    if features:
        parts.append(f"featuring {' and '.join(features)}")
    parts.extend(get_prompt_data("consistency_enforcement"))
    return ", ".join(parts)


def trait_values(traits: CharacterTraits) -> list[str]:
    """Non-empty trait values in attribute order, distinctive features last, deduplicated."""
    values: list[str] = []
    for attr in TRAIT_ORDER:
        value = getattr(traits, attr)
        if value and value.strip():
            values.append(value.strip())
    values.extend(f.strip() for f in traits.distinctive_features if f and f.strip())
    return list(dict.fromkeys(values))


def _generate_id(name: str) -> str:
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return f"char_{slug}_{uuid.uuid4().hex[:8]}"


def _coerce_traits(traits: CharacterTraits | Mapping | None) -> CharacterTraits:
    if traits is None:
        return CharacterTraits()
    if isinstance(traits, CharacterTraits):
        return traits.model_copy(deep=True)
    return CharacterTraits.model_validate(dict(traits))


def _coerce_scene_context(context: SceneContext | Mapping | None) -> SceneContext:
    if context is None:
        return SceneContext()
    if isinstance(context, SceneContext):
        return context
    return SceneContext.model_validate(dict(context))


class CharacterRegistry:
    """Creates and mutates characters held in a caller-owned store.

    Mutating operations are not synchronized; callers sharing one registry
    across threads must serialize ``create``/``update`` themselves.
    """

    def __init__(
        self,
        store: InMemoryStore[CharacterEntity] | None = None,
        seed_source: SeededRandomSource | None = None,
    ):
        self.store = store if store is not None else InMemoryStore(CharacterEntity)
        self.seed_source = seed_source or SeededRandomSource(settings.seed_initial_state)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, character_id: str) -> CharacterEntity:
        character = self.store.get(character_id)
        if character is None:
            raise NotFoundError("Character", character_id)
        return character

    def list(self) -> list[CharacterEntity]:
        return self.store.list()

    def resolve(self, character_ids: list[str]) -> list[CharacterEntity]:
        """Look up several characters, preserving the given order."""
        return [self.get(character_id) for character_id in character_ids]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        description: str = "",
        traits: CharacterTraits | Mapping | None = None,
        seed: int | None = None,
    ) -> CharacterEntity:
        """Register a new character.

        A seed is drawn from the registry's seed source unless one is supplied.

        Raises:
            ValueError: If ``name`` is blank
        """
        if not name or not name.strip():
            raise ValueError("Character name must not be empty")
        resolved_traits = _coerce_traits(traits)
        character = CharacterEntity(
            id=_generate_id(name),
            name=name.strip(),
            description=description,
            traits=resolved_traits,
            visual_description=build_visual_description(resolved_traits),
            consistency_descriptor=build_consistency_descriptor(name, resolved_traits),
            seed=seed if seed is not None else self.seed_source.next(),
        )
        self.store.put(character)
        with log_context(character_id=character.id):
            logger.info("character_created name=%s seed=%s", character.name, character.seed)
        return character

    def update(
        self,
        character_id: str,
        partial_traits: CharacterTraits | Mapping | None = None,
    ) -> CharacterEntity:
        """Merge ``partial_traits`` over the stored traits and regenerate derived text.

        Only fields present in ``partial_traits`` are applied; an explicit
        ``None`` clears a trait. ``id`` and ``seed`` are preserved.
        """
        character = self.get(character_id)
        if isinstance(partial_traits, CharacterTraits):
            updates = partial_traits.model_dump(exclude_unset=True)
        else:
            updates = CharacterTraits.model_validate(dict(partial_traits or {})).model_dump(exclude_unset=True)

        character.traits = character.traits.model_copy(update=updates)
        character.visual_description = build_visual_description(character.traits)
        character.consistency_descriptor = build_consistency_descriptor(character.name, character.traits)
        self.store.put(character)
        with log_context(character_id=character.id):
            logger.info("character_updated fields=%s", ",".join(sorted(updates)) or "-")
        return character

    def add_reference_image(self, character_id: str, image_handle: str) -> CharacterEntity:
        character = self.get(character_id)
        character.reference_images.append(image_handle)
        self.store.put(character)
        return character

    def delete(self, character_id: str) -> CharacterEntity:
        character = self.store.delete(character_id)
        if character is None:
            raise NotFoundError("Character", character_id)
        return character

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def consistency_prompt_for_scene(
        self,
        character_id: str,
        scene_context: SceneContext | Mapping | None = None,
    ) -> str:
        """Descriptor plus emotion, action, clothing and props, in that order.

        A clothing override replaces the trait-level clothing for this call only.
        """
        character = self.get(character_id)
        context = _coerce_scene_context(scene_context)

        parts = [character.consistency_descriptor]
        if context.emotion:
            parts.append(f"{context.emotion} expression")
        if context.action:
            parts.append(context.action)
        clothing = context.clothing or character.traits.clothing_style
        if clothing:
            parts.append(f"wearing {clothing}")
        props = [p for p in context.props if p]
        if props:
            parts.append(f"with {' and '.join(props)}")
        return ", ".join(parts)

    def reference_sheet_prompt(self, character_id: str) -> str:
        character = self.get(character_id)
        return render_prompt(
            "prompt_reference_sheet",
            validate=True,
            descriptor=character.consistency_descriptor,
            views=get_prompt_data("reference_sheet_views"),
            expressions=get_prompt_data("reference_sheet_expressions"),
        )

    def batch_seeds(self, character_id: str, panel_count: int) -> list[PanelSeed]:
        """Seeds ``base, base + 10, base + 20, ...`` sharing one consistency prompt.

        Raises:
            ValueError: If ``panel_count`` is negative
        """
        if panel_count < 0:
            raise ValueError("panel_count must be >= 0")
        character = self.get(character_id)
        if character.seed is None:
            character.seed = self.seed_source.next()
            self.store.put(character)
            with log_context(character_id=character.id):
                logger.info("character_seed_assigned seed=%s", character.seed)

        return [
            PanelSeed(
                seed=character.seed + index * PANEL_SEED_STRIDE,
                consistency_prompt=character.consistency_descriptor,
            )
            for index in range(panel_count)
        ]

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return self.store.dump_json()

    def import_json(self, payload: str) -> list[CharacterEntity]:
        """Load characters exported by ``export_json``; existing ids are overwritten."""
        characters = self.store.load_json(payload)
        logger.info("characters_imported count=%s", len(characters))
        return characters
