"""
Scene-text character consistency.

Finds character names in free-form panel text and turns them into prompt
material: inline annotations, a requirements block for the mentioned
characters, storyboard-wide instructions, and a validation report.

Names match case-insensitively. A multi-word name also matches by its first
word, and by its last word when it has exactly two. Hangul names also match
with honorific suffixes. At any position the longest pattern wins.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from panelcraft.prompts.loader import get_prompt_data, render_prompt
from panelcraft.schemas import CharacterEntity, CharacterMention, ConsistencyReport, Panel
from panelcraft.services.characters import hair_phrase

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_LIMIT = 50

_HANGUL = re.compile(r"[가-힣]")


def name_patterns(name: str) -> list[str]:
    """Spellings under which ``name`` is recognized in scene text."""
    name = name.strip()
    if not name:
        return []
    patterns = [name]
    words = name.split()
    if len(words) > 1:
        patterns.append(words[0])
        if len(words) == 2:
            patterns.append(words[1])
    if _HANGUL.search(name):
        patterns.extend(f"{name}{suffix}" for suffix in get_prompt_data("name_honorifics"))
    return list(dict.fromkeys(patterns))


def _pattern_source(pattern: str) -> str:
    escaped = re.escape(pattern)
    # Korean particles attach directly to the name
    if _HANGUL.search(pattern):
        return escaped
    return rf"(?<!\w){escaped}(?!\w)"


def _mention_matcher(characters: Sequence[CharacterEntity]) -> tuple[re.Pattern | None, dict[str, CharacterEntity]]:
    """One alternation over every pattern, longest first, with a group per pattern."""
    owners_by_pattern: dict[str, tuple[str, CharacterEntity]] = {}
    by_length = sorted(characters, key=lambda c: len(c.name), reverse=True)
    # Full names claim their spelling before any other character's aliases
    for character in by_length:
        full_name = character.name.strip()
        if full_name:
            owners_by_pattern.setdefault(full_name.lower(), (full_name, character))
    for character in by_length:
        for pattern in name_patterns(character.name):
            owners_by_pattern.setdefault(pattern.lower(), (pattern, character))

    if not owners_by_pattern:
        return None, {}

    alternatives: list[str] = []
    owners: dict[str, CharacterEntity] = {}
    ordered = sorted(owners_by_pattern.values(), key=lambda item: len(item[0]), reverse=True)
    for index, (pattern, character) in enumerate(ordered):
        group = f"m{index}"
        alternatives.append(f"(?P<{group}>{_pattern_source(pattern)})")
        owners[group] = character
    return re.compile("|".join(alternatives), re.IGNORECASE), owners


def detect_mentions(text: str, characters: Sequence[CharacterEntity]) -> list[CharacterMention]:
    """Non-overlapping character mentions in ``text``, in reading order."""
    matcher, owners = _mention_matcher(characters)
    if matcher is None or not text:
        return []
    mentions: list[CharacterMention] = []
    for match in matcher.finditer(text):
        owner = owners[match.lastgroup]
        mentions.append(
            CharacterMention(
                character_id=owner.id,
                character_name=owner.name,
                start=match.start(),
                end=match.end(),
            )
        )
    return mentions


def short_description(character: CharacterEntity) -> str:
    """Age, hair and first distinctive feature; a clipped description otherwise."""
    traits = character.traits
    parts: list[str] = []
    if traits.age:
        parts.append(f"{traits.age} years old")
    hair = hair_phrase(traits)
    if hair:
        parts.append(f"{hair} hair")
    features = [f for f in traits.distinctive_features if f]
    if features:
        parts.append(features[0])
    if parts:
        return ", ".join(parts)
    fallback = character.visual_description or character.description
    return fallback[:SHORT_DESCRIPTION_LIMIT].strip()


def annotate_mentions(text: str, characters: Sequence[CharacterEntity]) -> str:
    """Follow each name mention with a short description in parentheses."""
    matcher, owners = _mention_matcher(characters)
    if matcher is None:
        return text

    def _annotate(match: re.Match) -> str:
        summary = short_description(owners[match.lastgroup])
        if not summary:
            return match.group(0)
        return render_prompt("mention_annotation", mention=match.group(0), summary=summary)

    return matcher.sub(_annotate, text)


def _template_entry(character: CharacterEntity) -> dict[str, Any]:
    return {
        "name": character.name,
        "physical": character.visual_description or character.description,
        "clothing": character.traits.clothing_style,
        "markers": [f for f in character.traits.distinctive_features if f],
    }


def inject_character_details(scene_description: str, characters: Sequence[CharacterEntity]) -> str:
    """Scene text followed by a requirements block for the characters it mentions.

    Mentioned characters are listed in argument order. Without characters the
    text is returned unchanged.
    """
    if not characters:
        return scene_description
    mentioned = {mention.character_id for mention in detect_mentions(scene_description, characters)}
    return render_prompt(
        "prompt_scene_with_characters",
        validate=True,
        scene=scene_description,
        characters=[_template_entry(c) for c in characters if c.id in mentioned],
    )


def consistency_instructions(characters: Sequence[CharacterEntity]) -> str:
    if not characters:
        return ""
    return render_prompt(
        "prompt_consistency_instructions",
        validate=True,
        characters=[_template_entry(c) for c in characters],
    )


def validate_consistency(panels: Sequence[Panel], characters: Sequence[CharacterEntity]) -> ConsistencyReport:
    """Check that panel text names its characters and that characters are fully described.

    Reported issues:
    - no characters at all (the report stops there)
    - an opening panel that mentions nobody
    - a panel whose ``character_ids`` name a character its text never mentions
    - a character without any physical description, or without clothing
    """
    report = ConsistencyReport()
    if not characters:
        report.issues.append("No characters defined for consistency checking")
        report.suggestions.append("Define characters before generating storyboard")
        report.is_consistent = False
        return report

    by_id = {character.id: character for character in characters}
    for number, panel in enumerate(panels, start=1):
        text = panel.description or panel.visual_prompt
        mentioned = {mention.character_id for mention in detect_mentions(text, characters)}
        if number == 1 and not mentioned:
            report.issues.append("Panel 1: No characters detected in opening panel")
            report.suggestions.append("Ensure main characters are introduced in the first panel")
        for character_id in panel.character_ids:
            character = by_id.get(character_id)
            if character is not None and character_id not in mentioned:
                report.issues.append(f"Panel {number}: {character.name} is assigned but not mentioned")

    for character in characters:
        if not (character.visual_description or character.description):
            report.issues.append(f"{character.name}: Missing physical description")
            report.suggestions.append(f"Add physical description for {character.name}")
        if not character.traits.clothing_style:
            report.issues.append(f"{character.name}: Missing clothing description")
            report.suggestions.append(f"Add clothing description for {character.name}")

    report.is_consistent = not report.issues
    logger.info("consistency_validated panels=%s issues=%s", len(panels), len(report.issues))
    return report
