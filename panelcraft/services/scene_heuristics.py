"""
Keyword heuristics that suggest lighting and composition phrases for a panel.

Rules are scanned top to bottom and the first match wins, so table order is
part of the behavior.
"""

from __future__ import annotations

from panelcraft.schemas import StyleGuide

# (keywords, lighting phrase) matched against the lowercased panel description
_LIGHTING_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("night", "dark"), "low key lighting, moonlight, dramatic shadows"),
    (("morning", "sunrise"), "golden hour, warm light, soft shadows"),
    (("sunset", "evening"), "golden hour, warm sunset light, long shadows"),
    (("dramatic", "tense"), "chiaroscuro lighting, high contrast, dramatic shadows"),
)
DEFAULT_LIGHTING = "natural lighting, soft light"

# (substrings, composition phrase) matched against the lowercased shot type
_COMPOSITION_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("close-up",), "centered composition, shallow depth of field, bokeh background"),
    (("wide", "establishing"), "rule of thirds, depth layers, leading lines"),
    (("over-the-shoulder",), "foreground element, depth of field, frame within frame"),
    (("two-shot",), "balanced composition, negative space, eye line match"),
)
DEFAULT_COMPOSITION = "rule of thirds, balanced composition"


def select_lighting(description: str, style_guide: StyleGuide | None = None) -> str:
    """Pick a lighting phrase from time-of-day and tension cues.

    Falls back to the style guide's own lighting, then to soft natural light.
    """
    text = (description or "").lower()
    for keywords, phrase in _LIGHTING_RULES:
        if any(keyword in text for keyword in keywords):
            return phrase
    if style_guide is not None and style_guide.cinematography.lighting:
        return style_guide.cinematography.lighting
    return DEFAULT_LIGHTING


def select_composition(shot_type: str | None) -> str:
    text = (shot_type or "").lower()
    for needles, phrase in _COMPOSITION_RULES:
        if any(needle in text for needle in needles):
            return phrase
    return DEFAULT_COMPOSITION
