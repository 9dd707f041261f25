"""
Per-model prompt post-processing.

Each target model has a profile (``config/model_profiles_v1.json``) giving its
maximum prompt length and an ordered list of named transforms. Transforms are
looked up in ``TRANSFORMS`` so supporting a new provider means adding a
profile entry and, if needed, registering one function.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from panelcraft.config.loaders import ModelProfile, get_model_profile as _load_profile, load_model_profiles_v1
from panelcraft.core.exceptions import ConfigurationError, UnsupportedModelError
from panelcraft.core.metrics import record_truncation, record_unsupported_model

logger = logging.getLogger(__name__)

ELLIPSIS = "..."

PromptTransform = Callable[[str], str]

_BRACKETED = re.compile(r"\[.*?\]")
_PARENTHESIZED = re.compile(r"\(.*?\)")
_EMPTY_SEPARATORS = re.compile(r"(?:\s*,\s*){2,}")


def strip_brackets(prompt: str) -> str:
    """Remove ``[...]`` and ``(...)`` segments for natural-language models."""
    cleaned = _PARENTHESIZED.sub("", _BRACKETED.sub("", prompt))
    cleaned = _EMPTY_SEPARATORS.sub(", ", cleaned)
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    return cleaned.strip(" ,")


def emphasize_terms(prompt: str) -> str:
    """Wrap the first occurrence of each important term in ``(term:weight)``."""
    profiles = load_model_profiles_v1()
    for term in profiles.emphasis_terms:
        if term in prompt:
            prompt = prompt.replace(term, f"({term}:{profiles.emphasis_weight})", 1)
    return prompt


def midjourney_flags(prompt: str) -> str:
    suffix = load_model_profiles_v1().midjourney_suffix
    return f"{prompt} {suffix}" if suffix else prompt


TRANSFORMS: dict[str, PromptTransform] = {
    "strip_brackets": strip_brackets,
    "emphasize_terms": emphasize_terms,
    "midjourney_flags": midjourney_flags,
}


def register_transform(name: str, transform: PromptTransform) -> None:
    TRANSFORMS[name] = transform


def available_models() -> list[str]:
    return list(load_model_profiles_v1().profiles)


def get_model_profile(model: str) -> ModelProfile:
    try:
        return _load_profile(model)
    except KeyError:
        raise UnsupportedModelError(model) from None


def truncate_prompt(prompt: str, max_length: int) -> str:
    if len(prompt) <= max_length:
        return prompt
    return prompt[: max_length - len(ELLIPSIS)] + ELLIPSIS


def optimize_for_model(prompt: str, model: str) -> str:
    """Truncate ``prompt`` to the model's limit, then apply its transforms.

    Raises:
        UnsupportedModelError: If the model has no profile; callers should
            fall back to the untransformed prompt.
    """
    try:
        profile = get_model_profile(model)
    except UnsupportedModelError:
        record_unsupported_model(model)
        raise

    optimized = truncate_prompt(prompt, profile.max_prompt_length)
    if optimized != prompt:
        record_truncation(model)
        logger.info(
            "prompt_truncated model=%s original_length=%s max_length=%s",
            model,
            len(prompt),
            profile.max_prompt_length,
        )

    for name in profile.transforms:
        transform = TRANSFORMS.get(name)
        if transform is None:
            raise ConfigurationError(f"Model {model} references unknown transform: {name}")
        optimized = transform(optimized)
    return optimized
