"""
Prompt vocabulary and template loader.

Vocabularies and templates live in versioned YAML files grouped by domain:

    v1/
    ├── shared/       # Render-style/quality modifiers, negative prompt defaults
    ├── characters/   # Consistency enforcement phrases, reference sheet template
    └── variations/   # Batch variation suffixes

Usage:
    from panelcraft.prompts.loader import get_prompt_data, render_prompt

    modifiers = get_prompt_data("render_style_modifiers")
    sheet = render_prompt("prompt_reference_sheet", descriptor="...", views=[...], expressions=[...])

String values (or mappings with a ``template`` key) are Jinja2 templates and
are parsed at load time so a broken template fails fast.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateSyntaxError

from panelcraft.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent
_VERSION = "v1"

_DOMAIN_DIRS = [
    "shared",
    "characters",
    "variations",
]


@lru_cache(maxsize=1)
def _jinja_env() -> Environment:
    return Environment(
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _template_of(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("template"), str):
        return value["template"]
    return None


def _domain_files(domain: str) -> list[Path]:
    domain_dir = _PROMPTS_DIR / _VERSION / domain
    return sorted(domain_dir.glob("*.yaml")) if domain_dir.is_dir() else []


def _read_mapping(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must be a mapping at top level")
    return data


def _check_templates(path: Path, data: dict[str, Any]) -> None:
    env = _jinja_env()
    for key, value in data.items():
        template = _template_of(value)
        if template is None:
            continue
        try:
            env.parse(template)
        except TemplateSyntaxError as exc:
            raise ConfigurationError(f"Invalid Jinja2 template in {path}:{key}: {exc}") from exc


@lru_cache(maxsize=1)
def _load_prompts() -> dict[str, Any]:
    """Merge every domain file of the current version into one mapping.

    Later files override earlier keys; overrides are logged.
    """
    merged: dict[str, Any] = {}
    for domain in _DOMAIN_DIRS:
        for path in _domain_files(domain):
            data = _read_mapping(path)
            _check_templates(path, data)
            overridden = merged.keys() & data.keys()
            if overridden:
                logger.warning("prompt_keys_overridden keys=%s file=%s", ",".join(sorted(overridden)), path.name)
            merged.update(data)
    return merged


def get_prompt(name: str) -> str:
    """Return a template string by name.

    Raises:
        KeyError: If the prompt is missing or is not a template
    """
    template = _template_of(_load_prompts().get(name))
    if template is None:
        raise KeyError(f"Prompt '{name}' not found or not a string")
    return template


def get_prompt_data(name: str) -> Any:
    """Return non-template data (vocabulary lists, lookup tables) by name."""
    prompts = _load_prompts()
    if name not in prompts:
        raise KeyError(f"Prompt data '{name}' not found")
    return prompts[name]


def required_variables(name: str) -> list[str]:
    entry = _load_prompts().get(name)
    if isinstance(entry, dict):
        return list(entry.get("required_variables") or [])
    return []


def render_prompt(name: str, validate: bool = False, **context: Any) -> str:
    """Render a template with the given context.

    Raises:
        ValueError: If validate=True and declared required variables are missing
    """
    if validate:
        missing = [v for v in required_variables(name) if v not in context]
        if missing:
            raise ValueError(f"Missing required variables for '{name}': {missing}")
    return render_string(get_prompt(name), **context)


def render_string(template: str, **context: Any) -> str:
    """Render an inline template taken from prompt data."""
    return _jinja_env().from_string(template).render(**context).strip()


def list_prompts(domain: str | None = None) -> list[str]:
    """Names of all loaded entries, or only those defined in ``domain``."""
    if domain is None:
        return list(_load_prompts())
    return [name for path in _domain_files(domain) for name in _read_mapping(path)]


def clear_cache() -> None:
    """Clear cached prompts (useful for hot-reload scenarios)."""
    _load_prompts.cache_clear()
    _jinja_env.cache_clear()
