import pytest

from panelcraft.config.loaders import load_model_profiles_v1
from panelcraft.core.exceptions import ConfigurationError, UnsupportedModelError
from panelcraft.core.metrics import registry as metrics_registry
from panelcraft.services.model_optimization import (
    TRANSFORMS,
    available_models,
    get_model_profile,
    optimize_for_model,
    register_transform,
    strip_brackets,
    truncate_prompt,
)


def test_available_models():
    assert set(available_models()) == {"dall-e-3", "stable-diffusion-xl", "midjourney", "leonardo-ai"}


def test_profile_limits():
    assert get_model_profile("stable-diffusion-xl").max_prompt_length == 380
    assert get_model_profile("dall-e-3").supports_negative_prompt is False


def test_truncate_prompt():
    assert truncate_prompt("short", 10) == "short"
    truncated = truncate_prompt("a" * 20, 10)
    assert truncated == "aaaaaaa..."
    assert len(truncated) == 10


def test_sdxl_truncates_to_limit():
    before = metrics_registry.get_sample_value(
        "panelcraft_prompt_truncations_total", {"model": "stable-diffusion-xl"}
    ) or 0.0
    optimized = optimize_for_model("a" * 400, "stable-diffusion-xl")
    assert len(optimized) == 380
    assert optimized.endswith("...")
    after = metrics_registry.get_sample_value("panelcraft_prompt_truncations_total", {"model": "stable-diffusion-xl"})
    assert after == before + 1


def test_sdxl_emphasizes_first_occurrence_of_terms():
    optimized = optimize_for_model("cinematic, character portrait, high quality, cinematic", "stable-diffusion-xl")
    assert optimized == "(cinematic:1.2), (character:1.2) portrait, (high quality:1.2), cinematic"


def test_dalle_strips_weighting_syntax():
    prompt = "[ARIA], courier, (same person), night market"
    assert optimize_for_model(prompt, "dall-e-3") == "courier, night market"


def test_strip_brackets_leaves_plain_text():
    assert strip_brackets("a calm lake, mist") == "a calm lake, mist"


def test_midjourney_appends_flags():
    assert optimize_for_model("a cat", "midjourney") == "a cat --ar 16:9 --v 6 --style raw"


def test_leonardo_passes_through():
    assert optimize_for_model("(face:1.1) portrait", "leonardo-ai") == "(face:1.1) portrait"


def test_unknown_model_raises():
    with pytest.raises(UnsupportedModelError) as exc_info:
        optimize_for_model("a cat", "pixel-forge-9")
    assert exc_info.value.model == "pixel-forge-9"


def test_unknown_transform_is_configuration_error(monkeypatch):
    profile = load_model_profiles_v1().profiles["leonardo-ai"]
    monkeypatch.setattr(profile, "transforms", ["does_not_exist"])
    with pytest.raises(ConfigurationError):
        optimize_for_model("a cat", "leonardo-ai")


def test_register_transform(monkeypatch):
    monkeypatch.setattr(
        load_model_profiles_v1().profiles["leonardo-ai"], "transforms", ["upper"]
    )
    register_transform("upper", str.upper)
    try:
        assert optimize_for_model("a cat", "leonardo-ai") == "A CAT"
    finally:
        TRANSFORMS.pop("upper")
