import pytest

from panelcraft.config import loaders
from panelcraft.config.loaders import (
    clear_config_cache,
    get_camera_setup,
    get_config_version,
    get_quality_preset,
    get_style_preset,
    load_camera_setups_v1,
    load_model_profiles_v1,
    load_quality_presets_v1,
    load_style_presets_v1,
)
from panelcraft.core.exceptions import ConfigurationError


def test_can_load_and_validate_schemas():
    assert load_style_presets_v1().version == "v1"
    assert len(load_model_profiles_v1().profiles) == 4
    assert set(load_quality_presets_v1().presets) == {"draft", "standard", "high", "ultra"}
    assert load_camera_setups_v1().fallback_render_style == "cinematic"


def test_style_preset_lookup():
    preset = get_style_preset("anime-action")
    assert preset.id == "preset_anime"
    assert preset.technical_specs.render_style == "animated"
    with pytest.raises(KeyError):
        get_style_preset("vaporwave")


def test_every_preset_has_name_and_palette():
    for key, preset in load_style_presets_v1().presets.items():
        assert preset.name, key
        assert preset.cinematography.color_palette, key


def test_camera_setup_falls_back_to_default():
    assert get_camera_setup("concept-art").camera == "Digital painting"
    assert get_camera_setup("unknown-style") == get_camera_setup("cinematic")


def test_quality_preset_lookup():
    assert get_quality_preset("draft").steps == 20
    with pytest.raises(KeyError):
        get_quality_preset("extreme")


def test_clear_cache_bumps_version():
    version = get_config_version()
    first = load_style_presets_v1()
    clear_config_cache()
    assert get_config_version() == version + 1
    assert load_style_presets_v1() is not first


def test_invalid_config_raises_configuration_error(tmp_path, monkeypatch):
    (tmp_path / "quality_presets_v1.json").write_text('{"version": "v1", "presets": {"high": {"steps": 0}}}')
    monkeypatch.setattr(loaders, "_CONFIG_DIR", tmp_path)
    with pytest.raises(ConfigurationError):
        load_quality_presets_v1()
