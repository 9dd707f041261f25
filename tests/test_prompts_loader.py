import pytest

from panelcraft.core.exceptions import ConfigurationError
from panelcraft.prompts import loader


def test_list_prompts_domain():
    names = loader.list_prompts(domain="characters")
    assert "prompt_reference_sheet" in names
    assert "consistency_enforcement" in names


def test_list_prompts_unknown_domain():
    assert loader.list_prompts(domain="nope") == []


def test_prompt_data_lookup():
    assert loader.get_prompt_data("render_style_modifiers")["concept-art"] == []
    with pytest.raises(KeyError):
        loader.get_prompt_data("missing_vocabulary")


def test_get_prompt_rejects_non_templates():
    with pytest.raises(KeyError):
        loader.get_prompt("negative_prompt_defaults")


def test_render_prompt_validates_required_variables():
    assert loader.required_variables("prompt_reference_sheet") == ["descriptor", "views", "expressions"]
    with pytest.raises(ValueError):
        loader.render_prompt("prompt_reference_sheet", validate=True, descriptor="[ARIA]")


def test_render_variation():
    rendered = loader.render_prompt("prompt_variation", base_prompt="a duel", suffix="noir style")
    assert rendered == "a duel, noir style"


def test_invalid_template_raises_and_is_not_silently_ignored(tmp_path, monkeypatch):
    shared = tmp_path / "v1" / "shared"
    shared.mkdir(parents=True)
    (shared / "bad.yaml").write_text("bad_prompt: '{% if foo %} missing endif'\n")
    monkeypatch.setattr(loader, "_PROMPTS_DIR", tmp_path)
    loader.clear_cache()

    with pytest.raises(ConfigurationError):
        loader.get_prompt_data("bad_prompt")
