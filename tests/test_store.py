import pytest
from pydantic import ValidationError

from panelcraft.core.settings import Settings
from panelcraft.schemas import CharacterEntity
from panelcraft.services.store import InMemoryStore


def _character(character_id, name="Aria"):
    return CharacterEntity(id=character_id, name=name)


def test_put_get_delete():
    store = InMemoryStore(CharacterEntity)
    store.put(_character("c1"))
    assert "c1" in store
    assert len(store) == 1
    assert store.get("c1").name == "Aria"
    assert store.delete("c1").id == "c1"
    assert store.delete("c1") is None
    assert store.get("c1") is None


def test_put_overwrites_by_id():
    store = InMemoryStore(CharacterEntity)
    store.put(_character("c1"))
    store.put(_character("c1", "Bo"))
    assert [c.name for c in store] == ["Bo"]


def test_load_json_is_all_or_nothing():
    store = InMemoryStore(CharacterEntity)
    with pytest.raises(ValidationError):
        store.load_json('[{"id": "c1", "name": "Aria"}, {"id": "c2", "name": ""}]')
    assert len(store) == 0


def test_dump_and_load_json():
    source = InMemoryStore(CharacterEntity)
    source.put(_character("c1"))
    target = InMemoryStore(CharacterEntity)
    target.load_json(source.dump_json())
    assert target.list() == source.list()
    target.clear()
    assert target.list() == []


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SEED_INITIAL_STATE", "7")
    monkeypatch.setenv("QUALITY_THRESHOLD", "60")
    loaded = Settings()
    assert loaded.seed_initial_state == 7
    assert loaded.quality_threshold == 60.0
    assert loaded.default_model == "stable-diffusion-xl"
