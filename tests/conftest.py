import pytest

from panelcraft.config.loaders import clear_config_cache
from panelcraft.prompts import loader
from panelcraft.schemas import (
    ArtDirection,
    CharacterTraits,
    Cinematography,
    StyleGuide,
    TechnicalSpecs,
)
from panelcraft.services.characters import CharacterRegistry
from panelcraft.services.prompt_composer import PromptComposer
from panelcraft.services.seeds import SeededRandomSource
from panelcraft.services.style_guides import StyleGuideCatalog


@pytest.fixture(autouse=True)
def _fresh_static_data():
    clear_config_cache()
    loader.clear_cache()
    yield
    clear_config_cache()
    loader.clear_cache()


@pytest.fixture()
def registry():
    return CharacterRegistry(seed_source=SeededRandomSource(42))


@pytest.fixture()
def catalog():
    return StyleGuideCatalog()


@pytest.fixture()
def composer():
    return PromptComposer()


@pytest.fixture()
def aria(registry):
    return registry.create(
        "Aria",
        description="Night market courier",
        traits=CharacterTraits(hair_color="silver", eye_color="violet"),
    )


@pytest.fixture()
def night_guide():
    return StyleGuide(
        id="style_night_market",
        name="Night Market",
        cinematography=Cinematography(
            shot_types=["Medium Shot"],
            camera_angles=["Eye Level"],
            lighting="neon rim light",
            color_palette=["#ff00aa", "#00e5ff"],
            mood="tense",
            atmosphere="humid",
        ),
        art_direction=ArtDirection(
            visual_style="neo-noir",
            reference_artists=["Roger Deakins"],
        ),
        technical_specs=TechnicalSpecs(),
    )
