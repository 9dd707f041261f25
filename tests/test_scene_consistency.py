import pytest
from hypothesis import given, settings, strategies as st

from panelcraft.schemas import CharacterEntity, CharacterTraits, Panel
from panelcraft.services.scene_consistency import (
    SHORT_DESCRIPTION_LIMIT,
    annotate_mentions,
    consistency_instructions,
    detect_mentions,
    inject_character_details,
    name_patterns,
    short_description,
    validate_consistency,
)

ARIA_VALE = CharacterEntity(id="char_aria_vale", name="Aria Vale")


@pytest.fixture()
def bo(registry):
    return registry.create(
        "Bo",
        traits={"age": "30", "hairColor": "red", "distinctiveFeatures": ["eyepatch", "gold tooth"]},
    )


@pytest.fixture()
def minji(registry):
    return registry.create(
        "Minji",
        traits=CharacterTraits(
            hair_color="black",
            clothing_style="leather jacket",
            distinctive_features=["scar on left cheek"],
        ),
    )


class TestNamePatterns:
    def test_two_word_name_adds_first_and_last(self):
        assert name_patterns("Aria Vale") == ["Aria Vale", "Aria", "Vale"]

    def test_longer_name_adds_first_word_only(self):
        assert name_patterns("Jin Soo Park") == ["Jin Soo Park", "Jin"]

    def test_hangul_name_adds_honorifics(self):
        assert name_patterns("민지") == ["민지", "민지씨", "민지님"]

    def test_blank_name_has_no_patterns(self):
        assert name_patterns("  ") == []


class TestDetectMentions:
    def test_case_insensitive_and_whole_word(self):
        text = "ARIA VALE meets aria at dawn; Valerie waves"
        mentions = detect_mentions(text, [ARIA_VALE])

        assert [(m.start, m.end) for m in mentions] == [(0, 9), (16, 20)]
        assert {m.character_id for m in mentions} == {"char_aria_vale"}

    def test_full_name_beats_other_characters_alias(self):
        aria = CharacterEntity(id="char_aria", name="Aria")
        text = "Aria waits for Aria Vale"
        mentions = detect_mentions(text, [aria, ARIA_VALE])
        assert [m.character_id for m in mentions] == ["char_aria", "char_aria_vale"]
        assert text[mentions[1].start : mentions[1].end] == "Aria Vale"

    def test_hangul_name_with_particle_and_honorific(self):
        minji = CharacterEntity(id="char_minji", name="민지")
        assert [(m.start, m.end) for m in detect_mentions("민지가 웃는다", [minji])] == [(0, 2)]
        assert [(m.start, m.end) for m in detect_mentions("민지씨, 안녕", [minji])] == [(0, 3)]

    def test_no_characters_or_text(self):
        assert detect_mentions("Aria runs", []) == []
        assert detect_mentions("", [ARIA_VALE]) == []


@pytest.mark.property
class TestMentionProperties:
    """Mentions never overlap and always cover a known spelling."""

    @given(
        words=st.lists(
            st.sampled_from(["Aria", "aria vale", "VALE", "Valerie", "market", "at", "dawn"]),
            max_size=12,
        )
    )
    @settings(max_examples=100, deadline=None)
    def test_mentions_are_ordered_and_disjoint(self, words):
        text = " ".join(words)
        mentions = detect_mentions(text, [ARIA_VALE])

        for previous, current in zip(mentions, mentions[1:]):
            assert previous.end <= current.start
        for mention in mentions:
            assert text[mention.start : mention.end].lower() in {"aria vale", "aria", "vale"}


class TestAnnotate:
    def test_short_description_from_traits(self, bo):
        assert short_description(bo) == "30 years old, red hair, eyepatch"

    def test_short_description_falls_back_to_clipped_description(self, registry):
        courier = registry.create("Kit", description="A tall courier in a long grey coat with far too many pockets")
        summary = short_description(courier)
        assert len(summary) <= SHORT_DESCRIPTION_LIMIT
        assert summary.startswith("A tall courier")

    def test_mentions_are_annotated_in_place(self, bo):
        assert annotate_mentions("bo runs past the boat", [bo]) == (
            "bo (30 years old, red hair, eyepatch) runs past the boat"
        )

    def test_character_without_description_is_left_alone(self, registry):
        ghost = registry.create("Ghost")
        assert annotate_mentions("Ghost drifts by", [ghost]) == "Ghost drifts by"


class TestInjectCharacterDetails:
    def test_block_lists_only_mentioned_characters(self, aria, bo):
        enhanced = inject_character_details("Aria hides in the stall", [bo, aria])

        assert enhanced.startswith("SCENE DESCRIPTION:\nAria hides in the stall\n")
        assert "CHARACTER CONSISTENCY REQUIREMENTS:" in enhanced
        assert "ARIA:\n- Physical: silver hair, violet eyes" in enhanced
        assert "BO:" not in enhanced
        assert enhanced.endswith("NO variations in physical features, clothing, or identifying markers.")

    def test_clothing_and_markers_lines(self, minji):
        enhanced = inject_character_details("minji checks the map", [minji])
        assert "- Clothing: leather jacket" in enhanced
        assert "- Unique markers: scar on left cheek" in enhanced

    def test_no_mentions_keeps_scene_only(self, aria):
        assert inject_character_details("An empty alley", [aria]) == "SCENE DESCRIPTION:\nAn empty alley"

    def test_no_characters_returns_text_unchanged(self):
        assert inject_character_details("An empty alley", []) == "An empty alley"


class TestConsistencyInstructions:
    def test_empty_for_no_characters(self):
        assert consistency_instructions([]) == ""

    def test_lists_every_character(self, aria, minji):
        instructions = consistency_instructions([aria, minji])

        assert instructions.startswith("=== CHARACTER CONSISTENCY INSTRUCTIONS ===")
        assert instructions.endswith("=== END CHARACTER CONSISTENCY ===")
        assert "[Aria]\nALWAYS appears as: silver hair, violet eyes\n---" in instructions
        assert "ALWAYS wearing: leather jacket" in instructions
        assert "ALWAYS has: scar on left cheek" in instructions
        assert instructions.count("ALWAYS wearing:") == 1


class TestValidateConsistency:
    def test_no_characters(self):
        report = validate_consistency([Panel(description="Aria runs")], [])
        assert not report.is_consistent
        assert report.issues == ["No characters defined for consistency checking"]

    def test_reports_unmentioned_panels_and_missing_clothing(self, aria):
        panels = [
            Panel(description="An empty alley at night"),
            Panel(description="Aria counts coins", character_ids=[aria.id]),
            Panel(description="The crowd surges", character_ids=[aria.id]),
        ]

        report = validate_consistency(panels, [aria])

        assert not report.is_consistent
        assert report.issues == [
            "Panel 1: No characters detected in opening panel",
            "Panel 3: Aria is assigned but not mentioned",
            "Aria: Missing clothing description",
        ]
        assert "Add clothing description for Aria" in report.suggestions

    def test_missing_physical_description(self, registry):
        ghost = registry.create("Ghost", traits={"clothingStyle": "white sheet"})
        report = validate_consistency([Panel(description="Ghost drifts by")], [ghost])
        assert report.issues == []

        blank = registry.create("Nobody")
        report = validate_consistency([Panel(description="Nobody is here")], [blank])
        assert "Nobody: Missing physical description" in report.issues

    def test_consistent_storyboard(self, minji):
        panels = [
            Panel(description="Minji steps off the bus", character_ids=[minji.id]),
            Panel(visual_prompt="a close-up of minji smiling", character_ids=[minji.id]),
        ]
        report = validate_consistency(panels, [minji])
        assert report.is_consistent
        assert report.issues == []
        assert report.suggestions == []
