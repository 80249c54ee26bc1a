"""Tests for section text cleaning and checklist aggregation."""

from survey_brain.core.schemas_sections import DepotSection
from survey_brain.core.section_content import (
    PLACEHOLDER_NATURAL,
    PLACEHOLDER_PLAIN,
    build_depot_output_from_checklist,
    clean_natural_language,
    clean_plain_text,
    clean_section_content,
    deduplicate_lines,
    lines_similar,
    merge_sections,
)
from survey_brain.core.section_schema import build_section_schema


class TestSimilarity:
    def test_identical_after_normalization(self) -> None:
        assert lines_similar("Fit new boiler.", "fit new boiler")

    def test_containment(self) -> None:
        assert lines_similar("Power flush", "Power flush system before commissioning")

    def test_unrelated(self) -> None:
        assert not lines_similar("Scaffold required for flue", "Customer to clear loft hatch")

    def test_deduplicate_keeps_longest_in_first_position(self) -> None:
        lines = ["Remove old cylinder", "Fit magnetic filter", "Remove old cylinder from airing cupboard"]
        assert deduplicate_lines(lines) == ["Remove old cylinder from airing cupboard", "Fit magnetic filter"]


class TestCleaning:
    def test_plain_text_deduplicated_and_rejoined(self) -> None:
        text = "• Fit new combi;\n• Fit new combi boiler; Hive thermostat;"
        assert clean_plain_text(text) == "Fit new combi boiler; Hive thermostat;"

    def test_placeholder_dropped_when_real_content_exists(self) -> None:
        text = f"{PLACEHOLDER_PLAIN}\nScaffold required;"
        assert clean_plain_text(text) == "Scaffold required;"

    def test_placeholder_kept_when_alone(self) -> None:
        assert clean_plain_text(PLACEHOLDER_PLAIN) == "No additional notes;"

    def test_natural_language_sentences_deduplicated(self) -> None:
        text = "The boiler is in the kitchen. The boiler is in the kitchen. Flue exits rear."
        assert clean_natural_language(text) == "The boiler is in the kitchen. Flue exits rear."

    def test_clean_section_content_keeps_name(self) -> None:
        section = DepotSection(section="Flue", plainText="Rear flue; rear flue;", naturalLanguage="")
        cleaned = clean_section_content(section)
        assert cleaned.section == "Flue"
        assert cleaned.plain_text == "Rear flue;"

    def test_merge_sections(self) -> None:
        merged = merge_sections(
            "Flue",
            [
                DepotSection(section="flue", plainText="Horizontal rear flue;", naturalLanguage="Flue exits rear."),
                DepotSection(section="Flues", plainText="Plume kit needed;", naturalLanguage=PLACEHOLDER_NATURAL),
            ],
        )
        assert merged.section == "Flue"
        assert merged.plain_text == "Horizontal rear flue; Plume kit needed;"
        assert merged.natural_language == "Flue exits rear."


class TestChecklistAggregation:
    def test_checked_items_grouped_in_canonical_order(self, section_schema) -> None:
        state = {
            "flue_horizontal_rear": {"checked": True},
            "needs_boiler_replacement": {"checked": True, "extra": "  urgent  "},
            "controls_hive": {"checked": False},
        }

        sections, materials = build_depot_output_from_checklist(state, section_schema)

        assert [s.section for s in sections] == ["Needs", "Flue"]
        assert sections[0].plain_text == "Boiler replacement required urgent;"
        assert [m.item for m in materials] == ["Horizontal flue kit"]

    def test_materials_aggregated_with_duplicates(self, section_schema) -> None:
        state = {
            "boiler_combi_swap": {"checked": True},
            "pipework_gas_upgrade": {"checked": True},
        }

        _, materials = build_depot_output_from_checklist(state, section_schema)

        assert [m.item for m in materials] == ["Combi boiler", "Magnetic system filter", "22mm copper pipe"]
        assert materials[2].qty == 2
        assert all(m.qty >= 1 for m in materials)

    def test_items_resolve_against_edited_schema(self, section_schema) -> None:
        schema = build_section_schema(["New boiler & controls", "Needs"], checklist=section_schema.checklist)
        state = {"controls_hive": {"checked": True}}

        sections, _ = build_depot_output_from_checklist(state, schema)

        assert [s.section for s in sections] == ["New boiler & controls"]

    def test_nothing_checked(self, section_schema) -> None:
        assert build_depot_output_from_checklist({}, section_schema) == ([], [])
