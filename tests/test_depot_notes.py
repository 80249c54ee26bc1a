"""Tests for the depot-notes and tweak-section chains."""

import pytest

from survey_brain.chains.depot_notes import (
    NOTES_SYSTEM_PROMPT,
    build_notes_prompt,
    generate_depot_notes,
    tweak_section,
)
from survey_brain.chains.structured_output import StructuredOutputGateway
from survey_brain.core.errors import BadRequestError
from survey_brain.core.schemas_depot import CapturedSection, NotesRequest
from survey_brain.core.section_schema import FUTURE_PLANS_NAME
from tests.fakes.fake_providers import FakeProvider


class StaticReferences:
    def __init__(self, snippets):
        self.snippets = snippets
        self.queries = []

    def search(self, query, limit):
        self.queries.append((query, limit))
        return self.snippets[:limit]


def _factory(provider):
    def factory(sections):
        return StructuredOutputGateway([provider], sections)

    return factory


@pytest.fixture
def provider():
    return FakeProvider(
        "openai",
        [
            {
                "checkedItems": ["boiler_combi_swap", "invented_id"],
                "sections": [{"section": "Flue", "plainText": "Rear flue;", "naturalLanguage": "Rear flue."}],
                "materials": [{"category": "Boiler", "item": "Worcester 4000 30kW", "qty": 1}],
                "missingInfo": [{"target": "customer", "question": "Preferred install date?"}],
                "customerSummary": "We will fit a new combi.",
            }
        ],
    )


class TestGenerateDepotNotes:
    def test_forwards_defaults_when_optional_fields_absent(self, provider) -> None:
        request = NotesRequest(transcript="  Customer wants a new combi.  ")

        generate_depot_notes(request, _factory(provider))

        payload = provider.last_payload
        assert payload["transcript"] == "Customer wants a new combi."
        assert payload["depotSections"][-1] == FUTURE_PLANS_NAME
        assert len(payload["depotSections"]) == 14
        assert payload["expectedSections"] == payload["depotSections"]
        assert payload["checklistItems"][0]["id"] == "needs_boiler_replacement"
        assert "plainText" in payload["checklistItems"][0]
        assert payload["alreadyCaptured"] == []
        assert payload["sectionHints"] == {}
        assert payload["forceStructured"] is False

    def test_result_complete_and_checked_items_restricted(self, provider) -> None:
        result = generate_depot_notes(NotesRequest(transcript="t"), _factory(provider))

        assert len(result.sections) == 14
        assert result.checked_items == ["boiler_combi_swap"]
        assert result.missing_info[0].target == "customer"
        assert result.materials[0].item == "Worcester 4000 30kW"

    def test_custom_checklist_restricts_checked_items(self, provider) -> None:
        request = NotesRequest(transcript="t", checklistItems=[{"id": "invented_id", "label": "x"}])

        result = generate_depot_notes(request, _factory(provider))

        assert provider.last_payload["checklistItems"] == [{"id": "invented_id", "label": "x"}]
        assert result.checked_items == ["invented_id"]

    def test_request_taxonomy_used(self, provider) -> None:
        request = NotesRequest(transcript="t", depotSections={"sections": [{"name": "Flue"}, {"name": "Cylinders"}]})

        result = generate_depot_notes(request, _factory(provider))

        assert [s.section for s in result.sections] == ["Flue", "Cylinders", FUTURE_PLANS_NAME]
        assert provider.last_payload["depotSections"] == ["Flue", "Cylinders", FUTURE_PLANS_NAME]

    def test_already_captured_normalized(self, provider) -> None:
        request = NotesRequest.model_validate(
            {
                "transcript": "t",
                "alreadyCaptured": [{"section": "Needs", "plainText": "Boiler;"}, {"section": None}, "junk"],
                "expectedSections": ["Needs", "Flue"],
                "forceStructured": True,
            }
        )

        generate_depot_notes(request, _factory(provider))

        payload = provider.last_payload
        assert payload["alreadyCaptured"] == [
            {"section": "Needs", "plainText": "Boiler;", "naturalLanguage": ""},
            {"section": "", "plainText": "", "naturalLanguage": ""},
        ]
        assert payload["expectedSections"] == ["Needs", "Flue"]
        assert payload["forceStructured"] is True

    def test_section_hints_resolved(self, provider) -> None:
        request = NotesRequest(
            transcript="t",
            sectionHints={"scaffold": "working at height", "kettle": "Kitchen stuff", "hive": "New boiler & controls"},
        )

        generate_depot_notes(request, _factory(provider))

        assert provider.last_payload["sectionHints"] == {
            "scaffold": "Working at heights",
            "hive": "New boiler and controls",
        }

    def test_reference_material_and_custom_instructions_in_prompt(self, provider) -> None:
        references = StaticReferences(["Past job: loft conversion flue", "Worcester manual"])
        request = NotesRequest(transcript="t", customInstructions="Use British spelling.")

        generate_depot_notes(request, _factory(provider), references)

        prompt = provider.calls[0]["system_prompt"]
        assert prompt.startswith(NOTES_SYSTEM_PROMPT)
        assert "Reference material:\n- Past job: loft conversion flue" in prompt
        assert prompt.rstrip().endswith("Use British spelling.")
        assert references.queries == [("t", 5)]

    def test_blank_transcript_rejected(self, provider) -> None:
        with pytest.raises(BadRequestError):
            generate_depot_notes(NotesRequest(transcript="   "), _factory(provider))
        assert provider.calls == []


class TestBuildNotesPrompt:
    def test_lists_sections_with_descriptions(self, section_schema) -> None:
        prompt = build_notes_prompt(section_schema)
        assert "- Flue: Type, route, terminal location" in prompt
        assert "Reference material" not in prompt


class TestTweakSection:
    def test_rewrites_and_resolves_name(self) -> None:
        provider = FakeProvider(
            "openai",
            [{"section": "flues", "plainText": "Vertical flue;", "naturalLanguage": "A vertical flue."}],
        )
        section = CapturedSection(section="Flue", plainText="Rear flue;", naturalLanguage="Rear flue.")

        result = tweak_section(section, "Change to vertical", _factory(provider), "Be brief.")

        assert result.section == "Flue"
        assert result.plain_text == "Vertical flue;"
        assert "Be brief." in provider.calls[0]["system_prompt"]
        assert provider.last_payload == {
            "section": {"section": "Flue", "plainText": "Rear flue;", "naturalLanguage": "Rear flue."},
            "instructions": "Change to vertical",
        }

    def test_unresolvable_name_kept(self) -> None:
        provider = FakeProvider("openai", [{"section": "Garage notes", "plainText": "Tidy;"}])
        section = CapturedSection(section="Garage notes", plainText="Messy;")

        result = tweak_section(section, "tidy", _factory(provider))

        assert result.section == "Garage notes"
        assert result.plain_text == "Tidy;"

    def test_empty_output_fields_fall_back(self) -> None:
        provider = FakeProvider("openai", [{"section": "Needs"}])
        section = CapturedSection(section="Needs", plainText="Boiler;", naturalLanguage="Needs a boiler.")

        result = tweak_section(section, "shorter", _factory(provider))

        assert result.plain_text == "Boiler;"
        assert result.natural_language == "Needs a boiler."

    def test_blank_instructions_rejected(self) -> None:
        with pytest.raises(BadRequestError):
            tweak_section(CapturedSection(section="Needs"), "  ", _factory(FakeProvider("openai", [])))
