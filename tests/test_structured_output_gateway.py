"""Tests for the structured-output gateway."""

import json

import pytest
from pydantic import BaseModel

from survey_brain.chains.structured_output import StructuredOutputGateway, TaskSpec
from survey_brain.core.errors import ModelError
from survey_brain.core.schemas_depot import DepotNotesOutput, TweakSectionOutput
from survey_brain.core.section_content import PLACEHOLDER_NATURAL, PLACEHOLDER_PLAIN
from tests.fakes.fake_providers import FakeProvider, failing_provider

NOTES_TASK = TaskSpec(
    name="depot_notes",
    system_prompt="Return depot notes as JSON.",
    output_model=DepotNotesOutput,
    temperature=0.2,
)


class _CountOutput(BaseModel):
    count: int


def _gateway(section_schema, *providers):
    return StructuredOutputGateway(list(providers), section_schema.sections)


class TestSectionCompletion:
    def test_two_of_fourteen_sections_backfilled(self, section_schema) -> None:
        provider = FakeProvider(
            "openai",
            [
                {
                    "sections": [
                        {"section": "Flue", "plainText": "Rear flue;", "naturalLanguage": "Flue exits rear."},
                        {"section": "Needs", "plainText": "New boiler;", "naturalLanguage": "Needs a boiler."},
                    ]
                }
            ],
        )

        result = _gateway(section_schema, provider).generate(NOTES_TASK, {"transcript": "t"})

        assert [s.section for s in result.sections] == section_schema.names
        placeholders = [s for s in result.sections if s.plain_text == PLACEHOLDER_PLAIN]
        assert len(placeholders) == 12
        assert all(s.natural_language == PLACEHOLDER_NATURAL for s in placeholders)
        assert result.sections[0].plain_text == "New boiler;"

    def test_variant_names_resolved_and_unknown_dropped(self, section_schema) -> None:
        provider = FakeProvider(
            "openai",
            [
                {
                    "sections": [
                        {"section": "flues", "plainText": "Vertical flue;"},
                        {"section": "Made up section", "plainText": "Should vanish;"},
                        {"name": "New Boiler & Controls", "plainText": "Hive;"},
                    ]
                }
            ],
        )

        result = _gateway(section_schema, provider).generate(NOTES_TASK, {})

        by_name = {s.section: s for s in result.sections}
        assert len(result.sections) == 14
        assert by_name["Flue"].plain_text == "Vertical flue;"
        assert by_name["New boiler and controls"].plain_text == "Hive;"
        assert "Made up section" not in by_name
        assert all("vanish" not in s.plain_text for s in result.sections)

    def test_entries_for_same_section_merged(self, section_schema) -> None:
        provider = FakeProvider(
            "openai",
            [
                {
                    "sections": [
                        {"section": "Pipe work", "plainText": "Upgrade gas;"},
                        {"section": "pipework", "plainText": "Ignored: unresolved;"},
                        {"section": "Pipe works", "plainText": "Upgrade gas supply;"},
                    ]
                }
            ],
        )

        result = _gateway(section_schema, provider).generate(NOTES_TASK, {})

        pipe = next(s for s in result.sections if s.section == "Pipe work")
        assert pipe.plain_text == "Upgrade gas supply;"

    def test_missing_and_wrong_typed_fields_defaulted(self, section_schema) -> None:
        provider = FakeProvider(
            "openai",
            [
                {
                    "sections": "not a list",
                    "materials": [{"item": "Combi boiler", "qty": "0"}, "junk", {"qty": 2}],
                    "checkedItems": "boiler_combi_swap",
                    "missingInfo": [{"target": "engineer", "question": "Where is the stopcock?"}, {"target": "customer"}],
                    "customerSummary": None,
                }
            ],
        )

        result = _gateway(section_schema, provider).generate(NOTES_TASK, {})

        assert len(result.sections) == 14
        assert [(m.item, m.qty, m.category) for m in result.materials] == [("Combi boiler", 1, "Misc")]
        assert result.checked_items == []
        assert [(m.target, m.question) for m in result.missing_info] == [("expert", "Where is the stopcock?")]
        assert result.customer_summary == ""

    def test_task_without_sections_key_skips_completion(self, section_schema) -> None:
        task = TaskSpec(
            name="tweak_section",
            system_prompt="Rewrite.",
            output_model=TweakSectionOutput,
            sections_key=None,
        )
        provider = FakeProvider("openai", [{"section": "Flue", "plainText": "New text;"}])

        result = _gateway(section_schema, provider).generate(task, {})

        assert result.plain_text == "New text;"


class TestProviderFallback:
    def test_context_and_prompt_forwarded(self, section_schema) -> None:
        provider = FakeProvider("openai", [{"sections": []}])

        _gateway(section_schema, provider).generate(NOTES_TASK, {"transcript": "hello", "n": 1})

        call = provider.calls[0]
        assert call["system_prompt"] == NOTES_TASK.system_prompt
        assert call["temperature"] == 0.2
        assert json.loads(call["user_content"]) == {"transcript": "hello", "n": 1}

    def test_secondary_used_when_primary_raises(self, section_schema) -> None:
        primary = failing_provider("openai", "HTTP 500")
        secondary = FakeProvider("anthropic", [{"customerSummary": "From anthropic"}])

        result = _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {"transcript": "t"})

        assert result.customer_summary == "From anthropic"
        assert primary.calls[0]["user_content"] == secondary.calls[0]["user_content"]

    def test_malformed_json_falls_through(self, section_schema) -> None:
        primary = FakeProvider("openai", ['```json\n{"sections": []}\n```'])
        secondary = FakeProvider("anthropic", [{"customerSummary": "ok"}])

        result = _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        assert result.customer_summary == "ok"

    def test_non_object_json_falls_through(self, section_schema) -> None:
        primary = FakeProvider("openai", ["[]"])
        secondary = FakeProvider("anthropic", [{}])

        result = _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        assert len(result.sections) == 14

    def test_unexpected_provider_exception_falls_through(self, section_schema) -> None:
        primary = FakeProvider("openai", [RuntimeError("socket reset")])
        secondary = FakeProvider("anthropic", [{"customerSummary": "From anthropic"}])

        result = _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        assert result.customer_summary == "From anthropic"
        assert len(secondary.calls) == 1

    def test_unexpected_exceptions_surface_as_model_error(self, section_schema) -> None:
        primary = FakeProvider("openai", [RuntimeError("socket reset")])
        secondary = FakeProvider("anthropic", [ValueError("bad adapter state")])

        with pytest.raises(ModelError) as exc_info:
            _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        messages = [f.message for f in exc_info.value.failures]
        assert messages == [
            "Provider call raised RuntimeError: socket reset",
            "Provider call raised ValueError: bad adapter state",
        ]

    def test_failure_reason_names_the_failing_stage(self, section_schema) -> None:
        task = TaskSpec(name="count", system_prompt="Count.", output_model=_CountOutput, sections_key=None)
        providers = [
            FakeProvider("openai", ["not json"]),
            FakeProvider("anthropic", ["[1, 2]"]),
            FakeProvider("backup", [{"count": "many"}]),
        ]

        with pytest.raises(ModelError) as exc_info:
            _gateway(section_schema, *providers).generate(task, {})

        messages = [f.message for f in exc_info.value.failures]
        assert messages[0].startswith("Model content was not valid JSON")
        assert messages[1].startswith("Model content was not a JSON object")
        assert messages[2].startswith("Model content failed validation")

    def test_primary_success_skips_secondary(self, section_schema) -> None:
        primary = FakeProvider("openai", [{}])
        secondary = FakeProvider("anthropic", [{}])

        _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        assert secondary.calls == []

    def test_all_failures_aggregated(self, section_schema) -> None:
        primary = failing_provider("openai", "HTTP 500")
        secondary = FakeProvider("anthropic", ["not json"])

        with pytest.raises(ModelError) as exc_info:
            _gateway(section_schema, primary, secondary).generate(NOTES_TASK, {})

        error = exc_info.value
        assert [f.provider for f in error.failures] == ["openai", "anthropic"]
        assert "openai: HTTP 500" in error.message
        assert "anthropic" in error.message
        assert error.to_dict()["error"] == "model_error"

    def test_no_providers(self, section_schema) -> None:
        with pytest.raises(ModelError) as exc_info:
            _gateway(section_schema).generate(NOTES_TASK, {})
        assert exc_info.value.failures == []
        assert "No text-generation providers" in exc_info.value.message
