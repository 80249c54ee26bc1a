"""LLM chains for depot notes: full notes generation and single-section rewrites."""

import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from survey_brain.chains.structured_output import StructuredOutputGateway, TaskSpec
from survey_brain.core.errors import BadRequestError
from survey_brain.core.logging import get_logger, log_with_context
from survey_brain.core.schemas_depot import (
    CapturedSection,
    DepotNotesOutput,
    NotesRequest,
    TweakSectionOutput,
)
from survey_brain.core.schemas_sections import CanonicalSection, DepotSection, SectionSchema
from survey_brain.core.section_resolver import build_lookup, resolve
from survey_brain.core.section_schema import build_section_schema, default_section_schema

logger = get_logger(__name__)

GatewayFactory = Callable[[Sequence[CanonicalSection]], StructuredOutputGateway]

REFERENCE_QUERY_CHARS = 500
REFERENCE_LIMIT = 5


@runtime_checkable
class ReferenceLookup(Protocol):
    """Source of reference snippets (past jobs, product notes), newest first."""

    def search(self, query: str, limit: int) -> list[str]: ...


# ruff: noqa: E501
NOTES_SYSTEM_PROMPT = """You are Survey Brain, a heating survey assistant for a boiler installation surveyor.

You receive:
- A transcript of what was discussed.
- A list of known checklist items (with ids).
- A list of depot section names, in order.
- Notes the surveyor has already captured, and optional keyword hints mapping phrases to sections.

Your job is to:
1. Decide which checklist ids are clearly satisfied by the transcript.
2. Write depot notes grouped into the given section names.
3. Suggest a small list of materials/parts.
4. List any important questions still open for the expert or the customer.
5. Write a short customer-friendly summary of the job.

You MUST respond with ONLY valid JSON matching this shape:

{
  "checkedItems": ["<checklistId>", ...],
  "sections": [
    {
      "section": "<one of the depot section names>",
      "plainText": "Short semi-bullet summary; clauses separated by semicolons;",
      "naturalLanguage": "Human sentence description for depot notes."
    }
  ],
  "materials": [
    {
      "category": "Boiler | Cylinder | Flue | Controls | System clean | Filter | Misc",
      "item": "Exact part description (include make and model for boilers/cylinders where known).",
      "qty": 1,
      "notes": "Optional short note such as size, orientation or location."
    }
  ],
  "missingInfo": [
    {"target": "expert | customer", "question": "Short question if anything important is unclear."}
  ],
  "customerSummary": "2-4 sentence summary suitable to show the customer."
}

CRITICAL RULES:
1. Output ONLY the JSON object. Do not wrap it in backticks or markdown.
2. Use the depot section names exactly as given. Do not invent new sections.
3. Do not repeat notes that are already captured unless the transcript changes them.
4. If something isn't mentioned, leave it out rather than guessing.
5. Always preserve boiler/cylinder make & model exactly as spoken."""


TWEAK_SECTION_SYSTEM_PROMPT = """You are Survey Brain, editing one section of a surveyor's depot notes.

You receive the current section (name, plainText, naturalLanguage) and the surveyor's instructions.
Rewrite the section following the instructions. Keep every fact that the instructions do not ask you to change.

You MUST respond with ONLY valid JSON matching this shape:

{
  "section": "<the section name>",
  "plainText": "Short semi-bullet summary; clauses separated by semicolons;",
  "naturalLanguage": "Human sentence description for depot notes."
}

Do not wrap the JSON in backticks or markdown. Do not include any explanation outside the JSON."""


def _section_list(schema: SectionSchema) -> str:
    return "\n".join(
        f"- {s.name}: {s.description}" if s.description else f"- {s.name}" for s in schema.sections
    )


def build_notes_prompt(
    schema: SectionSchema,
    custom_instructions: str | None = None,
    reference_snippets: Sequence[str] = (),
) -> str:
    """
    Assemble the instruction text for the depot-notes task.

    Args:
        schema: Section taxonomy for this request
        custom_instructions: Surveyor-specific instructions appended last
        reference_snippets: Reference material, newest first

    Returns:
        Full system prompt
    """
    parts = [NOTES_SYSTEM_PROMPT, "Depot sections:\n" + _section_list(schema)]

    snippets = [s.strip() for s in reference_snippets if isinstance(s, str) and s.strip()]
    if snippets:
        parts.append("Reference material:\n" + "\n".join(f"- {s}" for s in snippets))

    if custom_instructions and custom_instructions.strip():
        parts.append("Additional instructions:\n" + custom_instructions.strip())

    return "\n\n".join(parts)


def _resolve_schema(raw_sections: Any, base_schema: SectionSchema | None) -> SectionSchema:
    base = base_schema or default_section_schema()
    if raw_sections is None:
        return base
    return build_section_schema(raw_sections, checklist=base.checklist)


def _resolved_hints(hints: dict[str, str], schema: SectionSchema) -> dict[str, str]:
    lookup = build_lookup(schema.sections)
    resolved = {}
    for keyword, section in hints.items():
        canonical = resolve(lookup, section)
        if keyword.strip() and canonical:
            resolved[keyword] = canonical
    return resolved


def _reference_snippets(reference_lookup: ReferenceLookup | None, transcript: str) -> list[str]:
    if reference_lookup is None:
        return []
    return list(reference_lookup.search(transcript[:REFERENCE_QUERY_CHARS], REFERENCE_LIMIT))


def generate_depot_notes(
    request: NotesRequest,
    gateway_factory: GatewayFactory,
    reference_lookup: ReferenceLookup | None = None,
    *,
    base_schema: SectionSchema | None = None,
    temperature: float = 0.2,
    request_id: str | None = None,
) -> DepotNotesOutput:
    """
    Turn a survey transcript into structured depot notes.

    Args:
        request: Inbound notes request
        gateway_factory: Builds a gateway for the request's canonical sections
        reference_lookup: Optional source of reference snippets
        base_schema: Schema used when the request carries no depotSections
        temperature: Sampling temperature
        request_id: Optional id for log correlation

    Returns:
        DepotNotesOutput with one section per canonical section, in order

    Raises:
        BadRequestError: If the transcript is blank
        ModelError: If every provider failed
    """
    transcript = request.transcript.strip()
    if not transcript:
        raise BadRequestError("transcript required")

    schema = _resolve_schema(request.depot_sections, base_schema)

    checklist_items = request.checklist_items or [
        item.model_dump(by_alias=True, mode="json") for item in schema.checklist
    ]
    forwarded_ids = {item.get("id") for item in checklist_items if isinstance(item.get("id"), str)}

    context = {
        "transcript": transcript,
        "checklistItems": checklist_items,
        "depotSections": schema.names,
        "alreadyCaptured": [c.model_dump(by_alias=True) for c in request.already_captured],
        "expectedSections": request.expected_sections or schema.names,
        "sectionHints": _resolved_hints(request.section_hints, schema),
        "forceStructured": request.force_structured,
    }

    task = TaskSpec(
        name="depot_notes",
        system_prompt=build_notes_prompt(
            schema,
            custom_instructions=request.custom_instructions,
            reference_snippets=_reference_snippets(reference_lookup, transcript),
        ),
        output_model=DepotNotesOutput,
        temperature=temperature,
        sections_key="sections",
    )

    gateway = gateway_factory(schema.sections)
    result = gateway.generate(task, context, request_id=request_id)

    unknown = [i for i in result.checked_items if i not in forwarded_ids]
    if unknown:
        log_with_context(
            logger,
            logging.WARNING,
            "Dropped checked items not present in the forwarded checklist",
            request_id=request_id,
            unknown=unknown,
        )
        result.checked_items = [i for i in result.checked_items if i in forwarded_ids]

    return result


def tweak_section(
    section: CapturedSection,
    instructions: str,
    gateway_factory: GatewayFactory,
    custom_instructions: str | None = None,
    *,
    depot_sections: Any = None,
    base_schema: SectionSchema | None = None,
    temperature: float = 0.2,
    request_id: str | None = None,
) -> DepotSection:
    """
    Rewrite one depot section per the surveyor's instructions.

    The returned name is resolved against the taxonomy; when it cannot be
    resolved the original name is kept. Empty fields in the model output fall
    back to the section's current text.

    Raises:
        BadRequestError: If instructions are blank
        ModelError: If every provider failed
    """
    if not instructions or not instructions.strip():
        raise BadRequestError("instructions required")

    schema = _resolve_schema(depot_sections, base_schema)
    system_prompt = TWEAK_SECTION_SYSTEM_PROMPT
    if custom_instructions and custom_instructions.strip():
        system_prompt += "\n\nAdditional instructions:\n" + custom_instructions.strip()

    task = TaskSpec(
        name="tweak_section",
        system_prompt=system_prompt,
        output_model=TweakSectionOutput,
        temperature=temperature,
        sections_key=None,
    )
    context = {
        "section": section.model_dump(by_alias=True),
        "instructions": instructions.strip(),
    }

    gateway = gateway_factory(schema.sections)
    result = gateway.generate(task, context, request_id=request_id)

    lookup = build_lookup(schema.sections)
    name = resolve(lookup, result.section) or resolve(lookup, section.section) or section.section

    return DepotSection(
        section=name,
        plainText=result.plain_text.strip() or section.plain_text,
        naturalLanguage=result.natural_language.strip() or section.natural_language,
    )
