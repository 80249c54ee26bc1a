"""Depot notes API endpoints."""

from uuid import uuid4

from fastapi import APIRouter, Depends

from survey_brain.api.deps import get_gateway_factory, get_reference_lookup, get_section_schema
from survey_brain.chains.depot_notes import (
    GatewayFactory,
    ReferenceLookup,
    generate_depot_notes,
    tweak_section,
)
from survey_brain.core.config import Settings, get_settings
from survey_brain.core.logging import get_logger
from survey_brain.core.schemas_depot import DepotNotesOutput, NotesRequest, TweakSectionRequest
from survey_brain.core.schemas_sections import DepotSection, SectionSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/notes")


@router.post("", response_model=DepotNotesOutput)
def create_depot_notes(
    request: NotesRequest,
    settings: Settings = Depends(get_settings),
    schema: SectionSchema = Depends(get_section_schema),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    reference_lookup: ReferenceLookup | None = Depends(get_reference_lookup),
) -> DepotNotesOutput:
    """Generate structured depot notes from a survey transcript.

    The response always carries exactly one section per canonical section,
    in canonical order.

    Raises:
        BadRequestError: If the transcript is blank
        ModelError: If every provider failed
    """
    request_id = str(uuid4())
    logger.info(
        "Generating depot notes",
        extra={"request_id": request_id, "extra_data": {"transcript_chars": len(request.transcript)}},
    )
    return generate_depot_notes(
        request,
        gateway_factory,
        reference_lookup,
        base_schema=schema,
        temperature=settings.NOTES_TEMPERATURE,
        request_id=request_id,
    )


@router.post("/tweak-section", response_model=DepotSection)
def tweak_depot_section(
    request: TweakSectionRequest,
    settings: Settings = Depends(get_settings),
    schema: SectionSchema = Depends(get_section_schema),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
) -> DepotSection:
    """Rewrite one depot section following the surveyor's instructions."""
    return tweak_section(
        request.section,
        request.instructions,
        gateway_factory,
        request.custom_instructions,
        depot_sections=request.depot_sections,
        base_schema=schema,
        temperature=settings.NOTES_TEMPERATURE,
        request_id=str(uuid4()),
    )
