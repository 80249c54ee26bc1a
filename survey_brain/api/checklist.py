"""Checklist API endpoints."""

from fastapi import APIRouter, Depends

from survey_brain.api.deps import get_section_schema
from survey_brain.core.schemas_depot import ChecklistOutputRequest, ChecklistOutputResponse
from survey_brain.core.schemas_sections import SectionSchema
from survey_brain.core.section_content import build_depot_output_from_checklist
from survey_brain.core.section_schema import build_section_schema

router = APIRouter(prefix="/checklist")


@router.post("/depot-output", response_model=ChecklistOutputResponse)
def checklist_depot_output(
    request: ChecklistOutputRequest,
    schema: SectionSchema = Depends(get_section_schema),
) -> ChecklistOutputResponse:
    """Turn ticked checklist items into depot sections and a materials list."""
    if request.depot_sections is not None:
        schema = build_section_schema(request.depot_sections, checklist=schema.checklist)

    state = {item_id: s.model_dump() for item_id, s in request.checklist.items()}
    sections, materials = build_depot_output_from_checklist(state, schema)
    return ChecklistOutputResponse(sections=sections, materials=materials)
