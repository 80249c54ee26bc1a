"""Heating-system recommendation API endpoints."""

from fastapi import APIRouter, Depends

from survey_brain.api.deps import get_scoring_engine
from survey_brain.core.errors import RequestValidationFailed
from survey_brain.core.logging import get_logger
from survey_brain.core.recommendation_scoring import (
    ScoringEngine,
    explain_recommendation,
    reasoning_summary,
)
from survey_brain.core.requirements_extraction import (
    derive_requirements,
    detect_expert_recommendations,
    extract_heating_requirements,
    parse_transcript_with_speakers,
)
from survey_brain.core.schemas_recommendation import (
    RecommendationRequest,
    RecommendationResponse,
    Requirements,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/recommendations")


def requirements_for(request: RecommendationRequest) -> Requirements:
    """
    Pick or derive the Requirements record for a recommendation request.

    Priority: explicit requirements, then a saved session (with the
    transcript filling gaps), then depot sections/notes, then the bare
    transcript.

    Raises:
        RequestValidationFailed: If the request carries nothing to work from
    """
    if request.requirements is not None:
        return request.requirements

    if request.session is not None:
        return derive_requirements(request.session, request.transcript)

    if request.sections or request.notes:
        notes = list(request.notes)
        if request.transcript:
            notes.append(request.transcript)
        extracted = extract_heating_requirements(request.sections, notes)
        experts = detect_expert_recommendations(parse_transcript_with_speakers(request.transcript))
        return extracted.model_copy(update={"expert_recommendations": tuple(experts)})

    if request.transcript and request.transcript.strip():
        return derive_requirements({}, request.transcript)

    raise RequestValidationFailed(
        "Provide requirements, or a transcript, sections, notes or session to derive them from"
    )


@router.post("", response_model=RecommendationResponse)
def recommend_systems(
    request: RecommendationRequest,
    engine: ScoringEngine = Depends(get_scoring_engine),
) -> RecommendationResponse:
    """Score every catalog profile and return the Gold/Silver/Bronze view, explaining the top pick."""
    requirements = requirements_for(request)
    ranked = engine.rank(requirements)

    logger.info(
        f"Scored {len(ranked)} heating systems",
        extra={"extra_data": {"top": ranked[0].key if ranked else None}},
    )

    explanation = explain_recommendation(ranked[0], requirements, is_recommended=True) if ranked else None

    return RecommendationResponse(
        requirements=requirements,
        options=ranked,
        tiers=engine.build_tiered_options(requirements, request.count),
        reasoning_summary=reasoning_summary(ranked, requirements),
        explanation=explanation,
    )
