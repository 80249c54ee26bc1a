"""API router for v1 endpoints."""

from fastapi import APIRouter

from survey_brain.api import checklist, notes, recommendations

router = APIRouter()

# Depot notes generation and single-section rewrites
router.include_router(notes.router, tags=["notes"])

# Checklist to depot sections/materials
router.include_router(checklist.router, tags=["checklist"])

# Heating-system recommendations
router.include_router(recommendations.router, tags=["recommendations"])
