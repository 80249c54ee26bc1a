"""FastAPI dependencies shared by the v1 routers.

Everything that touches configuration or the outside world is built here so
tests can swap it out with app.dependency_overrides.
"""

from collections.abc import Sequence
from functools import lru_cache

from fastapi import Depends

from survey_brain.chains.depot_notes import GatewayFactory, ReferenceLookup
from survey_brain.chains.structured_output import StructuredOutputGateway
from survey_brain.core.config import Settings, get_settings
from survey_brain.core.llm import build_providers
from survey_brain.core.recommendation_scoring import ScoringEngine
from survey_brain.core.schemas_sections import CanonicalSection, SectionSchema
from survey_brain.core.section_schema import default_section_schema, load_section_schema
from survey_brain.core.system_catalog import DEFAULT_CATALOG


@lru_cache
def _schema_from_path(path: str) -> SectionSchema:
    return load_section_schema(path)


def get_section_schema(settings: Settings = Depends(get_settings)) -> SectionSchema:
    """The configured base schema (SECTION_SCHEMA_PATH), or the built-in one."""
    if settings.SECTION_SCHEMA_PATH:
        return _schema_from_path(settings.SECTION_SCHEMA_PATH)
    return default_section_schema()


def get_gateway_factory(settings: Settings = Depends(get_settings)) -> GatewayFactory:
    """Factory producing a gateway over the configured provider chain."""
    providers = build_providers(settings)

    def factory(sections: Sequence[CanonicalSection]) -> StructuredOutputGateway:
        return StructuredOutputGateway(providers, sections)

    return factory


def get_reference_lookup() -> ReferenceLookup | None:
    """No reference store is wired in by default."""
    return None


def get_scoring_engine(settings: Settings = Depends(get_settings)) -> ScoringEngine:
    return ScoringEngine(DEFAULT_CATALOG, expert_bonus=settings.SCORING_EXPERT_BONUS)
