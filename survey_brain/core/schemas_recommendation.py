"""Pydantic schemas for heating-system recommendations."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Budget = Literal["low", "medium", "high"]
CostTier = Literal["low", "medium", "high"]
Tier = Literal["gold", "silver", "bronze"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Suitability(_CamelModel):
    """Numeric thresholds an archetype is designed for. Zero means no requirement."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    max_occupants: int = Field(..., ge=0)
    max_bathrooms: int = Field(..., ge=0)
    requires_pressure: float = Field(default=0, ge=0, description="Minimum mains pressure (bar)")
    requires_flow_rate: float = Field(default=0, ge=0, description="Minimum flow rate (L/min)")


class SystemProfile(_CamelModel):
    """One heating-system archetype from the static catalog."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    key: str
    name: str
    boiler_type: Literal["Combi", "System", "Regular"]
    water_system: str
    strengths: tuple[str, ...] = ()
    limitations: tuple[str, ...] = ()
    efficiency: str = Field(..., description="Nominal efficiency range, e.g. '90-94%'")
    install_cost: str = ""
    lifespan: str = ""
    best_for: str = ""
    suitable_for: Suitability
    cost_tier: CostTier = "medium"
    smart_tech_bonus: float = 0
    renewables_bonus: float = 0
    visual_tags: tuple[str, ...] = ()

    @property
    def efficiency_lower_bound(self) -> float:
        """Lower end of the efficiency range as a number (90 for '90-94%')."""
        return float(self.efficiency.split("-")[0].strip().rstrip("%"))


class Requirements(_CamelModel):
    """Property and household description used as scoring input. Zero means unknown."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    occupants: int = Field(default=0, ge=0)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    house_type: str = ""
    current_boiler_type: str = ""
    current_water_system: str = ""
    mains_pressure: float = Field(default=0, ge=0, description="Bar")
    flow_rate: float = Field(default=0, ge=0, description="L/min")
    daily_draws: int = Field(default=0, ge=0)
    has_space_constraints: bool = False
    wants_smart_tech: bool = False
    considering_renewables: bool = False
    budget: Budget = "medium"
    expert_recommendations: tuple[str, ...] = ()

    @field_validator("budget", mode="before")
    @classmethod
    def normalize_budget(cls, v: Any) -> str:
        value = v.strip().lower() if isinstance(v, str) else ""
        return value if value in ("low", "medium", "high") else "medium"

    @field_validator("house_type", "current_boiler_type", "current_water_system", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class ScoredOption(_CamelModel):
    """A profile with its clamped score and the reasons behind it."""

    key: str
    profile: SystemProfile
    score: float
    reasons: list[str] = Field(default_factory=list)


class TieredOption(_CamelModel):
    """Presentation-ready option for the Gold/Silver/Bronze view."""

    tier: Tier
    key: str
    name: str
    short_description: str
    benefits: list[str] = Field(default_factory=list)
    visual_tags: list[str] = Field(default_factory=list)
    score: float
    is_mixergy: bool = False


class WorksCategory(_CamelModel):
    category: str
    items: list[str]


class ActionBenefit(_CamelModel):
    action: str
    benefit: str
    annual_saving: str


class RecommendationExplanation(_CamelModel):
    """Customer-facing explanation of one scored option."""

    title: str
    system_name: str
    score: int
    summary: str
    strengths: list[str]
    limitations: list[str]
    technical_details: dict[str, str]
    specific_reasons: list[str]
    works_involved: list[WorksCategory]
    action_benefits: list[ActionBenefit]


# =============================================================================
# API
# =============================================================================


class RecommendationRequest(_CamelModel):
    """Either explicit requirements, or raw survey material to derive them from."""

    requirements: Requirements | None = None
    transcript: str | None = None
    sections: list[dict[str, Any]] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    session: dict[str, Any] | None = None
    count: int = Field(default=3, ge=1, le=5)


class RecommendationResponse(_CamelModel):
    requirements: Requirements
    options: list[ScoredOption]
    tiers: list[TieredOption]
    reasoning_summary: str
    explanation: RecommendationExplanation | None = None
