"""Heating-system recommendation scoring.

Every catalog profile starts at a baseline of 100 points. A fixed sequence of
independent rules each adds or subtracts a delta and records a reason; all
applicable rules fire. The result is clamped to 0-150 when the
expert-preference rule is enabled and 0-100 otherwise.

Usage:
    from survey_brain.core.recommendation_scoring import ScoringEngine
    from survey_brain.core.system_catalog import DEFAULT_CATALOG

    engine = ScoringEngine(DEFAULT_CATALOG)
    gold, silver, bronze = engine.top_tiers(requirements)
"""

from collections.abc import Sequence

from survey_brain.core.logging import get_logger
from survey_brain.core.schemas_recommendation import (
    ActionBenefit,
    RecommendationExplanation,
    Requirements,
    ScoredOption,
    SystemProfile,
    TieredOption,
    WorksCategory,
)

logger = get_logger(__name__)

BASELINE_SCORE = 100.0
EXPERT_CEILING = 150.0
SIMPLE_CEILING = 100.0

EXPERT_BONUS = 50
ON_DEMAND_OCCUPANCY_PENALTY = 30
ON_DEMAND_OCCUPANCY_BONUS = 10
BATHROOM_PENALTY = 25
PRESSURE_PENALTY = 40
PRESSURE_BONUS = 10
LOW_PRESSURE_OPEN_VENTED_BONUS = 15
LOW_PRESSURE_THRESHOLD = 1.0
FLOW_PENALTY = 35
OPEN_VENTED_CONVERSION_PENALTY = 15
LIKE_FOR_LIKE_BONUS = 15
COMBI_TO_CYLINDER_PENALTY = 10
COMPACT_SPACE_BONUS = 20
LOFT_TANK_SPACE_PENALTY = 25
LOW_BUDGET_BONUS = 15
LOW_BUDGET_PREMIUM_PENALTY = 20
EFFICIENCY_BASELINE = 85.0

TIER_NAMES = ("gold", "silver", "bronze")

ON_DEMAND = "On-demand"
UNVENTED = "Unvented"
OPEN_VENTED = "Open vented"
MIXERGY = "Mixergy"


def _fmt(value: float) -> str:
    return f"{value:g}"


class ScoringEngine:
    """Pure scoring over an explicit, read-only profile catalog."""

    def __init__(self, catalog: Sequence[SystemProfile], expert_bonus: bool = True):
        self.catalog = tuple(catalog)
        self.expert_bonus = expert_bonus

    @property
    def ceiling(self) -> float:
        return EXPERT_CEILING if self.expert_bonus else SIMPLE_CEILING

    def score(self, profile: SystemProfile, req: Requirements) -> tuple[float, list[str]]:
        """
        Score one profile against a requirements record.

        Args:
            profile: Catalog profile
            req: Requirements record

        Returns:
            (clamped score, reasons in rule order)
        """
        score = BASELINE_SCORE
        reasons: list[str] = []
        limits = profile.suitable_for

        if self._is_expert_pick(profile.key, req):
            score += EXPERT_BONUS
            reasons.append("Explicitly recommended by the heating expert")

        # Household size vs on-demand hot water
        if profile.water_system == ON_DEMAND and req.occupants > 0:
            if req.occupants > limits.max_occupants:
                score -= ON_DEMAND_OCCUPANCY_PENALTY
                reasons.append(
                    f"{profile.boiler_type} not ideal for {req.occupants} occupants "
                    f"(designed for 1-{limits.max_occupants})"
                )
            else:
                score += ON_DEMAND_OCCUPANCY_BONUS
                reasons.append(f"{profile.boiler_type} well-suited to household size")

        if req.bathrooms > limits.max_bathrooms:
            score -= BATHROOM_PENALTY
            reasons.append(
                f"May struggle with {req.bathrooms} bathrooms "
                f"(max recommended: {limits.max_bathrooms})"
            )

        # Mains pressure
        if limits.requires_pressure > 0:
            if 0 < req.mains_pressure < limits.requires_pressure:
                score -= PRESSURE_PENALTY
                reasons.append(
                    f"Insufficient mains pressure ({_fmt(req.mains_pressure)} bar, "
                    f"needs {_fmt(limits.requires_pressure)} bar)"
                )
            elif req.mains_pressure >= limits.requires_pressure:
                score += PRESSURE_BONUS
                reasons.append("Good mains pressure for this system")
        elif profile.water_system == OPEN_VENTED and req.mains_pressure < LOW_PRESSURE_THRESHOLD:
            score += LOW_PRESSURE_OPEN_VENTED_BONUS
            reasons.append("Open vented ideal for low pressure")

        # Flow rate, only when it was measured
        if limits.requires_flow_rate > 0 and 0 < req.flow_rate < limits.requires_flow_rate:
            score -= FLOW_PENALTY
            reasons.append(
                f"Flow rate too low ({_fmt(req.flow_rate)} L/min, "
                f"needs {_fmt(limits.requires_flow_rate)} L/min)"
            )

        # Conversion costs from the current system
        if req.current_boiler_type and req.current_water_system:
            if req.current_water_system == OPEN_VENTED:
                if profile.water_system in (ON_DEMAND, UNVENTED):
                    score -= OPEN_VENTED_CONVERSION_PENALTY
                    reasons.append("Conversion from open-vented adds cost and may expose existing leaks")
                elif profile.water_system == OPEN_VENTED:
                    score += LIKE_FOR_LIKE_BONUS
                    reasons.append("Like-for-like replacement keeps costs down")

            if req.current_boiler_type == "Combi" and profile.water_system in (UNVENTED, OPEN_VENTED):
                score -= COMBI_TO_CYLINDER_PENALTY
                reasons.append("Adding cylinder requires additional pipework and space")

        if req.has_space_constraints:
            if profile.water_system == ON_DEMAND:
                score += COMPACT_SPACE_BONUS
                reasons.append(f"{profile.boiler_type} ideal for limited space")
            elif profile.boiler_type == "Regular":
                score -= LOFT_TANK_SPACE_PENALTY
                reasons.append("Requires loft tanks - may not fit")

        if req.wants_smart_tech and profile.smart_tech_bonus:
            score += profile.smart_tech_bonus
            reasons.append(f"{profile.water_system} provides smart controls and app integration")

        if req.considering_renewables and profile.renewables_bonus:
            score += profile.renewables_bonus
            reasons.append(f"{profile.water_system} suits renewable integration (solar, heat pumps)")

        if req.budget == "low":
            if profile.cost_tier == "low":
                score += LOW_BUDGET_BONUS
                reasons.append("Lower installation cost")
            elif profile.cost_tier == "high":
                score -= LOW_BUDGET_PREMIUM_PENALTY
                reasons.append("Higher initial investment required")

        score += (profile.efficiency_lower_bound - EFFICIENCY_BASELINE) / 2

        return max(0.0, min(self.ceiling, score)), reasons

    def _is_expert_pick(self, key: str, req: Requirements) -> bool:
        return self.expert_bonus and key in req.expert_recommendations

    def rank(self, req: Requirements) -> list[ScoredOption]:
        """All catalog profiles, best first. Expert picks win ties, other ties keep catalog order."""
        options = []
        for profile in self.catalog:
            score, reasons = self.score(profile, req)
            options.append(ScoredOption(key=profile.key, profile=profile, score=score, reasons=reasons))

        # sorted() is stable
        ranked = sorted(
            options, key=lambda o: (o.score, self._is_expert_pick(o.key, req)), reverse=True
        )
        if ranked:
            logger.debug(
                f"Top recommendation {ranked[0].key} ({_fmt(ranked[0].score)})",
                extra={"extra_data": {"scores": {o.key: o.score for o in ranked}}},
            )
        return ranked

    def top_tiers(self, req: Requirements, n: int = 3) -> list[ScoredOption]:
        """
        The first n ranked options. When the catalog holds fewer than n
        profiles, the last available option is repeated to fill the slots.
        """
        ranked = self.rank(req)
        if not ranked or n <= 0:
            return []
        top = ranked[:n]
        while len(top) < n:
            top.append(top[-1])
        return top

    def build_tiered_options(self, req: Requirements, n: int = 3) -> list[TieredOption]:
        return [build_tiered_option(option, i) for i, option in enumerate(self.top_tiers(req, n))]


# =============================================================================
# Presentation
# =============================================================================


def _tier_for(index: int) -> str:
    return TIER_NAMES[index] if index < len(TIER_NAMES) else TIER_NAMES[-1]


def _visual_tags(profile: SystemProfile) -> list[str]:
    tags = list(dict.fromkeys(profile.visual_tags))
    if "mixergy" in tags and "thermal_store" in tags:
        tags.remove("thermal_store")
    return tags


def build_tiered_option(option: ScoredOption, index: int) -> TieredOption:
    """Presentation option for the option at ranked position index."""
    tier = _tier_for(index)
    profile = option.profile
    benefits = [*profile.strengths, *option.reasons[:3]][:6]
    short_description = (
        option.reasons[0] if option.reasons else profile.best_for or "Recommended based on your property needs."
    )
    return TieredOption(
        tier=tier,
        key=option.key,
        name=f"{tier.capitalize()}: {profile.name}",
        short_description=short_description,
        benefits=benefits,
        visual_tags=_visual_tags(profile),
        score=option.score,
        is_mixergy=profile.water_system == MIXERGY,
    )


def _summary(profile: SystemProfile, req: Requirements, is_recommended: bool) -> str:
    parts = []
    if is_recommended:
        parts.append(
            f"Based on your {req.occupants} occupant household with {req.bathrooms} bathroom(s), "
            f"the {profile.name} is the optimal choice."
        )
    else:
        parts.append(f"The {profile.name} is a viable alternative.")

    required = profile.suitable_for.requires_pressure
    if required > 0 and req.mains_pressure >= required:
        parts.append(f"Your mains pressure ({_fmt(req.mains_pressure)} bar) is suitable for this system.")
    elif required == 0:
        parts.append("This system works with any water pressure, making it reliable.")
    return " ".join(parts)


def reasoning_summary(ranked: Sequence[ScoredOption], req: Requirements) -> str:
    """One-paragraph explanation of the top pick."""
    if not ranked:
        return "No heating systems available to recommend."
    top = ranked[0]
    text = _summary(top.profile, req, is_recommended=True)
    if top.reasons:
        text += " Key factors: " + "; ".join(top.reasons[:3]) + "."
    return text


def _works_involved(profile: SystemProfile, req: Requirements) -> list[WorksCategory]:
    works = [
        WorksCategory(
            category="Boiler Installation",
            items=[
                f"Install new {profile.boiler_type} boiler",
                "Connect to gas supply and flue",
                "Install condensate drain",
                "Fit controls and thermostat",
            ],
        )
    ]

    if profile.water_system in (UNVENTED, MIXERGY):
        works.append(
            WorksCategory(
                category="Cylinder Installation",
                items=[
                    f"Install {profile.water_system} cylinder (typically 150-300L)",
                    "Fit pressure relief and expansion valve",
                    "Install tundish and discharge pipe",
                    "Connect to mains cold water supply",
                    "Configure smart controls and WiFi" if profile.water_system == MIXERGY else "Insulate cylinder",
                ],
            )
        )
    elif profile.water_system == OPEN_VENTED:
        works.append(
            WorksCategory(
                category="Tank and Cylinder",
                items=[
                    "Install cold water storage tank in loft",
                    "Install feed and expansion tank",
                    "Install vented hot water cylinder",
                    "Run gravity feed pipework",
                    "Insulate tanks and pipework",
                ],
            )
        )

    if req.current_water_system == OPEN_VENTED and profile.water_system in (UNVENTED, ON_DEMAND):
        works.append(
            WorksCategory(
                category="System Conversion",
                items=[
                    "Remove existing tanks from loft",
                    "Convert to sealed system",
                    "Add system pressure vessel",
                    "Install filling loop",
                    "Pressure test system (may reveal existing leaks that need repair)",
                ],
            )
        )

    works.append(
        WorksCategory(
            category="Pipework",
            items=[
                "Run heating flow and return pipes",
                "Connect to existing radiators",
                "Install isolation valves",
                "Flush and clean system",
                "Add inhibitor and treat water",
            ],
        )
    )
    works.append(
        WorksCategory(
            category="Commissioning & Certification",
            items=[
                "Test all safety devices",
                "Balance radiator system",
                "Commission controls",
                "Issue Gas Safe certificate",
                "Provide Building Control notification",
                "Demonstrate operation to customer",
            ],
        )
    )
    return works


_WATER_SYSTEM_BENEFITS: dict[str, list[tuple[str, str, str]]] = {
    UNVENTED: [
        ("Installing pressurised cylinder", "Powerful showers without pumps, simultaneous use capability", "£30-50 (pump electricity saved)"),
        ("Removing loft tanks", "No freeze risk, reduced maintenance", "£20-40 (insurance and maintenance)"),
    ],
    MIXERGY: [
        ("Smart stratified heating", "Heat only the water you need, faster recovery times", "£100-200 vs conventional cylinder"),
        ("App control and monitoring", "Track usage, schedule heating, boost when needed", "£50-100 (optimized usage)"),
    ],
    OPEN_VENTED: [
        ("Gravity-fed system", "Works with any water pressure, proven reliability", "N/A"),
        ("Simple maintenance", "No annual safety checks required (unlike unvented)", "£80-120 (safety check costs)"),
    ],
}


def _action_benefits(profile: SystemProfile, req: Requirements) -> list[ActionBenefit]:
    rows: list[tuple[str, str, str]] = []
    if profile.boiler_type == "Combi":
        rows.append(("Removing tanks and cylinder", "Frees up valuable storage space in loft and airing cupboard", "£50-100 (reduced standing losses)"))
        rows.append(("Direct mains connection", "Instant hot water without waiting for cylinder to heat", "N/A"))
    rows.extend(_WATER_SYSTEM_BENEFITS.get(profile.water_system, []))

    if profile.efficiency_lower_bound >= 90:
        rows.append((
            "High-efficiency condensing boiler",
            "Recover heat from flue gases, lower running costs",
            f"£200-400 vs old boiler ({req.occupants} occupants)",
        ))
    rows.append(("Modern controls installation", "Room thermostat, programmer, TRVs for zone control", "£75-150 (optimized heating patterns)"))
    rows.append(("Power flush and system treatment", "Removes sludge, improves efficiency, extends component life", "£50-100 (improved efficiency and reduced breakdowns)"))

    return [ActionBenefit(action=a, benefit=b, annual_saving=s) for a, b, s in rows]


def explain_recommendation(
    option: ScoredOption, req: Requirements, is_recommended: bool = False
) -> RecommendationExplanation:
    """Customer-facing explanation of a scored option, including works involved."""
    profile = option.profile
    return RecommendationExplanation(
        title="✓ Recommended System" if is_recommended else "Alternative Option",
        system_name=profile.name,
        score=round(option.score),
        summary=_summary(profile, req, is_recommended),
        strengths=list(profile.strengths),
        limitations=list(profile.limitations),
        technical_details={
            "efficiency": profile.efficiency,
            "installCost": profile.install_cost,
            "lifespan": profile.lifespan,
            "bestFor": profile.best_for,
        },
        specific_reasons=list(option.reasons),
        works_involved=_works_involved(profile, req),
        action_benefits=_action_benefits(profile, req),
    )
