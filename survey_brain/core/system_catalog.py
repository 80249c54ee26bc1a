"""Static catalog of heating-system archetypes.

The catalog is plain read-only data. It is passed into ScoringEngine
explicitly, so tests can substitute their own profiles.
"""

from survey_brain.core.schemas_recommendation import Suitability, SystemProfile

COMBI = SystemProfile(
    key="combi",
    name="Combi Boiler",
    boiler_type="Combi",
    water_system="On-demand",
    strengths=(
        "Space-saving (no cylinder/tanks)",
        "Instant hot water on demand",
        "Lower installation cost",
        "Mains pressure throughout",
        "Simple system with fewer components",
    ),
    limitations=(
        "Flow rate limited by boiler capacity",
        "Simultaneous demand reduces performance",
        "Requires good mains pressure (≥1.5 bar)",
        "Per-draw energy waste (~5.5L per use)",
        "Not ideal for larger households (4+ people)",
    ),
    efficiency="90-94%",
    install_cost="Low-Medium",
    lifespan="10-15 years",
    best_for="1-3 occupants, 1-2 bathrooms, good mains pressure",
    suitable_for=Suitability(max_occupants=3, max_bathrooms=2, requires_pressure=1.5, requires_flow_rate=14),
    cost_tier="low",
    visual_tags=("combi", "hive", "filter", "flush"),
)

SYSTEM_UNVENTED = SystemProfile(
    key="system-unvented",
    name="System Boiler (Unvented Cylinder)",
    boiler_type="System",
    water_system="Unvented",
    strengths=(
        "Excellent flow to multiple outlets",
        "Can serve larger households efficiently",
        "Mains pressure hot water",
        "Compact (no loft tanks)",
        "Simultaneous use capability",
    ),
    limitations=(
        "Requires space for cylinder",
        "Higher installation cost",
        "Standing heat loss (~1.5 kWh/day)",
        "Annual safety valve checks required",
        "Needs good mains pressure",
    ),
    efficiency="88-92%",
    install_cost="Medium-High",
    lifespan="15-20 years",
    best_for="3-6 occupants, 2-4 bathrooms, multiple simultaneous users",
    suitable_for=Suitability(max_occupants=6, max_bathrooms=4, requires_pressure=1.5, requires_flow_rate=12),
    cost_tier="medium",
    visual_tags=("system", "cylinder", "hive", "filter", "flush"),
)

REGULAR_OPEN_VENTED = SystemProfile(
    key="regular-openvented",
    name="Regular Boiler (Open Vented)",
    boiler_type="Regular",
    water_system="Open vented",
    strengths=(
        "Works with any water pressure",
        "Compatible with existing gravity systems",
        "Lower conversion cost if already open-vented",
        "Simultaneous use from stored water",
        "Proven traditional technology",
    ),
    limitations=(
        "Requires loft space for tanks",
        "Lower water pressure",
        "More complex pipework",
        "Slower hot water recovery",
        "Not suitable for mains pressure showers without pumps",
    ),
    efficiency="85-90%",
    install_cost="Medium (Low if converting from existing)",
    lifespan="15-20 years",
    best_for="Poor water pressure, existing open-vented systems, traditional setups",
    suitable_for=Suitability(max_occupants=8, max_bathrooms=3),
    cost_tier="medium",
    visual_tags=("regular", "cylinder", "filter", "flush"),
)

SYSTEM_MIXERGY = SystemProfile(
    key="system-mixergy",
    name="System Boiler (Mixergy Smart Cylinder)",
    boiler_type="System",
    water_system="Mixergy",
    strengths=(
        "Smart stratified heating (heat only what you need)",
        "App control and monitoring",
        "Faster heat-up times",
        "Energy savings vs conventional cylinders",
        "Integration with renewables",
    ),
    limitations=(
        "Higher initial cost",
        "Requires WiFi/app for full benefits",
        "Still needs cylinder space",
        "Relatively new technology",
        "Standing losses (though reduced)",
    ),
    efficiency="92-95%",
    install_cost="High",
    lifespan="15-20 years",
    best_for="Tech-savvy households, future-proofing, renewable integration",
    suitable_for=Suitability(max_occupants=6, max_bathrooms=4, requires_pressure=1.5, requires_flow_rate=12),
    cost_tier="high",
    smart_tech_bonus=15,
    renewables_bonus=10,
    visual_tags=("system", "mixergy", "hive", "filter", "flush"),
)

REGULAR_THERMAL = SystemProfile(
    key="regular-thermal",
    name="Regular Boiler (Thermal Store)",
    boiler_type="Regular",
    water_system="Thermal store",
    strengths=(
        "Excellent for multi-fuel systems",
        "Mains pressure hot water",
        "Works with renewables (solar, heat pumps)",
        "No annual safety checks required",
        "Flexible heating integration",
    ),
    limitations=(
        "Large cylinder required",
        "Higher heat losses than unvented",
        "More expensive installation",
        "Complex system design",
        "Limited installer familiarity",
    ),
    efficiency="85-88%",
    install_cost="High",
    lifespan="20-25 years",
    best_for="Renewable integration, multi-fuel systems, off-grid",
    suitable_for=Suitability(max_occupants=8, max_bathrooms=4),
    cost_tier="high",
    renewables_bonus=20,
    visual_tags=("regular", "cylinder", "filter", "flush"),
)

DEFAULT_CATALOG: tuple[SystemProfile, ...] = (
    COMBI,
    SYSTEM_UNVENTED,
    REGULAR_OPEN_VENTED,
    SYSTEM_MIXERGY,
    REGULAR_THERMAL,
)
