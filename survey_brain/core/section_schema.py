"""Section schema store: the canonical depot-notes taxonomy and checklist catalog.

The built-in schema is plain read-only data. Callers that accept a
user-edited schema pass it through build_section_schema(), which always
returns a closed taxonomy with "Future plans" last.
"""

import json
import logging
from pathlib import Path
from typing import Any

from survey_brain.core.logging import get_logger, log_with_context
from survey_brain.core.schemas_sections import (
    CanonicalSection,
    ChecklistItem,
    Material,
    SectionSchema,
)
from survey_brain.core.section_resolver import normalize_section_key

logger = get_logger(__name__)

FUTURE_PLANS_NAME = "Future plans"
FUTURE_PLANS_DESCRIPTION = "Notes about any future work or follow-on visits."

# =========================
# Built-in taxonomy
# =========================

DEFAULT_SECTION_DEFS: list[tuple[str, str]] = [
    ("Needs", "Customer requirements"),
    ("Working at heights", "Scaffolding, ladders, roof work"),
    ("System characteristics", "Current boiler, pipe size, heating system"),
    ("Components that require assistance", "Heavy lifting, specialist tools"),
    ("Restrictions to work", "Time constraints, access issues"),
    ("External hazards", "Asbestos, dangerous dogs, access"),
    ("Delivery notes", "Material drop-off instructions"),
    ("Office notes", "Internal billing, scheduling"),
    ("New boiler and controls", "Make, model, location"),
    ("Flue", "Type, route, terminal location"),
    ("Pipe work", "Relocations, re-runs, modifications"),
    ("Disruption", "Noise, dust, utility shut-offs"),
    ("Customer actions", "What customer needs to do"),
    (FUTURE_PLANS_NAME, FUTURE_PLANS_DESCRIPTION),
]


def _material(category: str, item: str, qty: int = 1, notes: str = "") -> Material:
    return Material(category=category, item=item, qty=qty, notes=notes)


DEFAULT_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem(
        id="needs_boiler_replacement",
        group="Needs",
        section="Needs",
        label="Boiler replacement",
        plainText="Boiler replacement required",
        naturalLanguage="The customer needs their existing boiler replaced.",
    ),
    ChecklistItem(
        id="heights_ladders_loft",
        group="Access",
        section="Working at heights",
        label="Ladders for loft access",
        plainText="✅ Ladders | Loft access",
        naturalLanguage="Ladders will be needed to access the loft.",
    ),
    ChecklistItem(
        id="heights_scaffold_flue",
        group="Access",
        section="Working at heights",
        label="Scaffold for flue",
        plainText="Scaffold required for flue terminal",
        naturalLanguage="Scaffolding is required to reach the flue terminal safely.",
    ),
    ChecklistItem(
        id="system_open_vented",
        group="Existing system",
        section="System characteristics",
        label="Open vented system",
        plainText="Existing open vented system with loft tanks",
        naturalLanguage="The property currently has an open vented system with tanks in the loft.",
    ),
    ChecklistItem(
        id="assist_two_person_lift",
        group="Access",
        section="Components that require assistance",
        label="Two-person lift",
        plainText="Two-person lift for cylinder",
        naturalLanguage="The cylinder will need two people to lift into position.",
    ),
    ChecklistItem(
        id="boiler_combi_swap",
        group="Boiler",
        section="New boiler and controls",
        label="Combi like-for-like",
        plainText="Fit new combi boiler in existing location",
        naturalLanguage="A new combi boiler will be fitted in the same location as the existing one.",
        materials=(
            _material("Boiler", "Combi boiler"),
            _material("Filter", "Magnetic system filter", notes="22mm"),
        ),
    ),
    ChecklistItem(
        id="controls_hive",
        group="Controls",
        section="New boiler and controls",
        label="Hive smart control",
        plainText="Hive smart thermostat",
        naturalLanguage="A Hive smart thermostat will be installed.",
        materials=(_material("Controls", "Hive Active Heating thermostat"),),
    ),
    ChecklistItem(
        id="flue_horizontal_rear",
        group="Flue",
        section="Flue",
        label="Horizontal rear flue",
        plainText="Horizontal rear flue through external wall",
        naturalLanguage="A horizontal flue will exit through the rear external wall.",
        materials=(_material("Flue", "Horizontal flue kit"),),
    ),
    ChecklistItem(
        id="pipework_gas_upgrade",
        group="Pipework",
        section="Pipe work",
        label="Gas supply upgrade",
        plainText="Upgrade gas supply from meter",
        naturalLanguage="The gas supply will be upgraded from the meter to the boiler.",
        materials=(_material("Misc", "22mm copper pipe", qty=2, notes="3m lengths"),),
    ),
    ChecklistItem(
        id="system_powerflush",
        group="System clean",
        section="Pipe work",
        label="Power flush",
        plainText="Power flush system",
        naturalLanguage="The heating system will be power flushed before the new boiler is commissioned.",
        materials=(_material("System clean", "Power flush chemicals"),),
    ),
    ChecklistItem(
        id="disruption_water_off",
        group="Disruption",
        section="Disruption",
        label="Water off during install",
        plainText="Water off for part of the day",
        naturalLanguage="The water will be switched off for part of the installation day.",
    ),
    ChecklistItem(
        id="customer_clear_loft",
        group="Customer",
        section="Customer actions",
        label="Clear loft access",
        plainText="Customer to clear loft hatch area",
        naturalLanguage="The customer will clear the area around the loft hatch before install.",
    ),
)


def default_section_schema() -> SectionSchema:
    """The built-in 14-section taxonomy and checklist catalog."""
    sections = tuple(
        CanonicalSection(name=name, description=description, order=i)
        for i, (name, description) in enumerate(DEFAULT_SECTION_DEFS, start=1)
    )
    return SectionSchema(sections=sections, checklist=DEFAULT_CHECKLIST)


# =========================
# User-edited schemas
# =========================


def _entries(raw: Any) -> list[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("sections"), list):
        return raw["sections"]
    return []


def _entry_name_and_description(entry: Any) -> tuple[str, str]:
    if isinstance(entry, str):
        return entry.strip(), ""
    if isinstance(entry, dict):
        for key in ("name", "section", "title", "heading"):
            candidate = entry.get(key)
            if isinstance(candidate, str) and candidate.strip():
                description = entry.get("description")
                return candidate.strip(), description.strip() if isinstance(description, str) else ""
    return "", ""


def build_section_schema(
    raw: Any,
    checklist: tuple[ChecklistItem, ...] | None = None,
) -> SectionSchema:
    """
    Build a closed section taxonomy from a user-edited schema.

    Accepts a list of names, a list of {name|section|title|heading} objects,
    or {"sections": [...]}. Empty names and duplicates (by normalized key) are
    dropped; "Future plans" is always present and always last.

    Args:
        raw: User-supplied schema in any supported shape
        checklist: Checklist catalog to carry (defaults to the built-in one)

    Returns:
        SectionSchema; the built-in schema when raw yields no usable names
    """
    default = default_section_schema()
    catalog = default.checklist if checklist is None else checklist

    seen: set[str] = set()
    collected: list[tuple[str, str]] = []
    future_key = normalize_section_key(FUTURE_PLANS_NAME)

    for entry in _entries(raw):
        name, description = _entry_name_and_description(entry)
        key = normalize_section_key(name)
        if not key or key == future_key or key in seen:
            continue
        seen.add(key)
        collected.append((name, description))

    if not collected:
        return SectionSchema(sections=default.sections, checklist=catalog)

    defaults_by_key = {normalize_section_key(n): d for n, d in DEFAULT_SECTION_DEFS}
    collected.append((FUTURE_PLANS_NAME, FUTURE_PLANS_DESCRIPTION))

    sections = tuple(
        CanonicalSection(
            name=name,
            description=description or defaults_by_key.get(normalize_section_key(name), ""),
            order=i,
        )
        for i, (name, description) in enumerate(collected, start=1)
    )
    return SectionSchema(sections=sections, checklist=catalog)


def load_section_schema(path: str | Path) -> SectionSchema:
    """
    Load a section schema from a JSON file.

    The file may hold any shape accepted by build_section_schema(), optionally
    with a "checklist": {"items": [...]} block replacing the built-in catalog.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        pydantic.ValidationError: If checklist items are malformed
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))

    checklist = None
    if isinstance(data, dict):
        block = data.get("checklist")
        items = block.get("items") if isinstance(block, dict) else block
        if isinstance(items, list):
            checklist = tuple(ChecklistItem.model_validate(item) for item in items)

    schema = build_section_schema(data, checklist=checklist)
    log_with_context(
        logger,
        logging.INFO,
        f"Loaded section schema from {path}",
        sections=len(schema.sections),
        checklist_items=len(schema.checklist),
    )
    return schema
