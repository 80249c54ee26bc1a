"""Build scoring Requirements from survey material.

Two entry points:
- extract_heating_requirements(): keyword scanning over depot sections and notes
- derive_requirements(): structured session fields first, transcript fills gaps,
  plus detection of expert-stated system preferences
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from survey_brain.core.schemas_recommendation import Requirements

_OCCUPANTS = re.compile(r"(\d+)\s*(?:people|persons|occupants|family members)")
_BEDROOMS = re.compile(r"(\d+)\s*bed(?:room)?s?")
_BATHROOMS = re.compile(r"(\d+)\s*bath(?:room)?s?")
_PRESSURE = re.compile(r"(\d+\.?\d*)\s*bar")
_FLOW = re.compile(r"(\d+\.?\d*)\s*(?:l/min|litres? per min)")

_TIMESTAMP = re.compile(r"^\[(\d+):(\d+)\]\s*")
_SPEAKER = re.compile(r"^(?:\[\d+:\d+\]\s*)?([^:\[\]]+):\s*(.+)")

_MIXERGY = re.compile(r"(?:system boiler|system).*?(?:with|and).*?mixergy|\bmixergy\b")
_THERMAL_STORE = re.compile(r"thermal\s+store")
_RECOMMENDATION_PATTERNS = (
    re.compile(r"(?:best|recommend|suggest|advise|should).*?(combi|system boiler|regular boiler|unvented|open vented)"),
    re.compile(r"(?:replace with|upgrade to|install|fit).*?(combi|system boiler|regular boiler|unvented|open vented)"),
)


@dataclass(frozen=True)
class TranscriptSegment:
    speaker: str
    text: str


def _any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def _number(value: Any) -> float:
    """Loose numeric coercion for session fields: anything unusable is 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _current_system_from_text(text: str) -> tuple[str, str]:
    boiler = ""
    if "combi" in text:
        boiler = "Combi"
    elif "system boiler" in text:
        boiler = "System"
    elif "regular boiler" in text or "conventional boiler" in text:
        boiler = "Regular"

    water = ""
    if _any(text, ("open vented", "gravity", "tank in loft")):
        water = "Open vented"
    elif _any(text, ("unvented", "megaflo", "pressurised cylinder")):
        water = "Unvented"
    elif "combi" in text:
        water = "On-demand"
    return boiler, water


def _house_type(text: str) -> str:
    if "flat" in text or "apartment" in text:
        return "flat"
    if "terraced" in text:
        return "terraced"
    if "semi-detached" in text or "semi detached" in text:
        return "semi"
    if "detached" in text:
        return "detached"
    return ""


def _budget(text: str) -> str:
    if _any(text, ("budget", "cheap", "cost-effective")):
        return "low"
    if _any(text, ("premium", "high-end")):
        return "high"
    return "medium"


def _match_int(pattern: re.Pattern, text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def _match_float(pattern: re.Pattern, text: str) -> float:
    match = pattern.search(text)
    return float(match.group(1)) if match else 0.0


def _section_text(section: Any) -> str:
    if isinstance(section, dict):
        plain = section.get("plainText") or section.get("plain_text") or ""
        natural = section.get("naturalLanguage") or section.get("natural_language") or ""
    else:
        plain = getattr(section, "plain_text", "")
        natural = getattr(section, "natural_language", "")
    return f"{plain} {natural}"


def extract_heating_requirements(sections: Iterable[Any], notes: Iterable[str] = ()) -> Requirements:
    """
    Scan depot section text and free notes for heating requirements.

    Args:
        sections: Depot sections (dicts or DepotSection models)
        notes: Additional free-text notes

    Returns:
        Requirements with estimates filled in where values were not found
    """
    text = " ".join(
        [_section_text(s) for s in sections] + [n for n in notes if isinstance(n, str)]
    ).lower()

    occupants = _match_int(_OCCUPANTS, text)
    bedrooms = _match_int(_BEDROOMS, text)
    bathrooms = _match_int(_BATHROOMS, text)
    boiler, water = _current_system_from_text(text)

    if not occupants and bedrooms:
        occupants = max(2, bedrooms)
    if not bathrooms:
        bathrooms = 2 if bedrooms >= 4 else 1

    return Requirements(
        occupants=occupants,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        house_type=_house_type(text),
        current_boiler_type=boiler,
        current_water_system=water,
        mains_pressure=_match_float(_PRESSURE, text),
        flow_rate=_match_float(_FLOW, text),
        daily_draws=occupants * 3,
        has_space_constraints=_any(
            text, ("no loft", "limited space", "small property", "no room for cylinder")
        ),
        wants_smart_tech=_any(text, ("smart", "app control", "wifi")),
        considering_renewables=_any(text, ("solar", "heat pump", "renewable")),
        budget=_budget(text),
    )


# =========================
# Transcript analysis
# =========================


def parse_transcript_with_speakers(text: str | None) -> list[TranscriptSegment]:
    """
    Split a transcript into speaker segments.

    Lines look like "[mm:ss] Speaker: text"; the timestamp and speaker are
    both optional. Unlabelled lines alternate Expert/Customer by line index.
    """
    if not text:
        return []

    segments = []
    lines = [line for line in text.split("\n") if line.strip()]
    for index, line in enumerate(lines):
        content = line
        speaker = None

        timestamp = _TIMESTAMP.match(line)
        if timestamp:
            content = line[timestamp.end():].strip()

        labelled = _SPEAKER.match(line)
        if labelled:
            speaker = labelled.group(1).strip()
            content = labelled.group(2).strip()

        if not speaker:
            speaker = "Expert" if index % 2 == 0 else "Customer"

        if content:
            segments.append(TranscriptSegment(speaker=speaker, text=content))
    return segments


def detect_expert_recommendations(segments: Iterable[TranscriptSegment]) -> list[str]:
    """
    Profile keys the expert explicitly recommended, in detection order.

    Considers segments spoken by an "expert" speaker, plus any segment that
    reads like advice ("best advice", "recommend", "should replace with").
    """
    statements = []
    for seg in segments:
        text = seg.text.lower()
        if "expert" in (seg.speaker or "").lower() or _any(
            text, ("best advice", "recommend", "should replace with")
        ):
            statements.append(text)
    expert_text = " ".join(statements)

    found: list[str] = []
    if _MIXERGY.search(expert_text):
        found.append("system-mixergy")
    if _THERMAL_STORE.search(expert_text):
        found.append("regular-thermal")

    for pattern in _RECOMMENDATION_PATTERNS:
        for match in pattern.finditer(expert_text):
            recommended = match.group(1)
            if "system" in recommended or recommended == "unvented":
                found.append("system-unvented")
            elif "combi" in recommended:
                found.append("combi")
            elif "regular" in recommended or recommended == "open vented":
                found.append("regular-openvented")

    return list(dict.fromkeys(found))


def derive_requirements(session_notes: dict[str, Any] | None, transcript: str | None = None) -> Requirements:
    """
    Assemble Requirements from a saved session, filling gaps from the transcript.

    Args:
        session_notes: Structured session fields (occupants, bedrooms,
            currentSystem, mainsPressure, budget, ...)
        transcript: Raw transcript text

    Returns:
        Requirements including any expert-stated preferences
    """
    notes = session_notes if isinstance(session_notes, dict) else {}
    text = transcript or ""
    lower = text.lower()

    occupants = int(_number(_first(notes, "occupants", "householdSize")))
    bedrooms = int(_number(_first(notes, "bedrooms", "bedroomCount")))
    bathrooms = int(_number(_first(notes, "bathrooms", "bathroomCount")))
    mains_pressure = _number(notes.get("mainsPressure"))
    flow_rate = _number(notes.get("flowRate"))
    daily_draws = int(_number(notes.get("dailyDraws")))
    house_type = _first(notes, "propertyType", "property")
    budget = notes.get("budget") or "medium"

    boiler, water = "", ""
    current = notes.get("currentSystem")
    if current:
        current = str(current).lower()
        if "combi" in current:
            boiler, water = "Combi", "On-demand"
        elif "system" in current:
            boiler, water = "System", "Unvented"
        elif "regular" in current or "heat-only" in current:
            boiler = "Regular"
            water = "Open vented" if "open" in current else ""

    wants_smart = bool(_first(notes, "wantsSmartTech", "smartControls")) or bool(
        re.search(r"\bsmart\b|app control|wifi", lower)
    )
    renewables = bool(_first(notes, "consideringRenewables", "renewables")) or bool(
        re.search(r"solar|heat pump|renewable", lower)
    )
    space = bool(notes.get("spaceConstraints")) or bool(
        re.search(r"no loft|limited space|no room for cylinder", lower)
    )

    if not mains_pressure:
        mains_pressure = _match_float(_PRESSURE, lower)
    if not flow_rate:
        flow_rate = _match_float(_FLOW, lower)
    if not bedrooms:
        bedrooms = _match_int(re.compile(r"(\d+)\s*bed"), lower)
    if not bathrooms:
        bathrooms = _match_int(re.compile(r"(\d+)\s*bath"), lower)

    if not occupants and bedrooms:
        occupants = max(2, bedrooms)
    if not occupants:
        occupants = 2
    if not bathrooms:
        bathrooms = 2 if bedrooms >= 4 else 1
    if not daily_draws:
        daily_draws = occupants * 3

    return Requirements(
        occupants=occupants,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        house_type=house_type if isinstance(house_type, str) else "",
        current_boiler_type=boiler,
        current_water_system=water,
        mains_pressure=mains_pressure,
        flow_rate=flow_rate,
        daily_draws=daily_draws,
        has_space_constraints=space,
        wants_smart_tech=wants_smart,
        considering_renewables=renewables,
        budget=budget,
        expert_recommendations=tuple(detect_expert_recommendations(parse_transcript_with_speakers(text))),
    )
