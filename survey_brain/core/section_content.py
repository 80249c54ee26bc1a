"""Depot section text handling: merging, de-duplication and checklist aggregation."""

from __future__ import annotations

import re
from typing import Any

from survey_brain.core.schemas_sections import DepotSection, Material, SectionSchema
from survey_brain.core.section_resolver import build_lookup, resolve

PLACEHOLDER_PLAIN = "• No additional notes;"
PLACEHOLDER_NATURAL = "No additional notes."
PLACEHOLDER_KEY = "no additional notes"

SIMILARITY_THRESHOLD = 0.6

_STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "will", "with", "have", "this", "but", "they", "been",
    }
)

_CLAUSE_SPLIT = re.compile(r";\s*\n|\n+|;")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


def placeholder_section(name: str) -> DepotSection:
    return DepotSection(section=name, plainText=PLACEHOLDER_PLAIN, naturalLanguage=PLACEHOLDER_NATURAL)


# =========================
# Similarity
# =========================


def _normalize_for_comparison(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", str(text or "").lower())
    return re.sub(r"\s+", " ", text).strip()


def _tokens(text: str) -> set[str]:
    normalized = _normalize_for_comparison(text)
    return {t for t in normalized.split(" ") if len(t) > 2 and t not in _STOP_WORDS}


def _similarity(a: str, b: str) -> float:
    """Jaccard similarity over content tokens."""
    ta, tb = _tokens(a), _tokens(b)
    if not ta and not tb:
        return 1.0
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


def lines_similar(a: str, b: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    na, nb = _normalize_for_comparison(a), _normalize_for_comparison(b)
    if na == nb:
        return True
    if na in nb or nb in na:
        return True
    return _similarity(a, b) >= threshold


def deduplicate_lines(lines: list[str], threshold: float = SIMILARITY_THRESHOLD) -> list[str]:
    """Collapse near-duplicate lines, keeping the longest of each group in first-seen position."""
    unique: list[str] = []
    consumed: set[int] = set()

    for i, line in enumerate(lines):
        if i in consumed:
            continue
        best = line
        consumed.add(i)
        for j in range(i + 1, len(lines)):
            if j in consumed:
                continue
            if lines_similar(line, lines[j], threshold):
                consumed.add(j)
                if len(lines[j]) > len(best):
                    best = lines[j]
        unique.append(best)

    return unique


# =========================
# Cleaning
# =========================


def _is_placeholder(text: str) -> bool:
    stripped = re.sub(r"^[•\s]+", "", text).rstrip(" .;").lower()
    return stripped.startswith(PLACEHOLDER_KEY) or stripped == "no notes"


def clean_plain_text(text: str) -> str:
    clauses = [c.strip().lstrip("•").strip() for c in _CLAUSE_SPLIT.split(text or "")]
    clauses = deduplicate_lines([c for c in clauses if c])
    if any(not _is_placeholder(c) for c in clauses):
        clauses = [c for c in clauses if not _is_placeholder(c)]
    return f"{'; '.join(clauses)};" if clauses else ""


def clean_natural_language(text: str) -> str:
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text or "")]
    sentences = deduplicate_lines([s for s in sentences if s])
    if any(not _is_placeholder(s) for s in sentences):
        sentences = [s for s in sentences if not _is_placeholder(s)]
    return " ".join(sentences).strip()


def clean_section_content(section: DepotSection) -> DepotSection:
    """Remove repeated clauses/sentences and redundant placeholders from a section."""
    return DepotSection(
        section=section.section,
        plainText=clean_plain_text(section.plain_text),
        naturalLanguage=clean_natural_language(section.natural_language),
    )


def merge_sections(name: str, parts: list[DepotSection]) -> DepotSection:
    """Merge several entries that resolved to the same canonical section."""
    plain = "\n".join(p.plain_text for p in parts if p.plain_text.strip())
    natural = "\n".join(p.natural_language for p in parts if p.natural_language.strip())
    return clean_section_content(DepotSection(section=name, plainText=plain, naturalLanguage=natural))


def is_empty(section: DepotSection) -> bool:
    return not section.plain_text.strip() and not section.natural_language.strip()


# =========================
# Checklist aggregation
# =========================


def build_depot_output_from_checklist(
    checklist_state: dict[str, Any],
    schema: SectionSchema,
) -> tuple[list[DepotSection], list[Material]]:
    """
    Assemble depot sections and materials from ticked checklist items.

    Args:
        checklist_state: {item_id: {"checked": bool, "extra": str}}
        schema: Section schema whose catalog and order are used

    Returns:
        (sections in canonical order, omitting empty ones; aggregated materials)
    """
    lookup = build_lookup(schema.sections)
    buckets: dict[str, list[DepotSection]] = {}
    materials: list[Material] = []

    for item in schema.checklist:
        state = checklist_state.get(item.id)
        if not isinstance(state, dict) or not state.get("checked"):
            continue

        plain = item.plain_text
        natural = item.natural_language
        extra = state.get("extra")
        if isinstance(extra, str) and extra.strip():
            if plain:
                plain = f"{plain} {extra.strip()}"
            if natural:
                natural = f"{natural} {extra.strip()}"

        section_name = resolve(lookup, item.section)
        if section_name and (plain or natural):
            buckets.setdefault(section_name, []).append(
                DepotSection(section=section_name, plainText=plain, naturalLanguage=natural)
            )

        for material in item.materials:
            materials.append(
                Material(
                    category=material.category or "Other",
                    item=material.item,
                    qty=material.qty,
                    notes=material.notes,
                )
            )

    sections = []
    for name in schema.names:
        parts = buckets.get(name)
        if not parts:
            continue
        merged = merge_sections(name, parts)
        if not is_empty(merged):
            sections.append(merged)

    return sections, materials
