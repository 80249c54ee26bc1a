"""Canonical section name resolver.

Maps free-form section labels (model output, user-edited schemas, checklist
config) onto the canonical taxonomy. The lookup table is a pure function of
the canonical section list, so it is cheap to rebuild per request.

Usage:
    from survey_brain.core.section_resolver import build_lookup, resolve

    table = build_lookup(schema.sections)
    resolve(table, "cylinder")  # -> "Cylinders" when the schema has "Cylinders"
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from survey_brain.core.logging import get_logger
from survey_brain.core.schemas_sections import CanonicalSection

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_section_key(raw: str) -> str:
    """Lowercase, spell out '&', collapse punctuation and whitespace."""
    text = str(raw or "").lower().replace("&", " and ")
    return _NON_ALNUM.sub(" ", text).strip()


def _plural_forms(key: str) -> list[str]:
    forms = []
    if key.endswith("ies") and len(key) > 3:
        forms.append(key[:-3] + "y")
    if key.endswith("s") and len(key) > 1:
        forms.append(key[:-1])
    if key.endswith("y") and len(key) > 1:
        forms.append(key[:-1] + "ies")
    return forms


def section_key_variants(key: str) -> list[str]:
    """Variant keys for an already-normalized key, the key itself first."""
    bases = [key]
    if " and " in f" {key} ":
        flattened = " ".join(w for w in key.split(" ") if w != "and")
        if flattened and flattened != key:
            bases.append(flattened)

    variants: list[str] = []
    for base in bases:
        for candidate in [base, *_plural_forms(base)]:
            if candidate and candidate not in variants:
                variants.append(candidate)
    return variants


@dataclass(frozen=True)
class SectionLookup:
    """Variant key -> canonical name table, plus the canonical order."""

    table: dict[str, str] = field(default_factory=dict)
    canonical_names: tuple[str, ...] = ()

    def __contains__(self, raw: object) -> bool:
        return isinstance(raw, str) and resolve(self, raw) is not None


def build_lookup(sections: Iterable[CanonicalSection | str]) -> SectionLookup:
    """
    Build the resolver table for a list of canonical sections.

    Exact keys are registered before any variant so every canonical name
    resolves to itself. Variant collisions keep the earliest-declared section.

    Args:
        sections: Canonical sections (or bare names) in schema order

    Returns:
        SectionLookup for use with resolve()
    """
    names = [s.name if isinstance(s, CanonicalSection) else str(s) for s in sections]
    table: dict[str, str] = {}

    for name in names:
        key = normalize_section_key(name)
        if key and key not in table:
            table[key] = name

    for name in names:
        for variant in section_key_variants(normalize_section_key(name))[1:]:
            existing = table.get(variant)
            if existing is None:
                table[variant] = name
            elif existing != name:
                logger.debug(
                    f"Section variant '{variant}' already maps to '{existing}', ignoring '{name}'"
                )

    return SectionLookup(table=table, canonical_names=tuple(names))


def resolve(lookup: SectionLookup, raw_name: str | None) -> str | None:
    """
    Resolve an arbitrary label to a canonical section name.

    Args:
        lookup: Table from build_lookup()
        raw_name: Free-form section label

    Returns:
        The canonical name, or None when the label is not recognised
    """
    if not isinstance(raw_name, str):
        return None
    key = normalize_section_key(raw_name)
    if not key:
        return None

    hit = lookup.table.get(key)
    if hit is not None:
        return hit

    # Second pass: the caller's label may be the plural/"and" form of a
    # canonical name that was declared in its short form.
    for variant in section_key_variants(key)[1:]:
        hit = lookup.table.get(variant)
        if hit is not None:
            return hit
    return None
