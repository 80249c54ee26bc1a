"""Structured-output gateway.

Drives a prioritized list of text-generation providers to produce a JSON
object, then normalizes it against a task's output model. Section-shaped
output is completed against the canonical taxonomy so that a successful
result always carries exactly one entry per canonical section, in order.

Providers are tried strictly one after another. The first provider whose
payload parses and validates wins; if none does, a single ModelError lists
every provider's failure.

Usage:
    from survey_brain.chains.structured_output import StructuredOutputGateway, TaskSpec

    gateway = StructuredOutputGateway(providers, schema.sections)
    result = gateway.generate(task, {"transcript": "..."})
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from survey_brain.core.errors import ModelError, ProviderError, ProviderFailure
from survey_brain.core.llm import TextGenerationProvider, parse_json_object
from survey_brain.core.logging import get_logger, log_with_context
from survey_brain.core.schemas_sections import CanonicalSection, DepotSection
from survey_brain.core.section_content import is_empty, merge_sections, placeholder_section
from survey_brain.core.section_resolver import SectionLookup, build_lookup, resolve

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class TaskSpec(Generic[T]):
    """Instruction text plus the expected output shape for one task.

    Attributes:
        name: Task name used in logs
        system_prompt: Full instruction text sent as the system message
        output_model: Lenient pydantic model carrying per-field safety defaults
        temperature: Sampling temperature passed to every provider
        sections_key: Top-level key holding section-shaped output, or None
    """

    name: str
    system_prompt: str
    output_model: type[T]
    temperature: float = 0.2
    sections_key: str | None = "sections"


def _raw_section(entry: Any) -> tuple[str | None, DepotSection | None]:
    """Pull (label, content) out of one model-produced section entry."""
    if not isinstance(entry, dict):
        return None, None
    label = None
    for key in ("section", "name", "title", "heading"):
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            label = value
            break
    content = DepotSection(
        section=label or "",
        plainText=entry.get("plainText", entry.get("plain_text", "")),
        naturalLanguage=entry.get("naturalLanguage", entry.get("natural_language", "")),
    )
    return label, content


def complete_sections(
    raw_sections: Any,
    lookup: SectionLookup,
    request_id: str | None = None,
) -> list[dict[str, str]]:
    """
    Resolve, merge and backfill model sections against the canonical taxonomy.

    Entries whose name does not resolve are dropped (and logged). Entries that
    resolve to the same canonical section are merged. Canonical sections with
    no usable content get the "No additional notes" placeholder.

    Args:
        raw_sections: Whatever the model returned under the sections key
        lookup: Resolver table for the request's taxonomy
        request_id: Optional id for log correlation

    Returns:
        One section dict per canonical section, in canonical order (by alias)
    """
    buckets: dict[str, list[DepotSection]] = {}
    dropped: list[str] = []

    for entry in raw_sections if isinstance(raw_sections, list) else []:
        label, content = _raw_section(entry)
        if content is None:
            continue
        canonical = resolve(lookup, label)
        if canonical is None:
            dropped.append(str(label))
            continue
        buckets.setdefault(canonical, []).append(content)

    if dropped:
        log_with_context(
            logger,
            logging.WARNING,
            "Dropped unresolved section names from model output",
            request_id=request_id,
            dropped=dropped,
        )

    completed: list[DepotSection] = []
    backfilled = 0
    for name in lookup.canonical_names:
        parts = buckets.get(name)
        merged = merge_sections(name, parts) if parts else None
        if merged is None or is_empty(merged):
            merged = placeholder_section(name)
            backfilled += 1
        completed.append(merged)

    if backfilled:
        log_with_context(
            logger,
            logging.INFO,
            f"Backfilled {backfilled}/{len(completed)} sections with placeholder",
            request_id=request_id,
        )

    return [s.model_dump(by_alias=True) for s in completed]


class StructuredOutputGateway:
    """Sequential provider fallback with schema-aware normalization."""

    def __init__(
        self,
        providers: Sequence[TextGenerationProvider],
        sections: Iterable[CanonicalSection | str] = (),
    ):
        self.providers = list(providers)
        self.lookup = build_lookup(sections)

    def normalize(self, task: TaskSpec[T], data: dict[str, Any], request_id: str | None = None) -> T:
        """
        Apply section completion and safety defaults to a parsed payload.

        Raises:
            pydantic.ValidationError: If the payload cannot be coerced
        """
        payload = dict(data)
        if task.sections_key:
            payload[task.sections_key] = complete_sections(
                payload.get(task.sections_key), self.lookup, request_id=request_id
            )
        return task.output_model.model_validate(payload)

    def _attempt(
        self, provider: TextGenerationProvider, task: TaskSpec[T], user_content: str, request_id: str | None
    ) -> tuple[T | None, str | None]:
        """One provider attempt: (result, None) on success, (None, failure reason) otherwise."""
        try:
            text = provider.generate(task.system_prompt, user_content, task.temperature)
        except ProviderError as e:
            return None, e.message
        except Exception as e:
            return None, f"Provider call raised {type(e).__name__}: {e}"

        try:
            data = parse_json_object(text)
        except json.JSONDecodeError as e:
            return None, f"Model content was not valid JSON: {e}"
        except (AttributeError, ValueError) as e:
            return None, f"Model content was not a JSON object: {e}"

        try:
            return self.normalize(task, data, request_id=request_id), None
        except ValidationError as e:
            return None, f"Model content failed validation: {e}"

    def generate(self, task: TaskSpec[T], context: dict[str, Any], request_id: str | None = None) -> T:
        """
        Run a task against the provider chain.

        Args:
            task: Instruction text and output shape
            context: Caller-supplied context, sent as JSON user content
            request_id: Optional id for log correlation

        Returns:
            The task's output model, fully normalized

        Raises:
            ModelError: If every provider failed (lists each failure)
        """
        user_content = json.dumps(context, ensure_ascii=False)
        failures: list[ProviderFailure] = []

        for provider in self.providers:
            start = time.time()
            log_with_context(
                logger,
                logging.DEBUG,
                f"Calling provider {provider.name} for {task.name}",
                request_id=request_id,
            )
            result, reason = self._attempt(provider, task, user_content, request_id)
            duration_ms = int((time.time() - start) * 1000)

            if reason is None:
                log_with_context(
                    logger,
                    logging.INFO,
                    f"{task.name} completed via {provider.name}",
                    request_id=request_id,
                    provider=provider.name,
                    duration_ms=duration_ms,
                    failed_providers=len(failures),
                )
                return result

            failures.append(ProviderFailure(provider.name, reason))
            log_with_context(
                logger,
                logging.WARNING,
                f"Provider {provider.name} failed for {task.name}: {reason}",
                request_id=request_id,
                provider=provider.name,
                duration_ms=duration_ms,
            )

        raise ModelError(failures)
