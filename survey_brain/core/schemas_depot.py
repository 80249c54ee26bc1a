"""Pydantic schemas for depot-notes requests and structured model output.

Output models are deliberately lenient: a missing or wrong-typed top-level
field is replaced by its safety default instead of failing validation.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from survey_brain.core.schemas_sections import DepotSection, Material


def _list_or_empty(v: Any) -> list:
    return v if isinstance(v, list) else []


def _str_or_empty(v: Any) -> str:
    return v if isinstance(v, str) else ""


class MissingInfo(BaseModel):
    """A clarification question for the expert or the customer."""

    target: Literal["expert", "customer"] = "expert"
    question: str

    @field_validator("target", mode="before")
    @classmethod
    def normalize_target(cls, v: Any) -> str:
        """Older prompts say "engineer"; anything unrecognised goes to the expert."""
        if isinstance(v, str) and v.strip().lower() == "customer":
            return "customer"
        return "expert"


# =============================================================================
# Model output
# =============================================================================


class DepotNotesOutput(BaseModel):
    """Normalized result of the depot-notes task."""

    model_config = ConfigDict(populate_by_name=True)

    sections: list[DepotSection] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)
    checked_items: list[str] = Field(default_factory=list, alias="checkedItems")
    missing_info: list[MissingInfo] = Field(default_factory=list, alias="missingInfo")
    customer_summary: str = Field(default="", alias="customerSummary")

    @field_validator("sections", mode="before")
    @classmethod
    def sections_list(cls, v: Any) -> list:
        return _list_or_empty(v)

    @field_validator("materials", mode="before")
    @classmethod
    def materials_list(cls, v: Any) -> list:
        """Drop entries that are not objects or name no item."""
        return [
            m for m in _list_or_empty(v)
            if isinstance(m, dict) and isinstance(m.get("item"), str) and m["item"].strip()
        ]

    @field_validator("checked_items", mode="before")
    @classmethod
    def checked_items_list(cls, v: Any) -> list[str]:
        return [item for item in _list_or_empty(v) if isinstance(item, str) and item.strip()]

    @field_validator("missing_info", mode="before")
    @classmethod
    def missing_info_list(cls, v: Any) -> list:
        return [
            m for m in _list_or_empty(v)
            if isinstance(m, dict) and isinstance(m.get("question"), str) and m["question"].strip()
        ]

    @field_validator("customer_summary", mode="before")
    @classmethod
    def summary_str(cls, v: Any) -> str:
        return _str_or_empty(v)


class TweakSectionOutput(BaseModel):
    """Result of rewriting a single section."""

    model_config = ConfigDict(populate_by_name=True)

    section: str = ""
    plain_text: str = Field(default="", alias="plainText")
    natural_language: str = Field(default="", alias="naturalLanguage")

    @field_validator("section", "plain_text", "natural_language", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return _str_or_empty(v)


# =============================================================================
# Requests
# =============================================================================


class CapturedSection(BaseModel):
    """A section the engineer has already captured."""

    model_config = ConfigDict(populate_by_name=True)

    section: str = ""
    plain_text: str = Field(default="", alias="plainText")
    natural_language: str = Field(default="", alias="naturalLanguage")

    @field_validator("section", "plain_text", "natural_language", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        return _str_or_empty(v)


class NotesRequest(BaseModel):
    """Inbound depot-notes request."""

    model_config = ConfigDict(populate_by_name=True)

    transcript: str = Field(..., description="Survey transcript (required, non-empty)")
    checklist_items: list[dict[str, Any]] = Field(default_factory=list, alias="checklistItems")
    depot_sections: list[Any] | dict[str, Any] | None = Field(default=None, alias="depotSections")
    already_captured: list[CapturedSection] = Field(default_factory=list, alias="alreadyCaptured")
    expected_sections: list[str] = Field(default_factory=list, alias="expectedSections")
    section_hints: dict[str, str] = Field(default_factory=dict, alias="sectionHints")
    force_structured: bool = Field(default=False, alias="forceStructured")
    custom_instructions: str | None = Field(default=None, alias="customInstructions")

    @field_validator("checklist_items", mode="before")
    @classmethod
    def checklist_objects(cls, v: Any) -> list:
        return [item for item in _list_or_empty(v) if isinstance(item, dict)]

    @field_validator("already_captured", mode="before")
    @classmethod
    def captured_objects(cls, v: Any) -> list:
        return [item for item in _list_or_empty(v) if isinstance(item, dict)]


class TweakSectionRequest(BaseModel):
    """Request to rewrite one section per engineer instructions."""

    model_config = ConfigDict(populate_by_name=True)

    section: CapturedSection
    instructions: str = Field(..., min_length=1)
    custom_instructions: str | None = Field(default=None, alias="customInstructions")
    depot_sections: list[Any] | dict[str, Any] | None = Field(default=None, alias="depotSections")


class ChecklistState(BaseModel):
    checked: bool = False
    extra: str | None = None


class ChecklistOutputRequest(BaseModel):
    """Ticked checklist items to turn into depot sections and materials."""

    model_config = ConfigDict(populate_by_name=True)

    checklist: dict[str, ChecklistState] = Field(default_factory=dict)
    depot_sections: list[Any] | dict[str, Any] | None = Field(default=None, alias="depotSections")


class ChecklistOutputResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sections: list[DepotSection] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)
