"""Pydantic schemas for the depot-notes section taxonomy and its outputs."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CanonicalSection(BaseModel):
    """One authoritative depot-notes category."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Canonical section name")
    description: str = Field(default="", description="What belongs in this section")
    order: int = Field(..., ge=1, description="1-based position in the schema")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Section name cannot be blank")
        return v.strip()


class Material(BaseModel):
    """A single materials/parts line. No identity beyond its fields."""

    model_config = ConfigDict(populate_by_name=True)

    category: str = Field(default="Misc", description="Boiler | Cylinder | Flue | Controls | ...")
    item: str = Field(default="", description="Part description, make/model where known")
    qty: int = Field(default=1, ge=1, description="Quantity, at least 1")
    notes: str = Field(default="", description="Size, orientation or location")

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return "Misc"

    @field_validator("item", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v if isinstance(v, str) else ""

    @field_validator("qty", mode="before")
    @classmethod
    def coerce_qty(cls, v: Any) -> int:
        """Anything that is not a positive number becomes 1."""
        try:
            qty = int(float(v))
        except (TypeError, ValueError):
            return 1
        return qty if qty >= 1 else 1


class ChecklistItem(BaseModel):
    """Static checklist catalog entry that maps onto a canonical section."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    group: str = ""
    section: str
    label: str
    plain_text: str = Field(default="", alias="plainText")
    natural_language: str = Field(default="", alias="naturalLanguage")
    materials: tuple[Material, ...] = ()


class DepotSection(BaseModel):
    """One rendered depot-notes section."""

    model_config = ConfigDict(populate_by_name=True)

    section: str
    plain_text: str = Field(default="", alias="plainText")
    natural_language: str = Field(default="", alias="naturalLanguage")

    @field_validator("plain_text", "natural_language", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class SectionSchema(BaseModel):
    """The ordered section taxonomy plus the checklist catalog."""

    model_config = ConfigDict(frozen=True)

    sections: tuple[CanonicalSection, ...]
    checklist: tuple[ChecklistItem, ...] = ()

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.sections]

    def get_item(self, item_id: str) -> ChecklistItem | None:
        for item in self.checklist:
            if item.id == item_id:
                return item
        return None
