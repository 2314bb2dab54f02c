"""Naming-pattern models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from groupforms.typing.enums import CategoryPattern


class SeparatorDetection(BaseModel):
    """Dominant separator of a label set."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pattern: CategoryPattern
    separator: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    token_count: int = Field(default=0, ge=0, description="Modal token count of matching labels.")

    @property
    def is_flat(self) -> bool:
        """Return whether no separator cleared the acceptance threshold."""
        return self.pattern == CategoryPattern.FLAT


class ImpliedCategory(BaseModel):
    """Category level implied by label structure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    options: tuple[str, ...]
    level: int = Field(ge=0)
    separator: str


class ImpliedCategoryCombination(BaseModel):
    """Section-level implied category structure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    categories: tuple[ImpliedCategory, ...]
    confidence: float = Field(ge=0.0, le=1.0)
    pattern: CategoryPattern
    total_fields: int = Field(ge=0)
    structured_fields: int = Field(ge=0)


class ImpliedCategoryMapping(BaseModel):
    """Implied category options of one field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field_id: str
    field_name: str
    options_by_level: dict[int, str]
    label: str
