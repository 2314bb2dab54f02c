"""Data-capture field model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from groupforms.typing.enums import DataEntryType
from groupforms.typing.models.options import OptionSet


class FormField(BaseModel):
    """Atomic data-capture field being grouped.

    One field is one cell of a data element: fields of the same data element
    share `id` and differ by `category_option_combo`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    section_name: str = ""
    category_option_combo: str = ""
    data_entry_type: DataEntryType = DataEntryType.TEXT
    explicit_category_combo_id: str | None = None
    option_set: OptionSet | None = None
