"""Option set models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from groupforms.typing.enums import DataEntryType


class Option(BaseModel):
    """Single option of a closed value domain."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    name: str
    display_name: str | None = None
    icon: str | None = None
    color: str | None = None
    sort_order: int = 0


class OptionSet(BaseModel):
    """Closed value domain attached to a field or an inferred group."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    display_name: str | None = None
    options: tuple[Option, ...] = Field(default_factory=tuple)
    value_type: DataEntryType = DataEntryType.TEXT

    def sorted_options(self) -> list[Option]:
        """Return options ordered by `sort_order` (stable for ties).

        Returns:
            list[Option]: Sorted options.
        """
        return sorted(self.options, key=lambda option: option.sort_order)

    def find_option_by_code(self, code: str) -> Option | None:
        """Return the first option carrying `code`, if any."""
        return next((option for option in self.options if option.code == code), None)

    def display_name_for_code(self, code: str) -> str | None:
        """Return the label shown for an option code.

        Args:
            code (str): Stored option code.

        Returns:
            str | None: Display name, falling back to the option name; None for unknown codes.
        """
        option = self.find_option_by_code(code)
        if option is None:
            return None
        return option.display_name or option.name
