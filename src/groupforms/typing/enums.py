"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class ConfidenceLevel(_EnumMixin):
    """Trust tier of a grouping decision."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Return a comparable rank where higher is more trusted.

        Returns:
            int: Rank of the confidence level.
        """
        return {
            ConfidenceLevel.LOW: 1,
            ConfidenceLevel.MEDIUM: 2,
            ConfidenceLevel.HIGH: 3,
        }[self]


class GroupType(_EnumMixin):
    """Visual structure chosen for a group of fields."""

    RADIO_GROUP = "radio_group"
    CHECKBOX_GROUP = "checkbox_group"
    DIMENSIONAL_GRID = "dimensional_grid"
    SEMANTIC_CLUSTER = "semantic_cluster"
    FLAT_LIST = "flat_list"


class CategoryPattern(_EnumMixin):
    """Naming pattern family detected in a label set."""

    HIERARCHICAL = "hierarchical"
    PREFIX_GROUPED = "prefix_grouped"
    UNDERSCORE_DELIM = "underscore_delim"
    PIPE_DELIM = "pipe_delim"
    PARENTHETICAL = "parenthetical"
    FLAT = "flat"


class DataEntryType(_EnumMixin):
    """Input kind of a data-capture field."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    YES_NO = "yes_no"
    YES_ONLY = "yes_only"
    MULTIPLE_CHOICE = "multiple_choice"
    COORDINATES = "coordinates"
    PERCENTAGE = "percentage"
    INTEGER = "integer"
    POSITIVE_INTEGER = "positive_integer"
    NEGATIVE_INTEGER = "negative_integer"
    POSITIVE_NUMBER = "positive_number"
    NEGATIVE_NUMBER = "negative_number"
    PHONE_NUMBER = "phone_number"

    @property
    def is_boolean(self) -> bool:
        """Return whether the entry type captures a yes/no style answer."""
        return self in {DataEntryType.YES_NO, DataEntryType.YES_ONLY}


class RenderType(_EnumMixin):
    """UI control family for a closed option domain."""

    YES_NO_BUTTONS = "yes_no_buttons"
    RADIO_BUTTONS = "radio_buttons"
    ICON_PALETTE = "icon_palette"
    DROPDOWN = "dropdown"


class ValidationKind(_EnumMixin):
    """Closed set of value validator kinds."""

    REQUIRED = "required"
    MIN_VALUE = "min_value"
    MAX_VALUE = "max_value"
    PATTERN = "pattern"


class ValidationState(_EnumMixin):
    """Outcome state of a value validation."""

    VALID = "valid"
    ERROR = "error"
    WARNING = "warning"
