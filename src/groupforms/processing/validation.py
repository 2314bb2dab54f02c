"""Default value validators per data entry type and their evaluation."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, assert_never

from groupforms.typing.enums import DataEntryType, ValidationKind, ValidationState
from groupforms.typing.models import FieldValidation, ValueValidationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_REQUIRED_MESSAGE = "This field is required"


def _pattern(regex: str, message: str) -> FieldValidation:
    return FieldValidation(kind=ValidationKind.PATTERN, pattern=regex, message=message)


_DEFAULT_VALIDATIONS: dict[DataEntryType, tuple[FieldValidation, ...]] = {
    DataEntryType.NUMBER: (_pattern(r"^-?\d*\.?\d*$", "Please enter a valid number"),),
    DataEntryType.INTEGER: (_pattern(r"^-?\d+$", "Please enter a valid integer"),),
    DataEntryType.POSITIVE_INTEGER: (_pattern(r"^\d+$", "Please enter a positive integer"),),
    DataEntryType.NEGATIVE_INTEGER: (_pattern(r"^-\d+$", "Please enter a negative integer"),),
    DataEntryType.POSITIVE_NUMBER: (_pattern(r"^\d*\.?\d*$", "Please enter a positive number"),),
    DataEntryType.NEGATIVE_NUMBER: (_pattern(r"^-\d*\.?\d*$", "Please enter a negative number"),),
    DataEntryType.PERCENTAGE: (
        _pattern(r"^\d*\.?\d*$", "Please enter a valid percentage"),
        FieldValidation(kind=ValidationKind.MAX_VALUE, value=100.0, message="Percentage cannot exceed 100%"),
    ),
    DataEntryType.DATE: (_pattern(r"^\d{4}-\d{2}-\d{2}$", "Use date format YYYY-MM-DD"),),
    DataEntryType.PHONE_NUMBER: (_pattern(r"^\+?[0-9]{6,15}$", "Please enter a valid phone number"),),
}


def required(message: str = DEFAULT_REQUIRED_MESSAGE) -> FieldValidation:
    """Return a required-value validation."""
    return FieldValidation(kind=ValidationKind.REQUIRED, message=message)


def default_validations(data_entry_type: DataEntryType) -> tuple[FieldValidation, ...]:
    """Return the built-in validations of a data entry type.

    Args:
        data_entry_type (DataEntryType): Field entry type.

    Returns:
        tuple[FieldValidation, ...]: Validations, empty for free-form types.
    """
    return _DEFAULT_VALIDATIONS.get(data_entry_type, ())


def _to_number(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def _violates(validation: FieldValidation, value: str) -> bool:
    match validation.kind:
        case ValidationKind.REQUIRED:
            return False
        case ValidationKind.PATTERN:
            return re.fullmatch(validation.pattern or "", value) is None
        case ValidationKind.MIN_VALUE:
            number = _to_number(value)
            return number is not None and validation.value is not None and number < validation.value
        case ValidationKind.MAX_VALUE:
            number = _to_number(value)
            return number is not None and validation.value is not None and number > validation.value
        case _:
            assert_never(validation.kind)


def evaluate_validations(value: str | None, validations: Sequence[FieldValidation]) -> ValueValidationResult:
    """Validate a raw value, stopping at the first failing validation.

    Empty values only fail `REQUIRED`; bound checks ignore non-numeric values,
    which pattern validations are expected to reject.

    Args:
        value (str | None): Raw value as entered.
        validations (Sequence[FieldValidation]): Validations in evaluation order.

    Returns:
        ValueValidationResult: Valid result, or the first error.
    """
    stripped = (value or "").strip()
    for validation in validations:
        if not stripped:
            if validation.kind == ValidationKind.REQUIRED:
                return ValueValidationResult(is_valid=False, state=ValidationState.ERROR, message=validation.message)
            continue
        if _violates(validation, stripped):
            return ValueValidationResult(is_valid=False, state=ValidationState.ERROR, message=validation.message)
    return ValueValidationResult(is_valid=True, state=ValidationState.VALID)
