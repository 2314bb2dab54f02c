"""Serializable value validator models."""

from __future__ import annotations

import re
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator

from groupforms.typing.enums import ValidationKind, ValidationState


class FieldValidation(BaseModel):
    """One validator, described by kind and parameters instead of a callable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ValidationKind
    message: str
    pattern: str | None = None
    value: float | None = None

    @model_validator(mode="after")
    def _check_parameters(self) -> Self:
        """Ensure each kind carries exactly the parameters it needs.

        Raises:
            ValueError: If parameters are missing, unexpected or invalid.

        Returns:
            Self: Validated model.
        """
        match self.kind:
            case ValidationKind.PATTERN:
                if self.pattern is None or self.value is not None:
                    raise ValueError("pattern validations need a pattern and no value")  # noqa: TRY003
                try:
                    re.compile(self.pattern)
                except re.error as exc:
                    message = f"invalid validation pattern: {exc}"
                    raise ValueError(message) from exc
            case ValidationKind.MIN_VALUE | ValidationKind.MAX_VALUE:
                if self.value is None or self.pattern is not None:
                    raise ValueError("bound validations need a value and no pattern")  # noqa: TRY003
            case ValidationKind.REQUIRED:
                if self.value is not None or self.pattern is not None:
                    raise ValueError("required validations take no parameters")  # noqa: TRY003
        return self


class ValueValidationResult(BaseModel):
    """Outcome of validating one raw value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    is_valid: bool
    state: ValidationState
    message: str | None = None
