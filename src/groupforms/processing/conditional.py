"""Conditional structure detection for dimensional patterns."""

from __future__ import annotations

from typing import TYPE_CHECKING

from groupforms import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from groupforms.typing.models import DimensionalPattern, InferredCategoryCombo


def detect_conditional_rules(
    pattern: DimensionalPattern,
    value_rows: Sequence[Sequence[str | None]],
    combo: InferredCategoryCombo,
) -> InferredCategoryCombo:
    """Annotate a combo with values that replace rather than combine with another axis.

    A value that co-occurs with none of another dimension's values yields the
    rule `"If {value}, dimension {other} is omitted"`.

    Args:
        pattern (DimensionalPattern): Pattern whose dimensions align with the rows.
        value_rows (Sequence[Sequence[str | None]]): Axis values per member, None when omitted.
        combo (InferredCategoryCombo): Combo inferred for the pattern.

    Returns:
        InferredCategoryCombo: `combo` unchanged, or a copy flagged conditional with its rules.
    """
    rules: list[str] = []
    for axis, dimension in enumerate(pattern.dimensions):
        for value in dimension.values:
            rows = [row for row in value_rows if row[axis] == value]
            for other_axis, other in enumerate(pattern.dimensions):
                if other_axis == axis:
                    continue
                if all(row[other_axis] is None for row in rows):
                    rules.append(f"If {value}, dimension {other.name} is omitted")

    if not rules:
        return combo

    logger.debug("Conditional structure detected", extra={"combo": combo.name, "rules": rules})
    return combo.model_copy(update={"is_conditional": True, "conditional_rules": tuple(rules)})
