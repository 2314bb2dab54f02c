"""Dimensional pattern extraction from label naming conventions.

Labels such as `"Pupils Fed - P1 - Male"` encode a base name followed by
orthogonal axes. Labels are clustered by their first token; token positions
that vary with repeated values become dimensions of an inferred category
combo.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from groupforms import logger
from groupforms.processing.tokenizer import PARENTHETICAL, detect_separator, has_separator, tokenize
from groupforms.typing.models import (
    Dimension,
    DimensionalPattern,
    InferredCategory,
    InferredCategoryCombo,
    SeparatorDetection,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from groupforms.typing.models import FormField

DETECTION_METHOD = "naming_pattern"

_GRADE_RE = re.compile(r"(p|grade|class|form|std)\s*\.?\s*\d+", re.IGNORECASE)
_AGE_RE = re.compile(
    r"(\d+\s*(-|to)\s*\d+.*|[<>]\s*\d+.*|\d+\s*\+.*|(under|over|above|below)\s*\d+.*"
    r"|adults?|child(ren)?|infants?|adolescents?|youths?)",
    re.IGNORECASE,
)
_DIGITS_RE = re.compile(r"\d+")
_GENDER_VALUES = frozenset({"male", "female", "m", "f", "boys", "girls", "men", "women"})
_BOARDING_VALUES = frozenset({"day", "boarding", "boarder", "boarders", "day scholar", "day scholars"})
_LOCATION_VALUES = frozenset({"urban", "rural", "peri-urban", "periurban"})

_DIMENSION_VOCABULARY: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("Grade", lambda value: _GRADE_RE.fullmatch(value) is not None),
    ("Gender", lambda value: value.casefold() in _GENDER_VALUES),
    ("Age Group", lambda value: _AGE_RE.fullmatch(value) is not None),
    ("Boarding Status", lambda value: value.casefold() in _BOARDING_VALUES),
    ("Location", lambda value: value.casefold() in _LOCATION_VALUES),
    ("Numeric Category", lambda value: _DIGITS_RE.fullmatch(value) is not None),
)


class DimensionalCluster(BaseModel):
    """Labels sharing one dimensional pattern.

    `value_rows[i]` holds the axis values of `member_indices[i]`, aligned with
    `pattern.dimensions`; None marks an axis the label omits.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    member_indices: tuple[int, ...]
    pattern: DimensionalPattern
    value_rows: tuple[tuple[str | None, ...], ...]
    inferred_category_combo: InferredCategoryCombo
    separator: SeparatorDetection


def name_dimension(values: Sequence[str], order: int, *, fallback: str | None = None) -> str:
    """Name an axis after the vocabulary matched by a strict majority of its values.

    Args:
        values (Sequence[str]): Distinct axis values.
        order (int): Token position of the axis.
        fallback (str | None): Name used when no vocabulary matches.

    Returns:
        str: Vocabulary name, else `fallback`, else `"Dimension {order}"`.
    """
    for name, matches in _DIMENSION_VOCABULARY:
        if sum(1 for value in values if matches(value)) * 2 > len(values):
            return name
    return fallback or f"Dimension {order}"


def extract_dimensional_patterns(
    fields: Sequence[FormField],
    *,
    separator_threshold: float = 0.6,
) -> list[DimensionalCluster]:
    """Find dimensional clusters among field labels.

    The separator is the most consistent one over every delimited label of the
    scope; the consistency threshold then applies to each first-token cluster,
    so shallower delimited neighbours do not hide a grid.

    Args:
        fields (Sequence[FormField]): Fields of one scope.
        separator_threshold (float): Minimum separator consistency ratio within a cluster.

    Returns:
        list[DimensionalCluster]: Clusters in first-seen order; indices refer to `fields`.
    """
    candidates = [index for index, field in enumerate(fields) if has_separator(field.name)]
    if len(candidates) < 2:  # noqa: PLR2004
        return []

    separator = detect_separator((fields[index].name for index in candidates), threshold=0.0).separator
    if separator is None:
        return []

    clusters: dict[str, list[tuple[int, list[str]]]] = {}
    for index in candidates:
        tokens = tokenize(fields[index].name, separator)
        if len(tokens) < 2:  # noqa: PLR2004
            continue
        clusters.setdefault(tokens[0].casefold(), []).append((index, tokens))

    results: list[DimensionalCluster] = []
    for key, members in clusters.items():
        detection = detect_separator((fields[index].name for index, _ in members), threshold=separator_threshold)
        if detection.separator != separator:
            logger.debug(
                "Dimensional cluster rejected",
                extra={"cluster": key, "reason": "inconsistent_separator", "consistency": detection.confidence},
            )
            continue
        cluster = _build_cluster(members, fields, detection)
        if cluster is not None:
            results.append(cluster)

    logger.debug(
        "Dimensional extraction finished",
        extra={"separator": separator, "cluster_count": len(results)},
    )
    return results


def _build_cluster(
    members: list[tuple[int, list[str]]],
    fields: Sequence[FormField],
    detection: SeparatorDetection,
) -> DimensionalCluster | None:
    width = max(len(tokens) for _, tokens in members)
    columns = [
        [tokens[position] if position < len(tokens) else None for _, tokens in members] for position in range(width)
    ]

    base_width = 0
    for column in columns:
        if None in column or len({value.casefold() for value in column if value is not None}) != 1:
            break
        base_width += 1

    varying: list[int] = []
    for position in range(base_width, width):
        present = [value for value in columns[position] if value is not None]
        distinct = set(present)
        if len(distinct) < 2:  # noqa: PLR2004
            continue
        if len(distinct) == len(present):
            # free-text position: labels are not a grid
            return None
        varying.append(position)

    if len(varying) < 2:  # noqa: PLR2004
        return None

    dimensions: list[Dimension] = []
    used_names: set[str] = set()
    for position in varying:
        values = tuple(dict.fromkeys(value for value in columns[position] if value is not None))
        name = name_dimension(values, position)
        if name in used_names:
            name = f"{name} {position}"
        used_names.add(name)
        dimensions.append(Dimension(name=name, values=values, order=position))

    joiner = " " if detection.separator == PARENTHETICAL else (detection.separator or " ")
    base_name = joiner.join(token for token in (columns[position][0] for position in range(base_width)) if token)
    pattern = DimensionalPattern(base_name=base_name, dimensions=tuple(dimensions))

    value_rows = tuple(tuple(columns[position][row] for position in varying) for row in range(len(members)))
    member_indices = tuple(index for index, _ in members)
    combo = InferredCategoryCombo.from_categories(
        name=base_name,
        categories=tuple(
            InferredCategory(
                name=dimension.name,
                category_options=dimension.values,
                option_count=len(dimension.values),
                detection_method=DETECTION_METHOD,
            )
            for dimension in dimensions
        ),
        observed_combinations=len(set(value_rows)),
        applied_to_fields=tuple(dict.fromkeys(fields[index].id for index in member_indices)),
    )
    return DimensionalCluster(
        member_indices=member_indices,
        pattern=pattern,
        value_rows=value_rows,
        inferred_category_combo=combo,
        separator=detection,
    )
