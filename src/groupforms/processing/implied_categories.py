"""Section-level implied category inference for nested rendering.

Programs without explicit category combos still often name fields as
`"<option> - <option> - <label>"`. This module infers the category levels of
a whole section and maps every field onto them.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from groupforms import logger
from groupforms.processing.dimensional import name_dimension
from groupforms.typing.enums import CategoryPattern
from groupforms.typing.models import ImpliedCategory, ImpliedCategoryCombination, ImpliedCategoryMapping

if TYPE_CHECKING:
    from collections.abc import Sequence

    from groupforms.typing.models import FormField

SEPARATORS: tuple[tuple[str, CategoryPattern], ...] = (
    (" - ", CategoryPattern.HIERARCHICAL),
    (" | ", CategoryPattern.PIPE_DELIM),
    ("_", CategoryPattern.UNDERSCORE_DELIM),
    (" / ", CategoryPattern.HIERARCHICAL),
    (": ", CategoryPattern.PREFIX_GROUPED),
)

MIN_CONFIDENCE = 0.6
MIN_STRUCTURED_RATIO = 0.7
MIN_DEPTH_CONSISTENCY = 0.8
MAX_LEVEL_OPTIONS = 20


def _split(name: str, separator: str) -> list[str]:
    return [part.strip() for part in name.split(separator)]


def _try_separator(
    fields: Sequence[FormField],
    separator: str,
    pattern: CategoryPattern,
) -> ImpliedCategoryCombination | None:
    """Infer levels for one separator.

    Args:
        fields (Sequence[FormField]): Section fields.
        separator (str): Candidate separator.
        pattern (CategoryPattern): Pattern reported for the separator.

    Returns:
        ImpliedCategoryCombination | None: Levels and confidence, or None when the labels do not fit.
    """
    parsed = [parts for parts in (_split(field.name, separator) for field in fields) if len(parts) >= 2]  # noqa: PLR2004
    structured_ratio = len(parsed) / len(fields)
    if structured_ratio < MIN_STRUCTURED_RATIO:
        return None

    depth, depth_count = Counter(len(parts) for parts in parsed).most_common(1)[0]
    depth_consistency = depth_count / len(parsed)
    if depth_consistency < MIN_DEPTH_CONSISTENCY:
        return None

    at_depth = [parts for parts in parsed if len(parts) == depth]
    categories: list[ImpliedCategory] = []
    for level in range(depth - 1):
        options = sorted({parts[level] for parts in at_depth})
        if len(options) > MAX_LEVEL_OPTIONS or len(options) == len(at_depth):
            continue
        categories.append(
            ImpliedCategory(
                name=name_dimension(options, level, fallback=f"Category {level + 1}"),
                options=tuple(options),
                level=level,
                separator=separator,
            ),
        )

    if not categories:
        return None

    confidence = 0.5 * structured_ratio + 0.3 * depth_consistency + 0.2 * min(len(categories) / 3, 1.0)
    return ImpliedCategoryCombination(
        categories=tuple(categories),
        confidence=round(confidence, 4),
        pattern=pattern,
        total_fields=len(fields),
        structured_fields=len(parsed),
    )


def infer_implied_categories(fields: Sequence[FormField], section_name: str = "") -> ImpliedCategoryCombination | None:
    """Infer the implied category structure of a section.

    Args:
        fields (Sequence[FormField]): Section fields.
        section_name (str): Section name, for logs.

    Returns:
        ImpliedCategoryCombination | None: First separator reaching the minimum confidence, or None.
    """
    if not fields:
        return None

    for separator, pattern in SEPARATORS:
        combination = _try_separator(fields, separator, pattern)
        if combination is not None and combination.confidence >= MIN_CONFIDENCE:
            logger.info(
                "Implied category structure detected",
                extra={
                    "section": section_name,
                    "separator": separator,
                    "levels": len(combination.categories),
                    "confidence": combination.confidence,
                },
            )
            return combination

    logger.debug("No implied category structure", extra={"section": section_name})
    return None


def create_implied_mappings(
    fields: Sequence[FormField],
    combination: ImpliedCategoryCombination,
) -> list[ImpliedCategoryMapping]:
    """Map each structured field to its option per level and its trailing label.

    Args:
        fields (Sequence[FormField]): Section fields.
        combination (ImpliedCategoryCombination): Inferred structure.

    Returns:
        list[ImpliedCategoryMapping]: Mappings in field order; unstructured fields are skipped.
    """
    if not combination.categories:
        return []
    separator = combination.categories[0].separator

    mappings: list[ImpliedCategoryMapping] = []
    for field in fields:
        parts = _split(field.name, separator)
        if len(parts) < 2:  # noqa: PLR2004
            continue
        options_by_level = {
            category.level: parts[category.level]
            for category in combination.categories
            if category.level < len(parts) - 1
        }
        mappings.append(
            ImpliedCategoryMapping(
                field_id=field.id,
                field_name=field.name,
                options_by_level=options_by_level,
                label=parts[-1] or field.name,
            ),
        )
    return mappings


def group_by_implied_categories(
    mappings: Sequence[ImpliedCategoryMapping],
    combination: ImpliedCategoryCombination,
) -> dict[tuple[str, ...], list[ImpliedCategoryMapping]]:
    """Group mappings by their option path across all levels.

    Args:
        mappings (Sequence[ImpliedCategoryMapping]): Field mappings.
        combination (ImpliedCategoryCombination): Inferred structure.

    Returns:
        dict[tuple[str, ...], list[ImpliedCategoryMapping]]: Mappings keyed by option path, missing
        levels as empty strings, in first-seen order.
    """
    groups: dict[tuple[str, ...], list[ImpliedCategoryMapping]] = {}
    for mapping in mappings:
        path = tuple(mapping.options_by_level.get(category.level, "") for category in combination.categories)
        groups.setdefault(path, []).append(mapping)
    return groups
