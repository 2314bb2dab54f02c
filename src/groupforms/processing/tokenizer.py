"""Label tokenization and dominant separator detection."""

from __future__ import annotations

import re
from collections import Counter
from typing import TYPE_CHECKING

from groupforms import logger
from groupforms.typing.enums import CategoryPattern
from groupforms.typing.models import SeparatorDetection

if TYPE_CHECKING:
    from collections.abc import Iterable

PARENTHETICAL = "()"
"""Pseudo-separator for `"Base (A B C)"` labels."""

SEPARATOR_PRIORITY: tuple[tuple[str, CategoryPattern], ...] = (
    (" - ", CategoryPattern.HIERARCHICAL),
    ("|", CategoryPattern.PIPE_DELIM),
    ("_", CategoryPattern.UNDERSCORE_DELIM),
    (":", CategoryPattern.PREFIX_GROUPED),
    (PARENTHETICAL, CategoryPattern.PARENTHETICAL),
)

_PARENTHETICAL_RE = re.compile(r"^(.*?)\s*\(([^)]+)\)\s*$")


def tokenize(name: str, separator: str) -> list[str]:
    """Split a label into ordered, stripped, non-empty tokens.

    Args:
        name (str): Field label.
        separator (str): Literal separator, or `PARENTHETICAL`.

    Returns:
        list[str]: Tokens. A label without the separator yields one token.
    """
    if separator == PARENTHETICAL:
        match = _PARENTHETICAL_RE.match(name)
        if match is None:
            stripped = name.strip()
            return [stripped] if stripped else []
        base = match.group(1).strip()
        inner = match.group(2).split()
        return [base, *inner] if base else inner
    return [token.strip() for token in name.split(separator) if token.strip()]


def has_separator(name: str) -> bool:
    """Return whether a label contains any candidate separator."""
    return any(len(tokenize(name, separator)) >= 2 for separator, _ in SEPARATOR_PRIORITY)  # noqa: PLR2004


def _consistency(names: list[str], separator: str) -> tuple[float, int]:
    """Return the consistency ratio and modal token count of a separator.

    Args:
        names (list[str]): Labels.
        separator (str): Candidate separator.

    Returns:
        tuple[float, int]: Share of labels splitting into the modal multi-token count, and that count.
    """
    counts = Counter(len(tokenize(name, separator)) for name in names)
    multi = [(occurrences, token_count) for token_count, occurrences in counts.items() if token_count >= 2]  # noqa: PLR2004
    if not multi:
        return 0.0, 0
    occurrences, token_count = max(multi, key=lambda item: (item[0], -item[1]))
    return occurrences / len(names), token_count


def detect_separator(names: Iterable[str], threshold: float = 0.6) -> SeparatorDetection:
    """Pick the dominant separator of a label set.

    Separators are tried in priority order; the highest non-zero consistency
    ratio at or above `threshold` wins and ties keep the earlier separator.

    Args:
        names (Iterable[str]): Labels of one scope.
        threshold (float): Minimum consistency ratio.

    Returns:
        SeparatorDetection: Winning pattern, or `FLAT` with zero confidence.
    """
    labels = list(names)
    best: SeparatorDetection | None = None
    if labels:
        for separator, pattern in SEPARATOR_PRIORITY:
            ratio, token_count = _consistency(labels, separator)
            if ratio > 0.0 and ratio >= threshold and (best is None or ratio > best.confidence):
                best = SeparatorDetection(
                    pattern=pattern,
                    separator=separator,
                    confidence=ratio,
                    token_count=token_count,
                )

    if best is None:
        logger.debug("No dominant separator", extra={"label_count": len(labels), "threshold": threshold})
        return SeparatorDetection(pattern=CategoryPattern.FLAT, confidence=0.0)
    return best
