"""Label text helpers shared by the similarity-based stages."""

from __future__ import annotations

import re
from itertools import combinations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

STOP_WORDS = frozenset(
    {"a", "an", "and", "at", "by", "for", "from", "in", "of", "on", "or", "per", "the", "to", "with"},
)
_WORD_SPLIT = re.compile(r"\W+")


def label_words(label: str) -> list[str]:
    """Return case-folded words of a label in order, punctuation dropped.

    Args:
        label (str): Field label.

    Returns:
        list[str]: Words, stop words included.
    """
    return [word for word in _WORD_SPLIT.split(label.casefold()) if word]


def label_tokens(label: str) -> frozenset[str]:
    """Return the content-word set of a label."""
    return frozenset(word for word in label_words(label) if word not in STOP_WORDS)


def jaccard(left: frozenset[str], right: frozenset[str]) -> float:
    """Return the Jaccard similarity of two token sets (0.0 when both are empty).

    Args:
        left (frozenset[str]): First token set.
        right (frozenset[str]): Second token set.

    Returns:
        float: Similarity in [0, 1].
    """
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def mean_pairwise_jaccard(token_sets: Sequence[frozenset[str]]) -> float:
    """Return the mean Jaccard similarity over all unordered pairs."""
    pairs = list(combinations(token_sets, 2))
    if not pairs:
        return 0.0
    return sum(jaccard(left, right) for left, right in pairs) / len(pairs)


def common_concept(labels: Iterable[str], *, fallback: str = "Related Fields") -> str:
    """Return a title for labels from their longest common word prefix.

    Args:
        labels (Iterable[str]): Member labels.
        fallback (str): Title used when the labels share no leading word.

    Returns:
        str: Shared leading words with trailing separators trimmed, or `fallback`.
    """
    split_labels = [label.split() for label in labels]
    if not split_labels:
        return fallback

    prefix: list[str] = []
    for words in zip(*split_labels, strict=False):
        if any(word.casefold() != words[0].casefold() for word in words[1:]):
            break
        prefix.append(words[0])

    title = " ".join(prefix).strip(" -_|:(/")
    return title or fallback
