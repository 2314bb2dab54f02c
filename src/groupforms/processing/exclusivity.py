"""Mutual exclusivity scoring of un-patterned field clusters.

Only boolean-like fields (yes/no entry types or yes/no option sets) are
candidates. Candidate clusters come from three passes over them:

1. shared option set: fields answering from the same option set, titled by
   their shared leading words;
2. delimiter subject: the label text before its last delimiter, or before a
   trailing parenthetical (`"School Type (Public)"`);
3. word sequence: the longest leading word sequence (at least two words)
   shared with other labels.

Each cluster gets a composite score; high scores read as one-of-N (radio),
middle scores as many-of-N (checkbox), low scores are left to the semantic
stage.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from groupforms import logger
from groupforms.processing.render_type import is_boolean_option_set
from groupforms.processing.text import common_concept, label_words
from groupforms.typing.enums import GroupType

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from groupforms.typing.models import FormField

OPTION_SET_PASS = "exclusivity_option_set"
DELIMITER_PASS = "exclusivity_delimiter"
WORD_SEQUENCE_PASS = "exclusivity_word_sequence"

_DELIMITERS = (" - ", ": ", " – ", " — ", " | ", " / ")
_PARENTHETICAL_RE = re.compile(r"^(.+?)\s*\(([^)]+)\)\s*$")
_MIN_SUBJECT_LENGTH = 3
_MIN_SEQUENCE_WORDS = 2
_MAX_OPTION_WORDS = 5
_MAX_AVERAGE_OPTION_LENGTH = 30

_ATTRIBUTE_WORDS = frozenset({"available", "functioning", "damaged", "working", "broken", "has", "does", "is"})
_COMPOUND_MARKERS = (" and ", " or ", ",")
_ATTRIBUTE_PENALTY = 0.25

_PREFIX_WEIGHT = 0.4
_HOMOGENEITY_WEIGHT = 0.4
_CARDINALITY_WEIGHT = 0.2

# (max cluster size, cardinality factor)
_CARDINALITY_STEPS = ((4, 1.0), (8, 0.6), (15, 0.3))

Candidate = tuple[str, dict[int, str]]
"""Subject and the option suffix of every candidate member, by field index."""


class ExclusivityCluster(BaseModel):
    """Cluster accepted as a radio or checkbox group."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    member_indices: tuple[int, ...]
    subject: str
    score: float = Field(ge=0.0, le=1.0)
    group_type: GroupType
    detection_method: str


def delimiter_subject(label: str) -> tuple[str, str] | None:
    """Split a label into subject and option around its last delimiter.

    Args:
        label (str): Field label.

    Returns:
        tuple[str, str] | None: `(subject, option)`, or None when no delimiter yields a subject
        of at least three characters.
    """
    for delimiter in _DELIMITERS:
        position = label.rfind(delimiter)
        if position <= 0:
            continue
        subject = label[:position].strip()
        if len(subject) >= _MIN_SUBJECT_LENGTH:
            return subject, label[position + len(delimiter) :].strip()

    match = _PARENTHETICAL_RE.match(label)
    if match is not None:
        subject = match.group(1).strip()
        if len(subject) >= _MIN_SUBJECT_LENGTH:
            return subject, match.group(2).strip()
    return None


def _subject_remainder(label: str, subject: str) -> str:
    words = label.split()
    return " ".join(words[len(subject.split()) :]).strip(" -_|:()/")


def _option_set_candidates(fields: Sequence[FormField], available: Sequence[int]) -> list[Candidate]:
    by_option_set: dict[str, list[int]] = {}
    for index in available:
        option_set = fields[index].option_set
        if option_set is not None:
            by_option_set.setdefault(option_set.id, []).append(index)

    candidates: list[Candidate] = []
    for option_set_id, indices in by_option_set.items():
        if len(indices) < 2:  # noqa: PLR2004
            continue
        subject = common_concept((fields[index].name for index in indices), fallback="")
        if len(subject) < _MIN_SUBJECT_LENGTH:
            logger.debug("Option set candidate without shared subject", extra={"option_set_id": option_set_id})
            continue
        candidates.append((subject, {index: _subject_remainder(fields[index].name, subject) for index in indices}))
    return candidates


def _delimiter_candidates(fields: Sequence[FormField], available: Sequence[int]) -> list[Candidate]:
    by_subject: dict[str, dict[int, str]] = {}
    for index in available:
        split = delimiter_subject(fields[index].name)
        if split is None:
            continue
        subject, option = split
        by_subject.setdefault(subject, {})[index] = option
    return [(subject, members) for subject, members in by_subject.items() if len(members) >= 2]  # noqa: PLR2004


def _word_sequence_candidates(fields: Sequence[FormField], available: Sequence[int]) -> list[Candidate]:
    by_prefix: dict[tuple[str, ...], tuple[str, dict[int, str]]] = {}
    for index in available:
        words = fields[index].name.split()
        for length in range(len(words) - 1, _MIN_SEQUENCE_WORDS - 1, -1):
            key = tuple(word.casefold() for word in words[:length])
            _, members = by_prefix.setdefault(key, (" ".join(words[:length]), {}))
            members[index] = " ".join(words[length:])

    ranked = sorted(
        ((key, entry) for key, entry in by_prefix.items() if len(entry[1]) >= 2),  # noqa: PLR2004
        key=lambda item: (-len(item[0]), next(iter(item[1][1]))),
    )
    return [entry for _, entry in ranked]


def _cardinality(size: int) -> float:
    for limit, factor in _CARDINALITY_STEPS:
        if size <= limit:
            return factor
    return 0.0


def _is_boolean_like(field: FormField) -> bool:
    if field.data_entry_type.is_boolean:
        return True
    return field.option_set is not None and is_boolean_option_set(field.option_set)


def _reads_as_attribute(option: str) -> bool:
    padded = f" {option.casefold()} "
    if any(marker in padded for marker in _COMPOUND_MARKERS):
        return True
    return not _ATTRIBUTE_WORDS.isdisjoint(label_words(option))


def exclusivity_score(members: Sequence[FormField], subject: str, options: Sequence[str]) -> float:
    """Score how strongly a cluster reads as one-of-N.

    Args:
        members (Sequence[FormField]): Cluster fields.
        subject (str): Shared naming prefix.
        options (Sequence[str]): Label remainder of each member after the subject.

    Returns:
        float: `0.4 * prefix + 0.4 * homogeneity + 0.2 * cardinality - penalty`, clamped to [0, 1].
    """
    folded = [option.casefold() for option in options]
    prefix = 0.0
    if all(folded) and len(set(folded)) == len(folded):
        subject_size = len(label_words(subject))
        overlap = [subject_size / max(len(label_words(member.name)), 1) for member in members]
        prefix = min(1.0, 2 * sum(overlap) / len(overlap))

    modal_count = Counter(member.data_entry_type for member in members).most_common(1)[0][1]
    homogeneity = modal_count / len(members)

    penalty = _ATTRIBUTE_PENALTY if any(_reads_as_attribute(option) for option in options) else 0.0

    score = (
        _PREFIX_WEIGHT * prefix
        + _HOMOGENEITY_WEIGHT * homogeneity
        + _CARDINALITY_WEIGHT * _cardinality(len(members))
        - penalty
    )
    return round(min(max(score, 0.0), 1.0), 4)


def _options_too_long(options: Sequence[str]) -> bool:
    longest = max(len(option.split()) for option in options)
    average = sum(len(option) for option in options) / len(options)
    return longest > _MAX_OPTION_WORDS or average > _MAX_AVERAGE_OPTION_LENGTH


def detect_exclusive_groups(
    fields: Sequence[FormField],
    *,
    radio_threshold: float = 0.7,
    checkbox_threshold: float = 0.4,
) -> list[ExclusivityCluster]:
    """Find radio and checkbox groups among fields.

    Fields that are not boolean-like are never grouped here. Fields of a
    rejected candidate stay available for the next pass.

    Args:
        fields (Sequence[FormField]): Remaining fields of one scope.
        radio_threshold (float): Minimum score for a radio group.
        checkbox_threshold (float): Minimum score for a checkbox group.

    Returns:
        list[ExclusivityCluster]: Accepted, disjoint clusters; indices refer to `fields`.
    """
    passes: tuple[tuple[str, Callable[[Sequence[FormField], Sequence[int]], list[Candidate]]], ...] = (
        (OPTION_SET_PASS, _option_set_candidates),
        (DELIMITER_PASS, _delimiter_candidates),
        (WORD_SEQUENCE_PASS, _word_sequence_candidates),
    )
    eligible = [index for index, field in enumerate(fields) if _is_boolean_like(field)]
    claimed: set[int] = set()
    accepted: list[ExclusivityCluster] = []

    for detection_method, build_candidates in passes:
        available = [index for index in eligible if index not in claimed]
        if len(available) < 2:  # noqa: PLR2004
            break
        for subject, candidate_options in build_candidates(fields, available):
            indices = [index for index in candidate_options if index not in claimed]
            if len(indices) < 2:  # noqa: PLR2004
                continue
            options = [candidate_options[index] for index in indices]
            if _options_too_long(options):
                logger.debug("Exclusivity candidate rejected", extra={"subject": subject, "reason": "long_options"})
                continue

            score = exclusivity_score([fields[index] for index in indices], subject, options)
            if score >= radio_threshold:
                group_type = GroupType.RADIO_GROUP
            elif score >= checkbox_threshold:
                group_type = GroupType.CHECKBOX_GROUP
            else:
                logger.debug("Exclusivity candidate rejected", extra={"subject": subject, "score": score})
                continue

            claimed.update(indices)
            accepted.append(
                ExclusivityCluster(
                    member_indices=tuple(indices),
                    subject=subject,
                    score=score,
                    group_type=group_type,
                    detection_method=detection_method,
                ),
            )

    return accepted
