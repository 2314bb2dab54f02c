"""Fallback clustering by shared option set and label similarity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from groupforms import logger
from groupforms.processing.text import common_concept, jaccard, label_tokens, mean_pairwise_jaccard

if TYPE_CHECKING:
    from collections.abc import Sequence

    from groupforms.typing.models import FormField

SIMILARITY_PASS = "semantic_similarity"
OPTION_SET_PASS = "shared_option_set"

_MIN_OPTION_SET_TITLE_LENGTH = 5


class SemanticCluster(BaseModel):
    """Fields grouped by a shared option set or label similarity; a single member means ungrouped."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    member_indices: tuple[int, ...] = Field(min_length=1)
    title: str
    score: float = Field(ge=0.0, le=1.0)
    detection_method: str = SIMILARITY_PASS

    @property
    def is_singleton(self) -> bool:
        """Return whether the cluster holds one field."""
        return len(self.member_indices) == 1


def _centroid(token_sets: Sequence[frozenset[str]]) -> frozenset[str]:
    """Return the tokens held by at least half of the sets."""
    counts: dict[str, int] = {}
    for tokens in token_sets:
        for token in tokens:
            counts[token] = counts.get(token, 0) + 1
    return frozenset(token for token, count in counts.items() if count * 2 >= len(token_sets))


def cluster_semantically(
    fields: Sequence[FormField],
    *,
    similarity_threshold: float = 0.5,
    max_cluster_size: int = 8,
) -> list[SemanticCluster]:
    """Cluster fields by label token similarity, in input order.

    Every field seeds a cluster unless already taken; later fields join while
    their Jaccard similarity to the running centroid exceeds the threshold.

    Args:
        fields (Sequence[FormField]): Remaining fields of one scope.
        similarity_threshold (float): Similarity a candidate must exceed.
        max_cluster_size (int): Maximum members per cluster.

    Returns:
        list[SemanticCluster]: Clusters covering every field exactly once, singletons included.
    """
    token_sets = [label_tokens(field.name) for field in fields]
    taken: set[int] = set()
    clusters: list[SemanticCluster] = []

    for seed in range(len(fields)):
        if seed in taken:
            continue
        members = [seed]
        taken.add(seed)
        for candidate in range(seed + 1, len(fields)):
            if len(members) >= max_cluster_size:
                break
            if candidate in taken:
                continue
            centroid = _centroid([token_sets[index] for index in members])
            if jaccard(centroid, token_sets[candidate]) > similarity_threshold:
                members.append(candidate)
                taken.add(candidate)

        if len(members) == 1:
            clusters.append(SemanticCluster(member_indices=(seed,), title=fields[seed].name, score=0.0))
            continue

        clusters.append(
            SemanticCluster(
                member_indices=tuple(members),
                title=common_concept(fields[index].name for index in members),
                score=round(mean_pairwise_jaccard([token_sets[index] for index in members]), 4),
            ),
        )

    logger.debug(
        "Semantic clustering finished",
        extra={
            "field_count": len(fields),
            "cluster_count": sum(1 for cluster in clusters if not cluster.is_singleton),
        },
    )
    return clusters


def cluster_by_option_set(
    fields: Sequence[FormField],
    *,
    min_title_length: int = _MIN_OPTION_SET_TITLE_LENGTH,
) -> list[SemanticCluster]:
    """Group fields that answer from the same option set under a shared title.

    Args:
        fields (Sequence[FormField]): Remaining fields of one scope.
        min_title_length (int): Minimum length of the shared leading words.

    Returns:
        list[SemanticCluster]: Clusters of at least two fields, in first-seen order.
    """
    by_option_set: dict[str, list[int]] = {}
    for index, field in enumerate(fields):
        if field.option_set is not None:
            by_option_set.setdefault(field.option_set.id, []).append(index)

    clusters: list[SemanticCluster] = []
    for option_set_id, members in by_option_set.items():
        if len(members) < 2:  # noqa: PLR2004
            continue
        title = common_concept((fields[index].name for index in members), fallback="")
        if len(title) < min_title_length:
            logger.debug("Shared option set without common title", extra={"option_set_id": option_set_id})
            continue
        clusters.append(
            SemanticCluster(
                member_indices=tuple(members),
                title=title,
                score=round(mean_pairwise_jaccard([label_tokens(fields[index].name) for index in members]), 4),
                detection_method=OPTION_SET_PASS,
            ),
        )
    return clusters
