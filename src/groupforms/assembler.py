"""Grouping orchestration.

Each scope (form section) runs the stages in fixed priority order:
server category combos, dimensional patterns, mutual exclusivity, shared
option sets, semantic similarity, then a flat fallback. Every stage only sees the fields left by
the previous ones, so earlier stages always win and every field ends up in
exactly one strategy.
"""

from __future__ import annotations

import threading
from collections import Counter
from typing import TYPE_CHECKING

from groupforms import logger
from groupforms.async_runner import gather_bounded, run_async
from groupforms.exceptions import GroupingCancelledError, PartitionError
from groupforms.logging import scope_context
from groupforms.metadata_cache import MetadataCache
from groupforms.processing.category_combo import DETECTION_METHOD as SERVER_METADATA
from groupforms.processing.category_combo import resolve_category_combos
from groupforms.processing.conditional import detect_conditional_rules
from groupforms.processing.dimensional import DETECTION_METHOD as NAMING_PATTERN
from groupforms.processing.dimensional import extract_dimensional_patterns
from groupforms.processing.exclusivity import detect_exclusive_groups
from groupforms.processing.semantic import SIMILARITY_PASS as SEMANTIC_SIMILARITY
from groupforms.processing.semantic import cluster_by_option_set, cluster_semantically
from groupforms.settings import get_settings
from groupforms.typing.enums import ConfidenceLevel, GroupType
from groupforms.typing.models import (
    CategoryComboEvidence,
    DimensionalEvidence,
    ExclusivityEvidence,
    GroupingStrategy,
    GroupMetadata,
    SemanticEvidence,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from groupforms.processing.category_combo import CategoryComboResolution
    from groupforms.processing.dimensional import DimensionalCluster
    from groupforms.processing.exclusivity import ExclusivityCluster
    from groupforms.processing.semantic import SemanticCluster
    from groupforms.settings import Settings
    from groupforms.typing.models import FormField, GroupingThresholds
    from groupforms.typing.protocol import CategoryMetadataSource

FLAT_FALLBACK = "flat_fallback"


class CancellationToken:
    """Cooperative cancellation flag checked between scopes and stages."""

    def __init__(self) -> None:
        """Create an unset token."""
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the grouping run."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Return whether cancellation was requested."""
        return self._event.is_set()


def _raise_if_cancelled(cancellation: CancellationToken | None, scope_id: str) -> None:
    if cancellation is not None and cancellation.is_cancelled:
        raise GroupingCancelledError(scope_id=scope_id)


def _member_notes(positions: Iterable[int], notes: Mapping[int, str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(notes[position] for position in positions if position in notes))


class _ScopeRun:
    """Mutable bookkeeping of one scope: remaining positions and emitted strategies."""

    def __init__(self, scope_id: str, fields: Sequence[FormField]) -> None:
        self.scope_id = scope_id
        self.fields = fields
        self.remaining: list[int] = list(range(len(fields)))
        self.assigned: list[int] = []
        self.strategies: list[GroupingStrategy] = []
        self.notes: dict[int, str] = {}

    def remaining_fields(self) -> list[FormField]:
        return [self.fields[position] for position in self.remaining]

    def claim(self, local_indices: Iterable[int]) -> list[int]:
        """Translate indices into `remaining_fields()` to scope positions.

        Claimed positions are removed from the remainder only by `commit`,
        since one stage may claim several clusters.
        """
        return [self.remaining[index] for index in local_indices]

    def emit(self, strategy: GroupingStrategy, positions: list[int]) -> None:
        self.strategies.append(strategy)
        self.assigned.extend(positions)

    def commit(self) -> None:
        taken = set(self.assigned)
        self.remaining = [position for position in self.remaining if position not in taken]

    def verify(self) -> None:
        """Ensure every position was emitted exactly once.

        Raises:
            PartitionError: If a position is missing or emitted twice.
        """
        unique = set(self.assigned)
        missing = len(self.fields) - len(unique & set(range(len(self.fields))))
        duplicated = len(self.assigned) - len(unique)
        if missing or duplicated:
            raise PartitionError(scope_id=self.scope_id, missing=missing, duplicated=duplicated)


class GroupAssembler:
    """Turns the fields of a scope into an ordered list of grouping strategies."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        metadata_source: CategoryMetadataSource | None = None,
        cache: MetadataCache | None = None,
        thresholds: GroupingThresholds | None = None,
    ) -> None:
        """Create an assembler.

        Args:
            settings: Runtime settings, defaults to `get_settings()`.
            metadata_source: Explicit category metadata collaborator, if any.
            cache: Caller-owned metadata cache; a private one is created when omitted.
            thresholds: Threshold override, defaults to `settings.thresholds()`.
        """
        self.settings = settings or get_settings()
        self.thresholds = thresholds or self.settings.thresholds()
        self.metadata_source = metadata_source
        self.cache = cache if cache is not None else MetadataCache()

    async def assemble(
        self,
        scope_id: str,
        fields: Sequence[FormField],
        cancellation: CancellationToken | None = None,
    ) -> list[GroupingStrategy]:
        """Group the fields of one scope.

        Args:
            scope_id: Scope identifier, for logs and errors.
            fields: Fields of the scope in display order.
            cancellation: Optional cancellation token.

        Raises:
            GroupingCancelledError: If cancellation is requested before the scope completes.
            PartitionError: If the emitted strategies do not cover every field exactly once.

        Returns:
            list[GroupingStrategy]: Strategies in stage order, first-seen order within a stage.
        """
        with scope_context(scope_id):
            _raise_if_cancelled(cancellation, scope_id)
            if not fields:
                return []

            run = _ScopeRun(scope_id, fields)
            await self._category_combo_stage(run)
            _raise_if_cancelled(cancellation, scope_id)
            self._dimensional_stage(run)
            _raise_if_cancelled(cancellation, scope_id)
            self._exclusivity_stage(run)
            _raise_if_cancelled(cancellation, scope_id)
            self._semantic_stage(run)
            run.verify()

            logger.info(
                "Scope grouped",
                extra={
                    "field_count": len(fields),
                    "strategy_count": len(run.strategies),
                    "group_types": dict(Counter(strategy.group_type.value for strategy in run.strategies)),
                },
            )
            return run.strategies

    async def analyze_form(
        self,
        sections: Mapping[str, Sequence[FormField]],
        cancellation: CancellationToken | None = None,
    ) -> dict[str, list[GroupingStrategy]]:
        """Group several scopes concurrently.

        Args:
            sections: Fields keyed by scope id.
            cancellation: Optional cancellation token.

        Raises:
            GroupingCancelledError: If cancelled; carries the scopes that completed.

        Returns:
            dict[str, list[GroupingStrategy]]: Strategies keyed by scope id, in input order.
        """

        async def _assemble_one(scope_id: str, fields: Sequence[FormField]) -> list[GroupingStrategy] | None:
            try:
                return await self.assemble(scope_id, fields, cancellation)
            except GroupingCancelledError:
                logger.info("Scope cancelled", extra={"scope_id": scope_id})
                return None

        scope_ids = list(sections)
        results = await gather_bounded(
            (_assemble_one(scope_id, sections[scope_id]) for scope_id in scope_ids),
            limit=self.settings.max_parallel_scopes,
        )

        completed = {
            scope_id: strategies
            for scope_id, strategies in zip(scope_ids, results, strict=True)
            if strategies is not None
        }
        if len(completed) != len(scope_ids):
            raise GroupingCancelledError(completed=completed)
        return completed

    async def _category_combo_stage(self, run: _ScopeRun) -> None:
        outcome = await resolve_category_combos(
            run.fields,
            self.metadata_source,
            self.cache,
            timeout=self.settings.metadata_timeout,
            default_combo_id=self.settings.default_category_combo_id,
        )
        run.notes.update(outcome.notes)
        for resolution in outcome.resolutions:
            positions = list(resolution.member_indices)
            run.emit(self._category_combo_strategy(run, resolution, positions), positions)
        run.commit()

    def _dimensional_stage(self, run: _ScopeRun) -> None:
        clusters = extract_dimensional_patterns(
            run.remaining_fields(),
            separator_threshold=self.thresholds.separator_consistency,
        )
        for cluster in clusters:
            positions = run.claim(cluster.member_indices)
            run.emit(self._dimensional_strategy(run, cluster, positions), positions)
        run.commit()

    def _exclusivity_stage(self, run: _ScopeRun) -> None:
        clusters = detect_exclusive_groups(
            run.remaining_fields(),
            radio_threshold=self.thresholds.radio_group,
            checkbox_threshold=self.thresholds.checkbox_group,
        )
        for cluster in clusters:
            positions = run.claim(cluster.member_indices)
            run.emit(self._exclusivity_strategy(run, cluster, positions), positions)
        run.commit()

    def _semantic_stage(self, run: _ScopeRun) -> None:
        for cluster in cluster_by_option_set(run.remaining_fields()):
            positions = run.claim(cluster.member_indices)
            run.emit(self._semantic_strategy(run, cluster, positions), positions)
        run.commit()

        clusters = cluster_semantically(
            run.remaining_fields(),
            similarity_threshold=self.thresholds.semantic_similarity,
            max_cluster_size=self.thresholds.semantic_max_cluster_size,
        )
        for cluster in clusters:
            positions = run.claim(cluster.member_indices)
            run.emit(self._semantic_strategy(run, cluster, positions), positions)
        run.commit()

    @staticmethod
    def _category_combo_strategy(
        run: _ScopeRun,
        resolution: CategoryComboResolution,
        positions: list[int],
    ) -> GroupingStrategy:
        return GroupingStrategy(
            confidence=ConfidenceLevel.HIGH,
            group_type=resolution.group_type,
            group_title=resolution.title,
            members=tuple(run.fields[position] for position in positions),
            metadata=GroupMetadata(
                evidence=CategoryComboEvidence(
                    category_combo_uid=resolution.category_combo_id,
                    category_combo_structure=resolution.structure,
                    inferred_category_combo=resolution.inferred_category_combo,
                ),
                detection_method=SERVER_METADATA,
                numeric_confidence_score=1.0,
            ),
        )

    @staticmethod
    def _dimensional_strategy(run: _ScopeRun, cluster: DimensionalCluster, positions: list[int]) -> GroupingStrategy:
        combo = detect_conditional_rules(cluster.pattern, cluster.value_rows, cluster.inferred_category_combo)
        return GroupingStrategy(
            confidence=ConfidenceLevel.MEDIUM,
            group_type=GroupType.DIMENSIONAL_GRID,
            group_title=cluster.pattern.base_name,
            members=tuple(run.fields[position] for position in positions),
            metadata=GroupMetadata(
                evidence=DimensionalEvidence(dimensional_pattern=cluster.pattern, inferred_category_combo=combo),
                detection_method=NAMING_PATTERN,
                numeric_confidence_score=cluster.separator.confidence,
                notes=_member_notes(positions, run.notes),
            ),
        )

    @staticmethod
    def _exclusivity_strategy(run: _ScopeRun, cluster: ExclusivityCluster, positions: list[int]) -> GroupingStrategy:
        return GroupingStrategy(
            confidence=ConfidenceLevel.MEDIUM,
            group_type=cluster.group_type,
            group_title=cluster.subject,
            members=tuple(run.fields[position] for position in positions),
            metadata=GroupMetadata(
                evidence=ExclusivityEvidence(mutual_exclusivity_score=cluster.score),
                detection_method=cluster.detection_method,
                numeric_confidence_score=cluster.score,
                notes=_member_notes(positions, run.notes),
            ),
        )

    @staticmethod
    def _semantic_strategy(run: _ScopeRun, cluster: SemanticCluster, positions: list[int]) -> GroupingStrategy:
        group_type = GroupType.FLAT_LIST if cluster.is_singleton else GroupType.SEMANTIC_CLUSTER
        return GroupingStrategy(
            confidence=ConfidenceLevel.LOW,
            group_type=group_type,
            group_title=cluster.title,
            members=tuple(run.fields[position] for position in positions),
            metadata=GroupMetadata(
                evidence=SemanticEvidence(semantic_similarity_score=cluster.score),
                detection_method=FLAT_FALLBACK if cluster.is_singleton else cluster.detection_method,
                numeric_confidence_score=cluster.score,
                notes=_member_notes(positions, run.notes),
            ),
        )


def split_by_section(fields: Iterable[FormField]) -> dict[str, list[FormField]]:
    """Group a flat field list by `section_name`, keeping first-seen order.

    Args:
        fields: Fields of a form.

    Returns:
        dict[str, list[FormField]]: Fields keyed by section name.
    """
    sections: dict[str, list[FormField]] = {}
    for field in fields:
        sections.setdefault(field.section_name, []).append(field)
    return sections


def verify_partition(fields: Sequence[FormField], strategies: Sequence[GroupingStrategy]) -> bool:
    """Return whether the strategies' members are exactly the input fields, as a multiset.

    Args:
        fields: Input fields of a scope.
        strategies: Strategies emitted for the scope.

    Returns:
        bool: True when every field appears exactly as often as in the input.
    """
    emitted = Counter(member for strategy in strategies for member in strategy.members)
    return emitted == Counter(fields)


async def analyze_form(
    sections: Mapping[str, Sequence[FormField]],
    *,
    settings: Settings | None = None,
    metadata_source: CategoryMetadataSource | None = None,
    cache: MetadataCache | None = None,
    cancellation: CancellationToken | None = None,
) -> dict[str, list[GroupingStrategy]]:
    """Group every section of a form concurrently.

    Args:
        sections: Fields keyed by scope id, e.g. from `split_by_section`.
        settings: Runtime settings, defaults to `get_settings()`.
        metadata_source: Explicit category metadata collaborator, if any.
        cache: Caller-owned metadata cache.
        cancellation: Optional cancellation token.

    Returns:
        dict[str, list[GroupingStrategy]]: Strategies keyed by scope id, in input order.
    """
    assembler = GroupAssembler(settings=settings, metadata_source=metadata_source, cache=cache)
    return await assembler.analyze_form(sections, cancellation)


def group_fields(
    fields: Sequence[FormField],
    *,
    scope_id: str = "default",
    settings: Settings | None = None,
    metadata_source: CategoryMetadataSource | None = None,
    cache: MetadataCache | None = None,
    cancellation: CancellationToken | None = None,
) -> list[GroupingStrategy]:
    """Group the fields of one scope from sync code.

    Args:
        fields: Fields of the scope in display order.
        scope_id: Scope identifier, for logs and errors.
        settings: Runtime settings, defaults to `get_settings()`.
        metadata_source: Explicit category metadata collaborator, if any.
        cache: Caller-owned metadata cache.
        cancellation: Optional cancellation token.

    Returns:
        list[GroupingStrategy]: Strategies of the scope.
    """
    assembler = GroupAssembler(settings=settings, metadata_source=metadata_source, cache=cache)
    return run_async(assembler.assemble(scope_id, fields, cancellation))
