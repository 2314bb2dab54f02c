"""Definitive grouping from explicit server category combo metadata."""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from groupforms import logger
from groupforms.exceptions import MetadataUnavailableError
from groupforms.processing.render_type import compute_render_type
from groupforms.typing.enums import GroupType, RenderType
from groupforms.typing.models import (
    InferredCategory,
    InferredCategoryCombo,
    Option,
    OptionSet,
    ServerCategory,
    ServerCategoryOption,
    ServerCategoryOptionCombo,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from groupforms.metadata_cache import MetadataCache
    from groupforms.typing.models import FormField
    from groupforms.typing.protocol import CategoryMetadataSource

DETECTION_METHOD = "server_metadata"
DEFAULT_CATEGORY_COMBO_ID = "bjDvmb4bfuf"


class CategoryComboResolution(BaseModel):
    """Fields grouped by one explicit category combo."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    member_indices: tuple[int, ...]
    category_combo_id: str
    title: str
    group_type: GroupType
    structure: tuple[ServerCategory, ...] = Field(min_length=1)
    inferred_category_combo: InferredCategoryCombo


class CategoryComboOutcome(BaseModel):
    """Result of the category combo stage for one scope.

    `notes` maps field indices whose metadata could not be fetched to the
    message later strategies must carry.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    resolutions: tuple[CategoryComboResolution, ...] = ()
    notes: dict[int, str] = Field(default_factory=dict)


async def _call_source(
    source: CategoryMetadataSource,
    method_name: str,
    combo_id: str,
    timeout: float,
) -> Any:  # noqa: ANN401
    """Call a collaborator method, preferring its async twin, under a timeout.

    Args:
        source (CategoryMetadataSource): Metadata collaborator.
        method_name (str): Sync method name; `a{method_name}` is awaited instead when it is a coroutine function.
        combo_id (str): Category combo identifier.
        timeout (float): Timeout in seconds.

    Raises:
        MetadataUnavailableError: If the call fails or times out.

    Returns:
        Any: Raw collaborator payload.
    """
    async_method = getattr(source, f"a{method_name}", None)
    try:
        if async_method is not None and inspect.iscoroutinefunction(async_method):
            return await asyncio.wait_for(async_method(combo_id), timeout=timeout)
        return await asyncio.wait_for(asyncio.to_thread(getattr(source, method_name), combo_id), timeout=timeout)
    except TimeoutError as exc:
        raise MetadataUnavailableError(category_combo_id=combo_id, reason=f"timed out after {timeout}s") from exc
    except Exception as exc:
        raise MetadataUnavailableError(category_combo_id=combo_id, reason=str(exc) or type(exc).__name__) from exc


async def fetch_structure(
    source: CategoryMetadataSource,
    cache: MetadataCache,
    combo_id: str,
    *,
    timeout: float,
) -> tuple[ServerCategory, ...]:
    """Return the normalized structure of a category combo, through the cache.

    Args:
        source (CategoryMetadataSource): Metadata collaborator.
        cache (MetadataCache): Caller-owned cache.
        combo_id (str): Category combo identifier.
        timeout (float): Timeout in seconds.

    Raises:
        MetadataUnavailableError: If the collaborator fails, times out or returns malformed data.

    Returns:
        tuple[ServerCategory, ...]: Categories in server order, possibly empty.
    """
    cached = cache.get_structure(combo_id)
    if cached is not None:
        return cached

    raw = await _call_source(source, "get_category_combo_structure", combo_id, timeout)
    try:
        structure = tuple(
            ServerCategory(
                name=name,
                options=tuple(
                    ServerCategoryOption(id=option_id, display_name=display_name)
                    for option_id, display_name in options
                ),
            )
            for name, options in raw or ()
        )
    except (TypeError, ValueError) as exc:
        raise MetadataUnavailableError(category_combo_id=combo_id, reason=f"malformed structure: {exc}") from exc

    cache.put_structure(combo_id, structure)
    return structure


async def fetch_option_combos(
    source: CategoryMetadataSource,
    cache: MetadataCache,
    combo_id: str,
    *,
    timeout: float,
) -> tuple[ServerCategoryOptionCombo, ...]:
    """Return the normalized option combos of a category combo, through the cache.

    Args:
        source (CategoryMetadataSource): Metadata collaborator.
        cache (MetadataCache): Caller-owned cache.
        combo_id (str): Category combo identifier.
        timeout (float): Timeout in seconds.

    Raises:
        MetadataUnavailableError: If the collaborator fails, times out or returns malformed data.

    Returns:
        tuple[ServerCategoryOptionCombo, ...]: Declared option combos.
    """
    cached = cache.get_option_combos(combo_id)
    if cached is not None:
        return cached

    raw = await _call_source(source, "get_category_option_combos", combo_id, timeout)
    try:
        option_combos = tuple(
            ServerCategoryOptionCombo(id=option_combo_id, option_ids=tuple(option_ids))
            for option_combo_id, option_ids in raw or ()
        )
    except (TypeError, ValueError) as exc:
        raise MetadataUnavailableError(category_combo_id=combo_id, reason=f"malformed option combos: {exc}") from exc

    cache.put_option_combos(combo_id, option_combos)
    return option_combos


def _single_category_group_type(combo_id: str, category: ServerCategory) -> GroupType:
    option_set = OptionSet(
        id=combo_id,
        name=category.name,
        options=tuple(
            Option(code=option.display_name, name=option.display_name, sort_order=position)
            for position, option in enumerate(category.options)
        ),
    )
    if compute_render_type(option_set) in {RenderType.YES_NO_BUTTONS, RenderType.RADIO_BUTTONS}:
        return GroupType.RADIO_GROUP
    return GroupType.CHECKBOX_GROUP


def _cluster_by_combo(
    fields: Sequence[FormField],
    default_combo_id: str,
) -> dict[tuple[str, str], list[int]]:
    clusters: dict[tuple[str, str], list[int]] = {}
    for index, field in enumerate(fields):
        combo_id = field.explicit_category_combo_id
        if not combo_id or combo_id == default_combo_id:
            continue
        clusters.setdefault((field.id, combo_id), []).append(index)
    return clusters


async def resolve_category_combos(
    fields: Sequence[FormField],
    source: CategoryMetadataSource | None,
    cache: MetadataCache,
    *,
    timeout: float = 5.0,
    default_combo_id: str = DEFAULT_CATEGORY_COMBO_ID,
) -> CategoryComboOutcome:
    """Group fields carrying an explicit category combo by server metadata.

    Fetch failures never propagate: the affected fields are left for the
    inference stages and receive a note.

    Args:
        fields (Sequence[FormField]): Fields of one scope.
        source (CategoryMetadataSource | None): Metadata collaborator, None when unavailable.
        cache (MetadataCache): Caller-owned cache.
        timeout (float): Timeout in seconds per collaborator call.
        default_combo_id (str): Server default combo, treated as no explicit metadata.

    Returns:
        CategoryComboOutcome: Resolutions in first-seen order plus failure notes.
    """
    clusters = _cluster_by_combo(fields, default_combo_id)
    if not clusters or source is None:
        return CategoryComboOutcome()

    structures: dict[str, tuple[ServerCategory, ...] | MetadataUnavailableError] = {}
    resolutions: list[CategoryComboResolution] = []
    notes: dict[int, str] = {}

    for (field_id, combo_id), indices in clusters.items():
        if combo_id not in structures:
            try:
                structures[combo_id] = await fetch_structure(source, cache, combo_id, timeout=timeout)
            except MetadataUnavailableError as exc:
                logger.warning(
                    "Category combo metadata unavailable",
                    extra={"category_combo_id": combo_id, "reason": exc.reason},
                )
                structures[combo_id] = exc

        structure = structures[combo_id]
        if isinstance(structure, MetadataUnavailableError):
            notes.update(dict.fromkeys(indices, str(structure)))
            continue
        if not structure:
            logger.debug("Empty category combo structure", extra={"category_combo_id": combo_id})
            continue

        members = [fields[index] for index in indices]
        actual = await _actual_combinations(source, cache, combo_id, members, timeout=timeout)
        inferred = InferredCategoryCombo.from_categories(
            name=members[0].name,
            categories=tuple(
                InferredCategory(
                    name=category.name,
                    category_options=tuple(option.display_name for option in category.options),
                    option_count=len(category.options),
                    detection_method=DETECTION_METHOD,
                )
                for category in structure
            ),
            observed_combinations=actual,
            applied_to_fields=(field_id,),
        )
        if len(structure) >= 2:  # noqa: PLR2004
            group_type = GroupType.DIMENSIONAL_GRID
        else:
            group_type = _single_category_group_type(combo_id, structure[0])
        resolutions.append(
            CategoryComboResolution(
                member_indices=tuple(indices),
                category_combo_id=combo_id,
                title=members[0].name,
                group_type=group_type,
                structure=structure,
                inferred_category_combo=inferred,
            ),
        )

    logger.debug(
        "Category combo stage finished",
        extra={"resolved": len(resolutions), "unavailable_fields": len(notes)},
    )
    return CategoryComboOutcome(resolutions=tuple(resolutions), notes=notes)


async def _actual_combinations(
    source: CategoryMetadataSource,
    cache: MetadataCache,
    combo_id: str,
    members: list[FormField],
    *,
    timeout: float,
) -> int:
    """Count member option combos declared by the server.

    Falls back to the distinct member option combos when the declared list
    cannot be fetched or matches none of them.

    Args:
        source (CategoryMetadataSource): Metadata collaborator.
        cache (MetadataCache): Caller-owned cache.
        combo_id (str): Category combo identifier.
        members (list[FormField]): Fields of the cluster.
        timeout (float): Timeout in seconds.

    Returns:
        int: Number of distinct option combos present among the members.
    """
    present = {member.category_option_combo for member in members if member.category_option_combo}
    try:
        declared = await fetch_option_combos(source, cache, combo_id, timeout=timeout)
    except MetadataUnavailableError as exc:
        logger.warning(
            "Category option combos unavailable",
            extra={"category_combo_id": combo_id, "reason": exc.reason},
        )
        return len(present)

    matched = present & {option_combo.id for option_combo in declared}
    return len(matched) if matched else len(present)
