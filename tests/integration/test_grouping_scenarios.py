from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from groupforms.assembler import group_fields, verify_partition
from groupforms.metadata_cache import MetadataCache
from groupforms.settings import Settings
from groupforms.typing.enums import ConfidenceLevel, GroupType
from groupforms.typing.models import FormField

_PUPILS = ("Pupils Fed - P1 - Male", "Pupils Fed - P1 - Female", "Pupils Fed - P2 - Male", "Pupils Fed - P2 - Female")
_UNAVAILABLE = "metadata unavailable for category combo cc1"


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, log_json=False, **overrides)


def _fields(*names: str, combo_id: str | None = None) -> list[FormField]:
    return [
        FormField(
            id="de1" if combo_id else f"de{index}",
            name=name,
            category_option_combo=f"coc{index}",
            explicit_category_combo_id=combo_id,
        )
        for index, name in enumerate(names, start=1)
    ]


class _ServerSource:
    def __init__(self) -> None:
        self.structure_calls = 0

    def get_category_combo_structure(self, combo_id: str) -> Sequence:
        self.structure_calls += 1
        return [
            ("Age", [("a1", "<5"), ("a2", "5-14"), ("a3", "15+")]),
            ("Sex", [("s1", "Male"), ("s2", "Female")]),
        ]

    def get_category_option_combos(self, combo_id: str) -> Sequence:
        return [(f"coc{index}", []) for index in range(1, 7)]


class _BrokenSource:
    def get_category_combo_structure(self, combo_id: str) -> Sequence:
        raise ConnectionError("server down")

    def get_category_option_combos(self, combo_id: str) -> Sequence:
        raise ConnectionError("server down")


class _HangingSource:
    async def aget_category_combo_structure(self, combo_id: str) -> Sequence:
        await asyncio.sleep(5)
        return []

    def get_category_combo_structure(self, combo_id: str) -> Sequence:
        return []

    def get_category_option_combos(self, combo_id: str) -> Sequence:
        return []


def test_complete_dimensional_grid() -> None:
    fields = _fields(*_PUPILS)

    strategies = group_fields(fields, settings=_settings())

    assert len(strategies) == 1
    strategy = strategies[0]
    assert strategy.confidence == ConfidenceLevel.MEDIUM
    assert strategy.group_type == GroupType.DIMENSIONAL_GRID
    assert strategy.group_title == "Pupils Fed"
    assert strategy.should_render_as_group()
    assert strategy.detection_description() == "Detected 2-dimensional pattern"

    pattern = strategy.metadata.dimensional_pattern
    assert pattern is not None
    assert [(dimension.name, dimension.values) for dimension in pattern.dimensions] == [
        ("Grade", ("P1", "P2")),
        ("Gender", ("Male", "Female")),
    ]
    combo = strategy.metadata.inferred_category_combo
    assert combo is not None
    assert combo.completeness_ratio == 1.0
    assert not combo.is_conditional


def test_incomplete_grid_with_conditional_rule() -> None:
    fields = _fields(*_PUPILS, "Pupils Fed - Disabled")

    strategies = group_fields(fields, settings=_settings())

    assert len(strategies) == 1
    assert len(strategies[0].members) == 5
    combo = strategies[0].metadata.inferred_category_combo
    assert combo is not None
    assert combo.is_conditional
    assert len(combo.conditional_rules) == 1
    assert "Disabled" in combo.conditional_rules[0]
    assert combo.completeness_ratio == 5 / 6


def test_grid_beside_shallow_delimited_fields() -> None:
    fields = _fields(*_PUPILS, "Teachers - Male", "Teachers - Female", "Support staff - Total")

    strategies = group_fields(fields, settings=_settings())

    assert [strategy.group_type for strategy in strategies] == [
        GroupType.DIMENSIONAL_GRID,
        GroupType.FLAT_LIST,
        GroupType.FLAT_LIST,
        GroupType.FLAT_LIST,
    ]
    assert len(strategies[0].members) == 4
    assert strategies[0].metadata.dimensional_pattern is not None
    assert [dimension.name for dimension in strategies[0].metadata.dimensional_pattern.dimensions] == [
        "Grade",
        "Gender",
    ]


def test_explicit_category_combo_is_definitive() -> None:
    fields = _fields(*(f"Malaria cases {index}" for index in range(6)), combo_id="cc1")

    strategies = group_fields(fields, settings=_settings(), metadata_source=_ServerSource())

    assert len(strategies) == 1
    strategy = strategies[0]
    assert strategy.confidence == ConfidenceLevel.HIGH
    assert strategy.group_type == GroupType.DIMENSIONAL_GRID
    assert strategy.is_definitive()
    assert strategy.metadata.category_combo_uid == "cc1"
    assert strategy.metadata.numeric_confidence_score == 1.0
    combo = strategy.metadata.inferred_category_combo
    assert combo is not None
    assert combo.total_expected_combinations == 6
    assert combo.completeness_ratio == 1.0


def test_unrelated_fields_stay_flat() -> None:
    fields = _fields("Remarks", "Date of visit", "Facility name", "Reporting officer", "Total budget")

    strategies = group_fields(fields, settings=_settings())

    assert len(strategies) == 5
    assert all(strategy.group_type == GroupType.FLAT_LIST for strategy in strategies)
    assert not any(strategy.should_render_as_group() for strategy in strategies)
    assert [strategy.members[0].name for strategy in strategies] == [field.name for field in fields]


def test_metadata_failure_falls_through_with_note() -> None:
    fields = _fields(*_PUPILS, combo_id="cc1")

    strategies = group_fields(fields, settings=_settings(), metadata_source=_BrokenSource())

    assert len(strategies) == 1
    assert strategies[0].confidence == ConfidenceLevel.MEDIUM
    assert strategies[0].group_type == GroupType.DIMENSIONAL_GRID
    assert strategies[0].metadata.notes == (f"{_UNAVAILABLE}: server down",)
    assert verify_partition(fields, strategies)


def test_metadata_timeout_falls_through_with_note() -> None:
    fields = _fields("Remarks", "Comments", combo_id="cc1")

    strategies = group_fields(
        fields,
        settings=_settings(metadata_timeout=0.01),
        metadata_source=_HangingSource(),
    )

    assert [strategy.group_type for strategy in strategies] == [GroupType.FLAT_LIST, GroupType.FLAT_LIST]
    assert all(strategy.metadata.notes == (f"{_UNAVAILABLE}: timed out after 0.01s",) for strategy in strategies)


@pytest.mark.parametrize("scopes", [1, 3])
def test_shared_cache_fetches_each_combo_once(scopes: int) -> None:
    cache = MetadataCache()
    source = _ServerSource()
    fields = _fields(*(f"Malaria cases {index}" for index in range(6)), combo_id="cc1")

    for scope in range(scopes):
        group_fields(fields, scope_id=f"s{scope}", settings=_settings(), metadata_source=source, cache=cache)

    assert source.structure_calls == 1
