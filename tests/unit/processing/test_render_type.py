from __future__ import annotations

from groupforms.processing.render_type import compute_render_type, is_boolean_option_set, resolve_member_render_types
from groupforms.typing.enums import ConfidenceLevel, GroupType, RenderType
from groupforms.typing.models import FormField, GroupingStrategy, GroupMetadata, Option, OptionSet, SemanticEvidence


def _option_set(*codes: str, icon: str | None = None) -> OptionSet:
    return OptionSet(id="os", name="Options", options=tuple(Option(code=code, name=code, icon=icon) for code in codes))


def test_boolean_option_sets() -> None:
    assert is_boolean_option_set(_option_set("YES", "NO"))
    assert is_boolean_option_set(_option_set("true", " false "))
    assert is_boolean_option_set(_option_set("1", "0"))
    assert not is_boolean_option_set(_option_set("YES", "MAYBE"))
    assert not is_boolean_option_set(_option_set("YES", "NO", "0"))


def test_compute_render_type_rule_order() -> None:
    assert compute_render_type(_option_set("YES", "NO")) == RenderType.YES_NO_BUTTONS
    assert compute_render_type(_option_set("A", "B")) == RenderType.RADIO_BUTTONS
    assert compute_render_type(_option_set("A", "B", "C", "D", icon="star")) == RenderType.RADIO_BUTTONS
    assert compute_render_type(_option_set("A", "B", "C", "D", "E", icon="star")) == RenderType.ICON_PALETTE
    assert compute_render_type(_option_set("A", "B", "C", "D", "E")) == RenderType.DROPDOWN


def test_resolve_member_render_types_keeps_member_order() -> None:
    strategy = GroupingStrategy(
        confidence=ConfidenceLevel.LOW,
        group_type=GroupType.SEMANTIC_CLUSTER,
        group_title="Water",
        members=(
            FormField(id="a", name="Water tap", option_set=_option_set("YES", "NO")),
            FormField(id="b", name="Water notes"),
            FormField(id="c", name="Water kind", option_set=_option_set("A", "B", "C", "D", "E")),
        ),
        metadata=GroupMetadata(evidence=SemanticEvidence(semantic_similarity_score=0.6)),
    )

    assert resolve_member_render_types(strategy) == [RenderType.YES_NO_BUTTONS, None, RenderType.DROPDOWN]
