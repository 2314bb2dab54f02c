from __future__ import annotations

from groupforms.processing.conditional import detect_conditional_rules
from groupforms.processing.dimensional import DimensionalCluster, extract_dimensional_patterns
from groupforms.typing.models import FormField

_PUPILS = ("Pupils Fed - P1 - Male", "Pupils Fed - P1 - Female", "Pupils Fed - P2 - Male", "Pupils Fed - P2 - Female")


def _cluster(*names: str) -> DimensionalCluster:
    fields = [FormField(id=f"de{index}", name=name) for index, name in enumerate(names)]
    return extract_dimensional_patterns(fields)[0]


def test_complete_grid_has_no_rules() -> None:
    cluster = _cluster(*_PUPILS)

    combo = detect_conditional_rules(cluster.pattern, cluster.value_rows, cluster.inferred_category_combo)

    assert combo is cluster.inferred_category_combo
    assert not combo.is_conditional
    assert combo.conditional_rules == ()


def test_value_without_other_axis_yields_rule() -> None:
    cluster = _cluster(*_PUPILS, "Pupils Fed - Disabled")

    combo = detect_conditional_rules(cluster.pattern, cluster.value_rows, cluster.inferred_category_combo)

    assert combo.is_conditional
    assert combo.conditional_rules == ("If Disabled, dimension Gender is omitted",)
    assert combo.completeness_ratio == cluster.inferred_category_combo.completeness_ratio
