from __future__ import annotations

from groupforms.processing.dimensional import DETECTION_METHOD, extract_dimensional_patterns, name_dimension
from groupforms.typing.models import FormField

_PUPILS = ("Pupils Fed - P1 - Male", "Pupils Fed - P1 - Female", "Pupils Fed - P2 - Male", "Pupils Fed - P2 - Female")


def _fields(*names: str) -> list[FormField]:
    return [FormField(id=f"de{index}", name=name) for index, name in enumerate(names)]


def test_name_dimension_uses_vocabulary_majority() -> None:
    assert name_dimension(["P1", "P2", "Disabled"], 1) == "Grade"
    assert name_dimension(["Male", "Female"], 2) == "Gender"
    assert name_dimension(["Under 5", "5-14", "Adults"], 1) == "Age Group"
    assert name_dimension(["Day", "Boarding"], 1) == "Boarding Status"
    assert name_dimension(["Urban", "Rural"], 1) == "Location"
    assert name_dimension(["1", "2"], 3) == "Numeric Category"
    assert name_dimension(["Red", "Blue"], 3) == "Dimension 3"
    assert name_dimension(["Red", "Blue"], 0, fallback="Category 1") == "Category 1"


def test_extract_two_dimensional_grid() -> None:
    clusters = extract_dimensional_patterns(_fields(*_PUPILS))

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.member_indices == (0, 1, 2, 3)
    assert cluster.pattern.base_name == "Pupils Fed"
    assert [(dimension.name, dimension.values, dimension.order) for dimension in cluster.pattern.dimensions] == [
        ("Grade", ("P1", "P2"), 1),
        ("Gender", ("Male", "Female"), 2),
    ]
    assert cluster.value_rows == (("P1", "Male"), ("P1", "Female"), ("P2", "Male"), ("P2", "Female"))

    combo = cluster.inferred_category_combo
    assert combo.name == "Pupils Fed"
    assert combo.total_expected_combinations == 4
    assert combo.completeness_ratio == 1.0
    assert combo.applied_to_fields == ("de0", "de1", "de2", "de3")
    assert {category.detection_method for category in combo.categories} == {DETECTION_METHOD}


def test_extract_incomplete_grid_records_missing_axis() -> None:
    clusters = extract_dimensional_patterns(_fields(*_PUPILS, "Pupils Fed - Disabled"))

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.pattern.dimensions[0].values == ("P1", "P2", "Disabled")
    assert cluster.value_rows[-1] == ("Disabled", None)
    assert cluster.inferred_category_combo.total_expected_combinations == 6
    assert cluster.inferred_category_combo.actual_combinations == 5


def test_extract_clusters_by_first_token() -> None:
    fields = _fields(*_PUPILS, "Deaths - P1 - Male", "Deaths - P2 - Female", "Deaths - P1 - Female")

    clusters = extract_dimensional_patterns(fields)

    assert [cluster.member_indices for cluster in clusters] == [(0, 1, 2, 3), (4, 5, 6)]
    assert clusters[1].pattern.base_name == "Deaths"


def test_extract_rejects_free_text_positions() -> None:
    fields = _fields("Stock - Opening balance - January", "Stock - Closing balance - February")

    assert extract_dimensional_patterns(fields) == []


def test_extract_ignores_fields_without_separator() -> None:
    clusters = extract_dimensional_patterns(_fields("Remarks", *_PUPILS))

    assert clusters[0].member_indices == (1, 2, 3, 4)


def test_extract_deduplicates_dimension_names() -> None:
    clusters = extract_dimensional_patterns(_fields("Beds - 1 - 1", "Beds - 1 - 2", "Beds - 2 - 1"))

    assert [dimension.name for dimension in clusters[0].pattern.dimensions] == [
        "Numeric Category",
        "Numeric Category 2",
    ]


def test_extract_parenthetical_labels() -> None:
    fields = _fields("Cases (Male Under5)", "Cases (Female Under5)", "Cases (Male Over5)", "Cases (Female Over5)")

    clusters = extract_dimensional_patterns(fields)

    assert len(clusters) == 1
    assert clusters[0].pattern.base_name == "Cases"
    assert [dimension.values for dimension in clusters[0].pattern.dimensions] == [
        ("Male", "Female"),
        ("Under5", "Over5"),
    ]


def test_extract_needs_two_separated_labels() -> None:
    assert extract_dimensional_patterns(_fields("Pupils Fed - P1 - Male", "Remarks")) == []


def test_shallow_delimited_neighbours_do_not_hide_a_grid() -> None:
    fields = _fields(*_PUPILS, "Teachers - Male", "Teachers - Female", "Support staff - Total")

    clusters = extract_dimensional_patterns(fields)

    assert [cluster.member_indices for cluster in clusters] == [(0, 1, 2, 3)]
    assert clusters[0].separator.separator == " - "
    assert clusters[0].separator.confidence == 1.0


def test_extract_rejects_cluster_with_inconsistent_depth() -> None:
    fields = _fields(*_PUPILS, "Stock - Opening", "Stock - Issued - Week 1", "Stock - Lost - Week 2 - Damaged")

    clusters = extract_dimensional_patterns(fields)

    assert [cluster.member_indices for cluster in clusters] == [(0, 1, 2, 3)]


def test_extract_base_name_ignores_case() -> None:
    fields = _fields(
        "pupils fed - P1 - Male",
        "Pupils Fed - P1 - Female",
        "PUPILS FED - P2 - Male",
        "Pupils Fed - P2 - Female",
    )

    clusters = extract_dimensional_patterns(fields)

    assert len(clusters) == 1
    assert clusters[0].pattern.base_name == "pupils fed"
    assert [(dimension.name, dimension.order) for dimension in clusters[0].pattern.dimensions] == [
        ("Grade", 1),
        ("Gender", 2),
    ]
