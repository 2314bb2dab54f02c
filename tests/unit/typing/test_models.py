from __future__ import annotations

import pytest
from pydantic import ValidationError

from groupforms.typing.enums import ConfidenceLevel, GroupType, ValidationKind
from groupforms.typing.models import (
    CategoryComboEvidence,
    Dimension,
    DimensionalEvidence,
    DimensionalPattern,
    ExclusivityEvidence,
    FieldValidation,
    FormField,
    GroupingStrategy,
    GroupingThresholds,
    GroupMetadata,
    InferredCategory,
    InferredCategoryCombo,
    Option,
    OptionSet,
    SemanticEvidence,
    ServerCategory,
    ServerCategoryOption,
)


def _field(name: str, field_id: str = "de1") -> FormField:
    return FormField(id=field_id, name=name)


def _category(name: str, options: tuple[str, ...]) -> InferredCategory:
    return InferredCategory(
        name=name,
        category_options=options,
        option_count=len(options),
        detection_method="naming_pattern",
    )


def _combo(observed: int) -> InferredCategoryCombo:
    return InferredCategoryCombo.from_categories(
        name="Pupils Fed",
        categories=(_category("Grade", ("P1", "P2")), _category("Gender", ("Male", "Female"))),
        observed_combinations=observed,
    )


def test_dimension_deduplicates_values_in_first_seen_order() -> None:
    dimension = Dimension(name="Gender", values=("Male", "Female", "Male"), order=2)

    assert dimension.values == ("Male", "Female")
    assert dimension.value_set == frozenset({"Male", "Female"})


def test_dimension_requires_values() -> None:
    with pytest.raises(ValidationError):
        Dimension(name="Empty", values=(), order=0)


def test_inferred_combo_derives_total_and_completeness() -> None:
    combo = _combo(observed=3)

    assert combo.total_expected_combinations == 4
    assert combo.actual_combinations == 3
    assert combo.completeness_ratio == 0.75


def test_inferred_combo_clamps_observed_combinations() -> None:
    assert _combo(observed=9).completeness_ratio == 1.0
    assert _combo(observed=0).actual_combinations == 1


def test_inferred_combo_rejects_actual_above_total() -> None:
    with pytest.raises(ValidationError, match="cannot exceed"):
        InferredCategoryCombo(
            name="x",
            categories=(),
            total_expected_combinations=2,
            actual_combinations=3,
            completeness_ratio=1.0,
        )


def test_evidence_is_discriminated_on_kind() -> None:
    metadata = GroupMetadata.model_validate({"evidence": {"kind": "exclusivity", "mutual_exclusivity_score": 0.8}})

    assert isinstance(metadata.evidence, ExclusivityEvidence)
    assert metadata.mutual_exclusivity_score == 0.8
    assert metadata.semantic_similarity_score is None
    assert metadata.category_combo_uid is None


def test_category_combo_evidence_requires_uid_and_structure() -> None:
    with pytest.raises(ValidationError):
        CategoryComboEvidence(category_combo_uid="", category_combo_structure=())


def test_high_confidence_requires_server_evidence() -> None:
    with pytest.raises(ValidationError, match="semantic evidence requires low confidence"):
        GroupingStrategy(
            confidence=ConfidenceLevel.HIGH,
            group_type=GroupType.SEMANTIC_CLUSTER,
            group_title="x",
            members=(_field("a"),),
            metadata=GroupMetadata(evidence=SemanticEvidence(semantic_similarity_score=0.6)),
        )


def test_dimensional_evidence_cannot_back_a_radio_group() -> None:
    pattern = DimensionalPattern(
        base_name="Pupils Fed",
        dimensions=(Dimension(name="Grade", values=("P1",), order=1),),
    )
    with pytest.raises(ValidationError, match="cannot back a radio_group group"):
        GroupingStrategy(
            confidence=ConfidenceLevel.MEDIUM,
            group_type=GroupType.RADIO_GROUP,
            group_title="x",
            members=(_field("a"),),
            metadata=GroupMetadata(
                evidence=DimensionalEvidence(dimensional_pattern=pattern, inferred_category_combo=_combo(1)),
            ),
        )


def test_strategy_requires_members() -> None:
    with pytest.raises(ValidationError):
        GroupingStrategy(
            confidence=ConfidenceLevel.LOW,
            group_type=GroupType.FLAT_LIST,
            group_title="x",
            members=(),
            metadata=GroupMetadata(evidence=SemanticEvidence(semantic_similarity_score=0.0)),
        )


def test_server_strategy_is_definitive_and_rendered_as_group() -> None:
    structure = (
        ServerCategory(name="Sex", options=(ServerCategoryOption(id="o1", display_name="Male"),)),
        ServerCategory(name="Age", options=(ServerCategoryOption(id="o2", display_name="<5"),)),
    )
    strategy = GroupingStrategy(
        confidence=ConfidenceLevel.HIGH,
        group_type=GroupType.DIMENSIONAL_GRID,
        group_title="Cases",
        members=(_field("Cases"), _field("Cases")),
        metadata=GroupMetadata(
            evidence=CategoryComboEvidence(category_combo_uid="cc1", category_combo_structure=structure),
        ),
    )

    assert strategy.is_definitive()
    assert strategy.should_render_as_group()
    assert strategy.metadata.category_combo_uid == "cc1"
    assert strategy.metadata.category_combo_structure == structure
    assert strategy.detection_description() == "Grouped by server category combination"


def test_flat_strategy_is_not_rendered_as_group() -> None:
    strategy = GroupingStrategy(
        confidence=ConfidenceLevel.LOW,
        group_type=GroupType.FLAT_LIST,
        group_title="Remarks",
        members=(_field("Remarks"),),
        metadata=GroupMetadata(evidence=SemanticEvidence(semantic_similarity_score=0.0)),
    )

    assert not strategy.should_render_as_group()
    assert not strategy.is_definitive()
    assert strategy.detection_description() == "Default grouping"


def test_exclusivity_descriptions_depend_on_group_type() -> None:
    def _strategy(group_type: GroupType, score: float) -> GroupingStrategy:
        return GroupingStrategy(
            confidence=ConfidenceLevel.MEDIUM,
            group_type=group_type,
            group_title="Water source",
            members=(_field("Water source - Tap", "a"), _field("Water source - Well", "b")),
            metadata=GroupMetadata(evidence=ExclusivityEvidence(mutual_exclusivity_score=score)),
        )

    assert _strategy(GroupType.RADIO_GROUP, 0.75).detection_description() == (
        "Detected mutually exclusive options (75% confidence)"
    )
    assert _strategy(GroupType.CHECKBOX_GROUP, 0.5).detection_description() == (
        "Detected related options (50% confidence)"
    )


def test_option_set_helpers() -> None:
    option_set = OptionSet(
        id="os1",
        name="Water",
        options=(
            Option(code="WELL", name="Well", sort_order=2),
            Option(code="TAP", name="Tap", display_name="Piped tap", sort_order=1),
        ),
    )

    assert [option.code for option in option_set.sorted_options()] == ["TAP", "WELL"]
    assert option_set.find_option_by_code("WELL") is not None
    assert option_set.display_name_for_code("TAP") == "Piped tap"
    assert option_set.display_name_for_code("WELL") == "Well"
    assert option_set.display_name_for_code("RIVER") is None


def test_field_validation_checks_parameters_per_kind() -> None:
    assert FieldValidation(kind=ValidationKind.MAX_VALUE, value=100, message="too big").value == 100

    with pytest.raises(ValidationError, match="need a pattern"):
        FieldValidation(kind=ValidationKind.PATTERN, message="x")
    with pytest.raises(ValidationError, match="invalid validation pattern"):
        FieldValidation(kind=ValidationKind.PATTERN, pattern="(", message="x")
    with pytest.raises(ValidationError, match="take no parameters"):
        FieldValidation(kind=ValidationKind.REQUIRED, value=1, message="x")


def test_field_validation_serializes_without_callables() -> None:
    validation = FieldValidation(kind=ValidationKind.PATTERN, pattern=r"^\d+$", message="digits")

    assert FieldValidation.model_validate_json(validation.model_dump_json()) == validation


def test_grouping_thresholds_reject_inverted_band() -> None:
    with pytest.raises(ValidationError, match="cannot exceed radio_group"):
        GroupingThresholds(radio_group=0.3, checkbox_group=0.5)
