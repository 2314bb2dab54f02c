"""Grouping decision models.

A `GroupingStrategy` is the only externally visible output unit. Its evidence
is a closed union discriminated on `kind`; every consumer matches on the
variants exhaustively.
"""

from __future__ import annotations

from typing import Annotated, Literal, Self, assert_never

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from groupforms.typing.enums import ConfidenceLevel, GroupType
from groupforms.typing.models.fields import FormField  # noqa: TC001


class Dimension(BaseModel):
    """One orthogonal naming axis of a dimensional pattern."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    values: tuple[str, ...] = Field(min_length=1, description="Distinct values in first-seen order.")
    order: int = Field(ge=0, description="Token position index of the axis.")

    @field_validator("values")
    @classmethod
    def _dedupe_values(cls, values: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(values))

    @property
    def value_set(self) -> frozenset[str]:
        """Return the axis values as a set."""
        return frozenset(self.values)


class DimensionalPattern(BaseModel):
    """Base name plus ordered axes shared by a cluster of labels."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_name: str
    dimensions: tuple[Dimension, ...]


class InferredCategory(BaseModel):
    """Derived analogue of a server category."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    category_options: tuple[str, ...]
    option_count: int = Field(ge=0)
    detection_method: str


class InferredCategoryCombo(BaseModel):
    """Derived analogue of a server category combo."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    categories: tuple[InferredCategory, ...]
    total_expected_combinations: int = Field(ge=1)
    actual_combinations: int = Field(ge=1)
    completeness_ratio: float = Field(gt=0.0, le=1.0)
    is_conditional: bool = False
    conditional_rules: tuple[str, ...] = ()
    applied_to_fields: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_counts(self) -> Self:
        """Ensure actual combinations never exceed the expected product.

        Raises:
            ValueError: If actual combinations exceed the expected total.

        Returns:
            Self: Validated model.
        """
        if self.actual_combinations > self.total_expected_combinations:
            raise ValueError("actual_combinations cannot exceed total_expected_combinations")  # noqa: TRY003
        return self

    @classmethod
    def from_categories(
        cls,
        *,
        name: str,
        categories: tuple[InferredCategory, ...],
        observed_combinations: int,
        applied_to_fields: tuple[str, ...] = (),
    ) -> InferredCategoryCombo:
        """Build a combo, deriving expected total and completeness.

        Args:
            name (str): Combo display name.
            categories (tuple[InferredCategory, ...]): Categories of the combo.
            observed_combinations (int): Distinct combinations actually present.
            applied_to_fields (tuple[str, ...]): Field ids covered by the combo.

        Returns:
            InferredCategoryCombo: Combo with `actual` clamped to `[1, total]`.
        """
        total = 1
        for category in categories:
            total *= max(category.option_count, 1)
        actual = min(max(observed_combinations, 1), total)
        return cls(
            name=name,
            categories=categories,
            total_expected_combinations=total,
            actual_combinations=actual,
            completeness_ratio=actual / total,
            applied_to_fields=applied_to_fields,
        )


class ServerCategoryOption(BaseModel):
    """Category option as declared by the server."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    display_name: str


class ServerCategory(BaseModel):
    """Category of a server category combo with its options."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    options: tuple[ServerCategoryOption, ...]


class ServerCategoryOptionCombo(BaseModel):
    """Category option combination declared by the server."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    option_ids: tuple[str, ...]


class CategoryComboEvidence(BaseModel):
    """Evidence from explicit server metadata."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["category_combo"] = "category_combo"
    category_combo_uid: str = Field(min_length=1)
    category_combo_structure: tuple[ServerCategory, ...] = Field(min_length=1)
    inferred_category_combo: InferredCategoryCombo | None = None


class DimensionalEvidence(BaseModel):
    """Evidence from a naming-convention dimensional pattern."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["dimensional"] = "dimensional"
    dimensional_pattern: DimensionalPattern
    inferred_category_combo: InferredCategoryCombo


class ExclusivityEvidence(BaseModel):
    """Evidence from the mutual exclusivity score."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["exclusivity"] = "exclusivity"
    mutual_exclusivity_score: float = Field(ge=0.0, le=1.0)


class SemanticEvidence(BaseModel):
    """Evidence from label similarity (0.0 for ungrouped singletons)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["semantic"] = "semantic"
    semantic_similarity_score: float = Field(ge=0.0, le=1.0)


Evidence = Annotated[
    CategoryComboEvidence | DimensionalEvidence | ExclusivityEvidence | SemanticEvidence,
    Field(discriminator="kind"),
]


class GroupMetadata(BaseModel):
    """Evidence and observability data attached to a strategy."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    evidence: Evidence
    detection_method: str = ""
    numeric_confidence_score: float | None = Field(default=None, ge=0.0, le=1.0)
    notes: tuple[str, ...] = ()

    @property
    def category_combo_uid(self) -> str | None:
        """Return the server category combo id, if the evidence is server metadata."""
        match self.evidence:
            case CategoryComboEvidence(category_combo_uid=uid):
                return uid
            case DimensionalEvidence() | ExclusivityEvidence() | SemanticEvidence():
                return None
            case _:
                assert_never(self.evidence)

    @property
    def category_combo_structure(self) -> tuple[ServerCategory, ...] | None:
        """Return the server category structure, if the evidence is server metadata."""
        match self.evidence:
            case CategoryComboEvidence(category_combo_structure=structure):
                return structure
            case DimensionalEvidence() | ExclusivityEvidence() | SemanticEvidence():
                return None
            case _:
                assert_never(self.evidence)

    @property
    def dimensional_pattern(self) -> DimensionalPattern | None:
        """Return the dimensional pattern, if the evidence is dimensional."""
        match self.evidence:
            case DimensionalEvidence(dimensional_pattern=pattern):
                return pattern
            case CategoryComboEvidence() | ExclusivityEvidence() | SemanticEvidence():
                return None
            case _:
                assert_never(self.evidence)

    @property
    def inferred_category_combo(self) -> InferredCategoryCombo | None:
        """Return the inferred category combo for server or dimensional evidence."""
        match self.evidence:
            case CategoryComboEvidence(inferred_category_combo=combo) | DimensionalEvidence(
                inferred_category_combo=combo,
            ):
                return combo
            case ExclusivityEvidence() | SemanticEvidence():
                return None
            case _:
                assert_never(self.evidence)

    @property
    def mutual_exclusivity_score(self) -> float | None:
        """Return the mutual exclusivity score, if the evidence is exclusivity."""
        match self.evidence:
            case ExclusivityEvidence(mutual_exclusivity_score=score):
                return score
            case CategoryComboEvidence() | DimensionalEvidence() | SemanticEvidence():
                return None
            case _:
                assert_never(self.evidence)

    @property
    def semantic_similarity_score(self) -> float | None:
        """Return the semantic similarity score, if the evidence is semantic."""
        match self.evidence:
            case SemanticEvidence(semantic_similarity_score=score):
                return score
            case CategoryComboEvidence() | DimensionalEvidence() | ExclusivityEvidence():
                return None
            case _:
                assert_never(self.evidence)


def _allowed_for(evidence: Evidence) -> tuple[ConfidenceLevel, frozenset[GroupType]]:
    """Return the confidence and group types an evidence variant may carry.

    Args:
        evidence (Evidence): Strategy evidence.

    Returns:
        tuple[ConfidenceLevel, frozenset[GroupType]]: Required confidence and allowed group types.
    """
    match evidence:
        case CategoryComboEvidence():
            return ConfidenceLevel.HIGH, frozenset(
                {GroupType.DIMENSIONAL_GRID, GroupType.RADIO_GROUP, GroupType.CHECKBOX_GROUP},
            )
        case DimensionalEvidence():
            return ConfidenceLevel.MEDIUM, frozenset({GroupType.DIMENSIONAL_GRID})
        case ExclusivityEvidence():
            return ConfidenceLevel.MEDIUM, frozenset({GroupType.RADIO_GROUP, GroupType.CHECKBOX_GROUP})
        case SemanticEvidence():
            return ConfidenceLevel.LOW, frozenset({GroupType.SEMANTIC_CLUSTER, GroupType.FLAT_LIST})
        case _:
            assert_never(evidence)


class GroupingStrategy(BaseModel):
    """How one set of fields should be grouped and rendered."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    confidence: ConfidenceLevel
    group_type: GroupType
    group_title: str
    members: tuple[FormField, ...] = Field(min_length=1)
    metadata: GroupMetadata

    @model_validator(mode="after")
    def _check_evidence_coupling(self) -> Self:
        """Ensure confidence and group type agree with the evidence variant.

        Raises:
            ValueError: If confidence or group type contradict the evidence.

        Returns:
            Self: Validated model.
        """
        confidence, group_types = _allowed_for(self.metadata.evidence)
        kind = self.metadata.evidence.kind
        if self.confidence != confidence:
            message = f"{kind} evidence requires {confidence.value} confidence, got {self.confidence.value}"
            raise ValueError(message)
        if self.group_type not in group_types:
            message = f"{kind} evidence cannot back a {self.group_type.value} group"
            raise ValueError(message)
        return self

    def should_render_as_group(self) -> bool:
        """Return whether the members get a visual group container."""
        if self.group_type == GroupType.FLAT_LIST:
            return False
        return len(self.members) >= 2  # noqa: PLR2004

    def is_definitive(self) -> bool:
        """Return whether the grouping comes from server metadata."""
        return self.confidence == ConfidenceLevel.HIGH

    def detection_description(self) -> str:
        """Return a user-facing description of how the grouping was found.

        Returns:
            str: Description.
        """
        evidence = self.metadata.evidence
        match evidence:
            case CategoryComboEvidence():
                return "Grouped by server category combination"
            case DimensionalEvidence(dimensional_pattern=pattern):
                return f"Detected {len(pattern.dimensions)}-dimensional pattern"
            case ExclusivityEvidence(mutual_exclusivity_score=score):
                percent = int(score * 100)
                if self.group_type == GroupType.RADIO_GROUP:
                    return f"Detected mutually exclusive options ({percent}% confidence)"
                return f"Detected related options ({percent}% confidence)"
            case SemanticEvidence():
                if self.group_type == GroupType.FLAT_LIST:
                    return "Default grouping"
                return "Grouped by semantic similarity"
            case _:
                assert_never(evidence)
