"""Core domain model exports."""

from groupforms.typing.models.fields import FormField
from groupforms.typing.models.grouping import (
    CategoryComboEvidence,
    Dimension,
    DimensionalEvidence,
    DimensionalPattern,
    Evidence,
    ExclusivityEvidence,
    GroupingStrategy,
    GroupMetadata,
    InferredCategory,
    InferredCategoryCombo,
    SemanticEvidence,
    ServerCategory,
    ServerCategoryOption,
    ServerCategoryOptionCombo,
)
from groupforms.typing.models.options import Option, OptionSet
from groupforms.typing.models.patterns import (
    ImpliedCategory,
    ImpliedCategoryCombination,
    ImpliedCategoryMapping,
    SeparatorDetection,
)
from groupforms.typing.models.thresholds import GroupingThresholds
from groupforms.typing.models.validation import FieldValidation, ValueValidationResult

__all__ = [
    "CategoryComboEvidence",
    "Dimension",
    "DimensionalEvidence",
    "DimensionalPattern",
    "Evidence",
    "ExclusivityEvidence",
    "FieldValidation",
    "FormField",
    "GroupMetadata",
    "GroupingStrategy",
    "GroupingThresholds",
    "ImpliedCategory",
    "ImpliedCategoryCombination",
    "ImpliedCategoryMapping",
    "InferredCategory",
    "InferredCategoryCombo",
    "Option",
    "OptionSet",
    "SemanticEvidence",
    "SeparatorDetection",
    "ServerCategory",
    "ServerCategoryOption",
    "ServerCategoryOptionCombo",
    "ValueValidationResult",
]
