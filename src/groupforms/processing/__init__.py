"""Grouping inference stages."""

from groupforms.processing.category_combo import CategoryComboOutcome, CategoryComboResolution, resolve_category_combos
from groupforms.processing.conditional import detect_conditional_rules
from groupforms.processing.dimensional import DimensionalCluster, extract_dimensional_patterns
from groupforms.processing.exclusivity import ExclusivityCluster, detect_exclusive_groups, exclusivity_score
from groupforms.processing.implied_categories import (
    create_implied_mappings,
    group_by_implied_categories,
    infer_implied_categories,
)
from groupforms.processing.render_type import compute_render_type, resolve_member_render_types
from groupforms.processing.semantic import SemanticCluster, cluster_by_option_set, cluster_semantically
from groupforms.processing.tokenizer import detect_separator, tokenize
from groupforms.processing.validation import default_validations, evaluate_validations

__all__ = [
    "CategoryComboOutcome",
    "CategoryComboResolution",
    "DimensionalCluster",
    "ExclusivityCluster",
    "SemanticCluster",
    "cluster_by_option_set",
    "cluster_semantically",
    "compute_render_type",
    "create_implied_mappings",
    "default_validations",
    "detect_conditional_rules",
    "detect_exclusive_groups",
    "detect_separator",
    "evaluate_validations",
    "exclusivity_score",
    "extract_dimensional_patterns",
    "group_by_implied_categories",
    "infer_implied_categories",
    "resolve_category_combos",
    "resolve_member_render_types",
    "tokenize",
]
