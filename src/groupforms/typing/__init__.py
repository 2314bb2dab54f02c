"""Typing-centric domain modules."""

from groupforms.typing.enums import (
    CategoryPattern,
    ConfidenceLevel,
    DataEntryType,
    GroupType,
    RenderType,
    ValidationKind,
    ValidationState,
)
from groupforms.typing.models import (
    FormField,
    GroupingStrategy,
    GroupMetadata,
    Option,
    OptionSet,
)
from groupforms.typing.protocol import CategoryMetadataSource

__all__ = [
    "CategoryMetadataSource",
    "CategoryPattern",
    "ConfidenceLevel",
    "DataEntryType",
    "FormField",
    "GroupMetadata",
    "GroupType",
    "GroupingStrategy",
    "Option",
    "OptionSet",
    "RenderType",
    "ValidationKind",
    "ValidationState",
]
