"""Collaborator interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence


class CategoryMetadataSource(Protocol):
    """Read-only source of explicit category combo metadata.

    Implementations may also expose `aget_category_combo_structure` and
    `aget_category_option_combos` coroutines; they are preferred when present.
    """

    def get_category_combo_structure(self, combo_id: str) -> Sequence[tuple[str, Sequence[tuple[str, str]]]]:
        """Return the categories of a category combo.

        Args:
            combo_id: Category combo identifier.

        Returns:
            Sequence[tuple[str, Sequence[tuple[str, str]]]]: `(category name, [(option id, option name)])`
            pairs in server order.
        """

    def get_category_option_combos(self, combo_id: str) -> Sequence[tuple[str, Sequence[str]]]:
        """Return the option combinations declared for a category combo.

        Args:
            combo_id: Category combo identifier.

        Returns:
            Sequence[tuple[str, Sequence[str]]]: `(option combo id, [option id])` pairs.
        """
