"""Caller-owned cache for category metadata lookups."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, PrivateAttr

from groupforms import logger
from groupforms.typing.models import ServerCategory, ServerCategoryOptionCombo


class MetadataCache(BaseModel):
    """In-memory key -> value cache of category combo metadata.

    One instance is shared by every scope of a grouping run. Its lifetime is the
    caller's: create it, pass it in, and call `invalidate` when server metadata
    changes. Failed lookups are never stored.
    """

    model_config = ConfigDict(extra="forbid")

    _structures: dict[str, tuple[ServerCategory, ...]] = PrivateAttr(default_factory=dict)
    _option_combos: dict[str, tuple[ServerCategoryOptionCombo, ...]] = PrivateAttr(default_factory=dict)

    def get_structure(self, combo_id: str) -> tuple[ServerCategory, ...] | None:
        """Return the cached structure of a category combo, if any."""
        return self._structures.get(combo_id)

    def put_structure(self, combo_id: str, structure: tuple[ServerCategory, ...]) -> None:
        """Store the structure of a category combo.

        Args:
            combo_id (str): Category combo identifier.
            structure (tuple[ServerCategory, ...]): Normalized categories.
        """
        self._structures[combo_id] = structure

    def get_option_combos(self, combo_id: str) -> tuple[ServerCategoryOptionCombo, ...] | None:
        """Return the cached option combos of a category combo, if any."""
        return self._option_combos.get(combo_id)

    def put_option_combos(self, combo_id: str, option_combos: tuple[ServerCategoryOptionCombo, ...]) -> None:
        """Store the option combos of a category combo.

        Args:
            combo_id (str): Category combo identifier.
            option_combos (tuple[ServerCategoryOptionCombo, ...]): Normalized option combos.
        """
        self._option_combos[combo_id] = option_combos

    def invalidate(self, combo_id: str | None = None) -> None:
        """Drop one category combo, or everything when `combo_id` is None.

        Args:
            combo_id (str | None): Category combo to forget.
        """
        if combo_id is None:
            dropped = len(self._structures) + len(self._option_combos)
            self._structures.clear()
            self._option_combos.clear()
        else:
            dropped = int(self._structures.pop(combo_id, None) is not None)
            dropped += int(self._option_combos.pop(combo_id, None) is not None)
        logger.debug("Metadata cache invalidated", extra={"combo_id": combo_id, "dropped": dropped})

    def __len__(self) -> int:
        """Return the number of category combos with cached data."""
        return len(self._structures.keys() | self._option_combos.keys())
