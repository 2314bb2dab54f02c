"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from groupforms.typing.models import GroupingStrategy


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when a coroutine fails inside the sync compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class MetadataUnavailableError(PackageError):
    """Raised when the category metadata collaborator fails or times out.

    The category combo resolver catches it and degrades confidence instead of
    failing the scope.
    """

    category_combo_id: str
    reason: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"metadata unavailable for category combo {self.category_combo_id}: {self.reason}"


@dataclass(frozen=True)
class GroupingCancelledError(PackageError):
    """Raised when a grouping run is cancelled between scopes or stages."""

    completed: dict[str, list[GroupingStrategy]] = field(default_factory=dict)
    scope_id: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        where = f" while grouping scope '{self.scope_id}'" if self.scope_id else ""
        return f"Grouping cancelled{where} ({len(self.completed)} scope(s) completed)"


@dataclass(frozen=True)
class PartitionError(PackageError):
    """Raised when emitted strategies do not partition the input fields exactly."""

    scope_id: str
    missing: int
    duplicated: int

    def __str__(self) -> str:
        """Return error message payload."""
        return (
            f"Grouping of scope '{self.scope_id}' is not a partition: "
            f"{self.missing} field(s) missing, {self.duplicated} field(s) duplicated"
        )
