"""GroupForms package."""

from groupforms.async_runner import run_async
from groupforms.exceptions import (
    AsyncExecutionError,
    GroupingCancelledError,
    MetadataUnavailableError,
    PackageError,
    PartitionError,
    SettingsError,
)
from groupforms.logging import configure_logging, get_logger
from groupforms.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("groupforms")

__all__ = [
    "AsyncExecutionError",
    "GroupingCancelledError",
    "MetadataUnavailableError",
    "PackageError",
    "PartitionError",
    "Settings",
    "SettingsError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
