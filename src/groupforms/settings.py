"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Self

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from groupforms.exceptions import SettingsError
from groupforms.typing.models.thresholds import GroupingThresholds

logger = logging.getLogger(__name__)

_DEFAULT_THRESHOLDS = GroupingThresholds()


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "groupforms"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )

    separator_consistency_threshold: float = Field(
        default=_DEFAULT_THRESHOLDS.separator_consistency,
        gt=0.0,
        le=1.0,
        validation_alias="SEPARATOR_CONSISTENCY_THRESHOLD",
        description="Share of labels that must split consistently for a separator to be accepted.",
    )
    radio_group_threshold: float = Field(
        default=_DEFAULT_THRESHOLDS.radio_group,
        ge=0.0,
        le=1.0,
        validation_alias="RADIO_GROUP_THRESHOLD",
        description="Minimum exclusivity score for a radio group.",
    )
    checkbox_group_threshold: float = Field(
        default=_DEFAULT_THRESHOLDS.checkbox_group,
        ge=0.0,
        le=1.0,
        validation_alias="CHECKBOX_GROUP_THRESHOLD",
        description="Minimum exclusivity score for a checkbox group.",
    )
    semantic_similarity_threshold: float = Field(
        default=_DEFAULT_THRESHOLDS.semantic_similarity,
        ge=0.0,
        lt=1.0,
        validation_alias="SEMANTIC_SIMILARITY_THRESHOLD",
        description="Jaccard similarity a field must exceed to join a semantic cluster.",
    )
    semantic_max_cluster_size: int = Field(
        default=_DEFAULT_THRESHOLDS.semantic_max_cluster_size,
        ge=2,
        validation_alias="SEMANTIC_MAX_CLUSTER_SIZE",
        description="Maximum number of members of a semantic cluster.",
    )

    metadata_timeout: float = Field(
        default=5.0,
        gt=0.0,
        validation_alias="METADATA_TIMEOUT",
        description="Timeout in seconds for one category metadata fetch.",
    )
    max_parallel_scopes: int = Field(
        default=4,
        ge=1,
        validation_alias="MAX_PARALLEL_SCOPES",
        description="Maximum number of sections grouped concurrently.",
    )
    default_category_combo_id: str = Field(
        default="bjDvmb4bfuf",
        validation_alias="DEFAULT_CATEGORY_COMBO_ID",
        description="Server default category combo, treated as no explicit metadata.",
    )

    @model_validator(mode="after")
    def _check_exclusivity_band(self) -> Self:
        """Ensure the checkbox threshold does not exceed the radio threshold.

        Raises:
            ValueError: If the checkbox threshold exceeds the radio threshold.

        Returns:
            Self: Validated settings.
        """
        if self.checkbox_group_threshold > self.radio_group_threshold:
            raise ValueError("CHECKBOX_GROUP_THRESHOLD cannot exceed RADIO_GROUP_THRESHOLD")  # noqa: TRY003
        return self

    def thresholds(self) -> GroupingThresholds:
        """Return the inference thresholds configured by these settings.

        Returns:
            GroupingThresholds: Frozen thresholds for the processing stages.
        """
        return GroupingThresholds(
            separator_consistency=self.separator_consistency_threshold,
            radio_group=self.radio_group_threshold,
            checkbox_group=self.checkbox_group_threshold,
            semantic_similarity=self.semantic_similarity_threshold,
            semantic_max_cluster_size=self.semantic_max_cluster_size,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        if _is_missing_settings_error(exc):
            ensure_env_file_exists()
            try:
                return Settings()
            except Exception as retry_exc:
                raise SettingsError(exc=retry_exc) from retry_exc
        raise SettingsError(exc=exc) from exc


def ensure_env_file_exists(
    *,
    env_path: Path = Path(".env"),
    template_path: Path = Path(".env.template"),
) -> None:
    """Create `.env` from template when missing.

    Args:
        env_path (Path): Target environment file path.
        template_path (Path): Template file path.
    """
    if env_path.exists() or not template_path.exists():
        return
    env_path.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info(
        "Created environment file from template",
        extra={"env_path": str(env_path), "template_path": str(template_path)},
    )


def _is_missing_settings_error(exc: Exception) -> bool:
    """Return whether the settings failure is due to missing values.

    Args:
        exc (Exception): Caught settings initialization error.

    Returns:
        bool: True when the error represents missing settings values.
    """
    if not isinstance(exc, ValidationError):
        return False
    return any(error.get("type") == "missing" for error in exc.errors())
