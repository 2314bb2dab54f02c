"""Tunable inference thresholds."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GroupingThresholds(BaseModel):
    """Numeric cut-offs used by the inference stages.

    Defaults are starting points to be validated against real label corpora.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    separator_consistency: float = Field(default=0.6, gt=0.0, le=1.0)
    radio_group: float = Field(default=0.7, ge=0.0, le=1.0)
    checkbox_group: float = Field(default=0.4, ge=0.0, le=1.0)
    semantic_similarity: float = Field(default=0.5, ge=0.0, lt=1.0)
    semantic_max_cluster_size: int = Field(default=8, ge=2)

    @model_validator(mode="after")
    def _check_exclusivity_band(self) -> Self:
        """Ensure the checkbox band sits below the radio threshold.

        Raises:
            ValueError: If the checkbox threshold exceeds the radio threshold.

        Returns:
            Self: Validated thresholds.
        """
        if self.checkbox_group > self.radio_group:
            raise ValueError("checkbox_group threshold cannot exceed radio_group threshold")  # noqa: TRY003
        return self
