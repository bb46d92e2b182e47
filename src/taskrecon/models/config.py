"""Configuration models."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconcileSettings(BaseSettings):
    """Settings for task reconciliation loaded from environment variables.

    All settings are prefixed with TASKRECON_ (e.g., TASKRECON_OVERLAP_THRESHOLD).
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKRECON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Matching
    overlap_threshold: float = Field(
        default=0.65,
        description="Token containment ratio above which two tasks are duplicates",
    )

    # Completion approval
    default_match_threshold: float = Field(
        default=0.6,
        description="Confidence needed to auto-approve when the user has no preference",
    )
    min_match_threshold: float = Field(default=0.4, description="Lower clamp for user thresholds")
    max_match_threshold: float = Field(default=0.95, description="Upper clamp for user thresholds")

    # Board ranking
    rank_step: float = Field(default=1000.0, description="Gap used when appending to a column")
    rank_epsilon: float = Field(
        default=0.0001,
        description="Smallest gap split by midpoint before falling back to before + epsilon",
    )

    default_detail_level: str = Field(default="medium", description="light, medium or detailed")

    # Storage
    data_file: Path = Field(
        default=Path("./taskrecon-data.json"),
        description="JSON file used by the file-backed stores",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def clamp_match_threshold(self, value) -> float:
        """Clamp a user-provided threshold, falling back to the default."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return self.default_match_threshold
        if value != value or value in (float("inf"), float("-inf")):
            return self.default_match_threshold
        return min(self.max_match_threshold, max(self.min_match_threshold, float(value)))
