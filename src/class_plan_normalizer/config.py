"""Configuration settings for the class plan normalizer."""
import os
from typing import List, Literal

from pydantic import BaseModel

from class_plan_normalizer.utils import to_int


EnvironmentType = Literal["development", "staging", "production"]


class PipelineDefaults(BaseModel):
    """Fallback values and timing policy shared by every pipeline stage."""

    # Fallbacks for missing input
    default_block_sec: int = 300
    default_item_sec: int = 30
    default_rpe: int = 5
    default_class_minutes: int = 45

    # Reconciliation policy
    soft_buffer_sec: int = 180
    soft_buffer_max_fraction: float = 0.25
    min_rest_sec: int = 15
    final_block_max_shave: float = 0.2
    shave_threshold_sec: int = 30
    max_adjust_attempts: int = 100

    # Time grid
    item_grid_sec: int = 5
    block_grid_sec: int = 10
    min_item_sec: int = 5

    # Candidate sanitizing / validation
    max_candidate_entry_sec: int = 180
    validator_drift_multiplier: int = 3

    class Config:
        frozen = True

    def soft_buffer_for(self, target_sec: int) -> int:
        """Tolerance around a target, capped at a fraction of the target for short classes."""
        return min(self.soft_buffer_sec, int(max(0, target_sec) * self.soft_buffer_max_fraction))


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Timing policy overrides
    SOFT_BUFFER_SEC: int = 180
    DEFAULT_CLASS_MINUTES: int = 45

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        origins = os.getenv("CORS_ORIGINS")
        if origins:
            self.CORS_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]

        self.SOFT_BUFFER_SEC = to_int(os.getenv("SOFT_BUFFER_SEC")) or 180
        self.DEFAULT_CLASS_MINUTES = to_int(os.getenv("DEFAULT_CLASS_MINUTES")) or 45

    def pipeline_defaults(self) -> PipelineDefaults:
        return PipelineDefaults(
            soft_buffer_sec=self.SOFT_BUFFER_SEC,
            default_class_minutes=self.DEFAULT_CLASS_MINUTES,
        )


settings = Settings()

DEFAULTS = PipelineDefaults()
