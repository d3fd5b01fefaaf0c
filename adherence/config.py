"""
Engine settings with environment variable overrides.

Values are validated when the settings object is built, so a bad override
fails at startup rather than on the first deletion or tick.
"""

import os
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

_ENV_FIELDS = {
    "near_threshold_minutes": "ADHERENCE_NEAR_THRESHOLD_MINUTES",
    "undo_grace_seconds": "ADHERENCE_UNDO_GRACE_SECONDS",
    "tick_interval_seconds": "ADHERENCE_TICK_SECONDS",
    "activity_limit": "ADHERENCE_ACTIVITY_LIMIT",
    "db_path": "HEALTH_DB_PATH",
}


class EngineSettings(BaseModel):
    """Tunables for dose classification, undo and refresh."""

    near_threshold_minutes: int = Field(
        default=30, ge=0, description="Doses due within this many minutes are 'soon'"
    )
    undo_grace_seconds: float = Field(
        default=8.0, gt=0.0, description="How long a deleted symptom can be restored"
    )
    tick_interval_seconds: float = Field(
        default=60.0, gt=0.0, description="Interval between derived-view refreshes"
    )
    activity_limit: int = Field(default=8, ge=0, description="Default size of the activity feed")
    db_path: Optional[str] = Field(default=None, description="SQLite file for persistence")

    @property
    def near_threshold(self) -> timedelta:
        return timedelta(minutes=self.near_threshold_minutes)

    @property
    def undo_grace(self) -> timedelta:
        return timedelta(seconds=self.undo_grace_seconds)

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from ``ADHERENCE_*`` / ``HEALTH_DB_PATH`` variables."""
        values = {}
        for field, env_name in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[field] = raw.strip()
        return cls(**values)


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings.from_env()
