"""
Runtime settings for engine runs, read from STORY_ENGINES_* environment variables.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

from ..models import RunMode, RunOptions


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


class EngineSettings(BaseModel):
    """Defaults applied to every run started from the entry point."""

    mode: RunMode = RunMode.BEAST
    include_genre_engines: bool = True
    timeout_override_ms: Optional[int] = Field(default=None, gt=0)
    max_concurrency: Optional[int] = Field(default=None, ge=1)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Load settings from environment with defaults for local development."""
        return cls(
            mode=RunMode(os.getenv("STORY_ENGINES_MODE", RunMode.BEAST.value)),
            include_genre_engines=_env_bool("STORY_ENGINES_INCLUDE_GENRE", default=True),
            timeout_override_ms=_env_int("STORY_ENGINES_TIMEOUT_OVERRIDE_MS"),
            max_concurrency=_env_int("STORY_ENGINES_MAX_CONCURRENCY"),
            log_level=os.getenv("STORY_ENGINES_LOG_LEVEL", "INFO").upper(),
        )

    def to_run_options(self) -> RunOptions:
        return RunOptions(
            include_conditional_tasks=self.include_genre_engines,
            timeout_override_ms=self.timeout_override_ms,
            mode=self.mode,
            max_concurrency=self.max_concurrency,
        )
