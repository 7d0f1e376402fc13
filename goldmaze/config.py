"""
Gold Maze - Server Configuration

Defaults suit local development; every field can be overridden with a
GOLDMAZE_* environment variable.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from goldmaze.database import DATABASE_PATH


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    store_backend: str = "memory"  # memory | sqlite
    db_path: str = DATABASE_PATH
    tick_seconds: float = 1.0
    seed_sample_scores: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        settings = cls(
            host=env.get("GOLDMAZE_HOST", defaults.host),
            port=int(env.get("GOLDMAZE_PORT", defaults.port)),
            store_backend=env.get("GOLDMAZE_STORE", defaults.store_backend).lower(),
            db_path=env.get("GOLDMAZE_DB_PATH", defaults.db_path),
            tick_seconds=float(env.get("GOLDMAZE_TICK_SECONDS", defaults.tick_seconds)),
            seed_sample_scores=_as_bool(env.get("GOLDMAZE_SEED_SAMPLE_SCORES", "false")),
            log_level=env.get("GOLDMAZE_LOG_LEVEL", defaults.log_level).upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.store_backend not in ("memory", "sqlite"):
            raise ValueError(f"GOLDMAZE_STORE must be 'memory' or 'sqlite', got {self.store_backend!r}")
        if self.tick_seconds <= 0:
            raise ValueError("GOLDMAZE_TICK_SECONDS must be positive")
