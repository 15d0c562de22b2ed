# rocviz/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv, find_dotenv

DEFAULT_MAX_DROP = 0.5


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    max_drop: float = DEFAULT_MAX_DROP
    run_log_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        run_log = (os.environ.get("ROCVIZ_RUN_LOG") or "").strip() or None
        return cls(
            max_drop=_env_float("ROCVIZ_MAX_DROP", DEFAULT_MAX_DROP),
            run_log_path=run_log,
            log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # .env is optional; real environment variables win
    load_dotenv(find_dotenv(usecwd=True), override=False)
    return Settings.from_env()
