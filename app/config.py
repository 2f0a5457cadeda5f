from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    seed: Optional[int] = None
    practical_day_limit: int = 3
    export_path: Optional[str] = None


def _int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> Settings:
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        seed=_int_env("TIMETABLE_SEED"),
        practical_day_limit=_int_env("PRACTICAL_DAY_LIMIT", 3),
        export_path=os.getenv("TIMETABLE_EXPORT_PATH") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
