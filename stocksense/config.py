from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    database_url: str
    password_pepper: str
    password_iterations: int
    session_cookie_name: str
    recently_added_days: int
    log_level: str


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return max(minimum, int(raw))
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./stocksense.db"),
        password_pepper=os.getenv("AUTH_PASSWORD_PEPPER", "").strip(),
        password_iterations=_int_env("AUTH_PASSWORD_ITERATIONS", 210_000, minimum=100_000),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "stocksense_session").strip() or "stocksense_session",
        recently_added_days=_int_env("RECENTLY_ADDED_DAYS", 7, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
