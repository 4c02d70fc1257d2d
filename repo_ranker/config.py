"""Settings loaded from environment variables."""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from repo_ranker.domain.scoring import DEFAULT_DECAY_DAYS, DEFAULT_STAR_WEIGHT

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = timedelta(minutes=5)
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_STORE_PATH = os.path.join("~", ".repo_ranker", "store.json")
STORE_BACKENDS = ("file", "postgres", "memory")


def _getenv_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}, using {default}")
        return default


def _normalize_backend(raw: Optional[str]) -> str:
    value = (raw or "file").strip().lower()
    return value if value in STORE_BACKENDS else "file"


@dataclass(frozen=True)
class Settings:
    github_token: Optional[str] = None
    github_api_url: str = DEFAULT_GITHUB_API_URL
    freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW
    decay_days: float = DEFAULT_DECAY_DAYS
    star_weight: float = DEFAULT_STAR_WEIGHT
    store_backend: str = "file"
    store_path: str = DEFAULT_STORE_PATH
    postgres_dsn: Optional[str] = None


def load_settings() -> Settings:
    """Build settings from the environment, falling back to defaults."""
    db_host = os.getenv("POSTGRES_HOST", "localhost")
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB", "repo_ranker")
    db_user = os.getenv("POSTGRES_USER", "postgres")
    db_password = os.getenv("POSTGRES_PASSWORD", "postgres")

    freshness_seconds = _getenv_float(
        "CACHE_FRESHNESS_SECONDS", DEFAULT_FRESHNESS_WINDOW.total_seconds()
    )

    return Settings(
        github_token=os.getenv("GITHUB_TOKEN"),
        github_api_url=os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/"),
        freshness_window=timedelta(seconds=freshness_seconds),
        decay_days=_getenv_float("SCORE_DECAY_DAYS", DEFAULT_DECAY_DAYS),
        star_weight=_getenv_float("SCORE_STAR_WEIGHT", DEFAULT_STAR_WEIGHT),
        store_backend=_normalize_backend(os.getenv("STORE_BACKEND")),
        store_path=os.path.expanduser(os.getenv("STORE_PATH", DEFAULT_STORE_PATH)),
        postgres_dsn=(
            f"host={db_host} port={db_port} dbname={db_name} "
            f"user={db_user} password={db_password}"
        ),
    )
