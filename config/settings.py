"""Application settings loaded from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from app.xmedia.client import DEFAULT_TIMELINE_URL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, FetchQuery
from app.xmedia.service import DEFAULT_TTL_SECONDS

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    subject_id: str = ""
    cookie: str = ""
    bearer_token: str = ""
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    cache_file: Path = Path("videos.json")
    timeline_url: str = DEFAULT_TIMELINE_URL
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    refresh_interval_seconds: int = 0
    overwrite_on_empty: bool = False
    enable_cdn_scan: bool = True
    log_dir: Path = Path("logs")
    host: str = "0.0.0.0"
    port: int = 10000

    def fetch_query(self) -> FetchQuery:
        return FetchQuery(subject_id=self.subject_id, cookie=self.cookie, bearer_token=self.bearer_token)


def _env_or_default(name, default):
    value = os.environ.get(name)
    return value.strip() if value and value.strip() else default


def _env_int(name, default):
    raw = _env_or_default(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %s", name, raw, default)
        return default


def _env_float(name, default):
    raw = _env_or_default(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s", name, raw, default)
        return default


def _env_bool(name, default):
    raw = _env_or_default(name, None)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s=%r; using %s", name, raw, default)
    return default


def load_settings(env_file: str | os.PathLike | None = None) -> Settings:
    """Build `Settings` from the process environment.

    Values already present in the environment win over the .env file.
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)
    return Settings(
        subject_id=_env_or_default("X_USER_ID", None) or _env_or_default("X_USERNAME", ""),
        cookie=_env_or_default("X_COOKIE", ""),
        bearer_token=_env_or_default("X_BEARER_TOKEN", ""),
        ttl_seconds=_env_int("CACHE_EXPIRE", DEFAULT_TTL_SECONDS),
        cache_file=Path(_env_or_default("CACHE_FILE", "videos.json")),
        timeline_url=_env_or_default("X_TIMELINE_URL", DEFAULT_TIMELINE_URL),
        user_agent=_env_or_default("X_USER_AGENT", DEFAULT_USER_AGENT),
        fetch_timeout_seconds=_env_float("X_FETCH_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        refresh_interval_seconds=_env_int("X_REFRESH_INTERVAL_SECONDS", 0),
        overwrite_on_empty=_env_bool("X_CACHE_OVERWRITE_ON_EMPTY", False),
        enable_cdn_scan=_env_bool("X_ENABLE_CDN_SCAN", True),
        log_dir=Path(_env_or_default("LOG_DIR", "logs")),
        host=_env_or_default("HOST", "0.0.0.0"),
        port=_env_int("PORT", 10000),
    )
