"""Collector configuration.

Settings come from the process environment (optionally seeded from a ``.env``
file); the source list comes from a JSON file of ``{name, url}`` objects.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from threatwatch.ingestion.item_types import Source

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300.0
DEFAULT_TOR_PROXY = "tor:9050"
DEFAULT_SOURCES_FILE = "/app/sources.json"

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigurationError(RuntimeError):
    """Raised when configuration or the source list cannot be loaded."""


def parse_duration(value: str) -> Optional[float]:
    """Parse ``90s``, ``5m``, ``1h30m`` or a bare number of seconds.

    Returns None for anything unparseable.
    """
    s = (value or "").strip().lower()
    if not s:
        return None
    try:
        seconds = float(s)
    except ValueError:
        pass
    else:
        return seconds if math.isfinite(seconds) else None
    pos = 0
    total = 0.0
    for m in _DURATION_PART_RE.finditer(s):
        if m.start() != pos:
            return None
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
        pos = m.end()
    if pos != len(s):
        return None
    return total


def _env(key: str, default: str) -> str:
    value = os.getenv(key, "")
    return value if value.strip() else default


def _env_int(key: str, default: int) -> int:
    raw = _env(key, str(default))
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {key}={raw!r}, using default {default}")
        return default


def _env_float(key: str, default: float) -> float:
    raw = _env(key, str(default))
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {key}={raw!r}, using default {default}")
        return default


@dataclass
class CollectorConfig:
    """Acquisition, storage and scheduling settings."""

    pg_dsn: str
    use_tor: bool = False
    tor_proxy: str = DEFAULT_TOR_PROXY
    collection_interval: float = DEFAULT_INTERVAL_SECONDS
    sources_file: str = DEFAULT_SOURCES_FILE
    log_level: str = "info"

    # Network budgets (seconds)
    http_timeout: float = 60.0
    forum_timeout: float = 90.0

    # Forum crawl budget
    forum_max_links: int = 100
    forum_delay: float = 2.0

    @classmethod
    def from_env(cls) -> "CollectorConfig":
        """Load configuration from environment variables."""
        load_dotenv()

        interval_raw = _env("COLLECTION_INTERVAL", "5m")
        interval = parse_duration(interval_raw)
        if interval is None or interval <= 0:
            logger.warning(f"Invalid COLLECTION_INTERVAL={interval_raw!r}, using default 5m")
            interval = DEFAULT_INTERVAL_SECONDS

        pg_dsn = os.getenv("PG_DSN", "").strip()
        if not pg_dsn:
            pg_dsn = "host={host} port={port} dbname={name} user={user} password={password}".format(
                host=_env("DB_HOST", "postgres"),
                port=_env("DB_PORT", "5432"),
                name=_env("DB_NAME", "cti_db"),
                user=_env("DB_USER", "cti_user"),
                password=os.getenv("DB_PASSWORD", ""),
            )

        return cls(
            pg_dsn=pg_dsn,
            use_tor=os.getenv("USE_TOR", "false").strip().lower() == "true",
            tor_proxy=_env("TOR_PROXY", DEFAULT_TOR_PROXY),
            collection_interval=interval,
            sources_file=_env("SOURCES_FILE", DEFAULT_SOURCES_FILE),
            log_level=_env("LOG_LEVEL", "info"),
            http_timeout=_env_float("HTTP_TIMEOUT", 60.0),
            forum_timeout=_env_float("FORUM_TIMEOUT", 90.0),
            forum_max_links=_env_int("FORUM_MAX_LINKS", 100),
            forum_delay=_env_float("FORUM_DELAY", 2.0),
        )


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    if isinstance(level, int):
        return level
    logger.warning(f"Invalid LOG_LEVEL={name!r}, using INFO")
    return logging.INFO


def load_sources(path: str) -> List[Source]:
    """Read the JSON array of ``{name, url}`` source descriptors."""
    p = Path(path).expanduser()
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Sources file not found: {p}") from exc
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not read sources file {p}: {exc}") from exc

    if not isinstance(data, list):
        raise ConfigurationError(f"Sources file {p} must contain a JSON array")

    sources: List[Source] = []
    for idx, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Source #{idx} in {p} is not an object")
        url = str(entry.get("url") or "").strip()
        if not url:
            raise ConfigurationError(f"Source #{idx} in {p} has no url")
        name = str(entry.get("name") or "").strip() or urlparse(url).netloc or url
        sources.append(Source(name=name, url=url))
    return sources
