"""Timestamp normalization for feed entries.

Feeds disagree on date formats. Layouts are tried in a fixed order and the first
successful parse wins; anything unparseable is stamped with the current time.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

_RFC1123_BASE = "%a, %d %b %Y %H:%M:%S"

# Abbreviations with a well-known offset. Any other alphabetic zone is read as UTC.
ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "UT": 0,
    "Z": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}

_ABBREV_RE = re.compile(r"^(.*\d{2}:\d{2}:\d{2})\s+([A-Za-z]{1,5})$")
_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$",
    re.IGNORECASE,
)


def _parse_numeric_offset(s: str) -> Optional[datetime]:
    try:
        return datetime.strptime(s, _RFC1123_BASE + " %z")
    except ValueError:
        return None


def _parse_zone_abbrev(s: str) -> Optional[datetime]:
    m = _ABBREV_RE.match(s)
    if not m:
        return None
    try:
        naive = datetime.strptime(m.group(1), _RFC1123_BASE)
    except ValueError:
        return None
    hours = ZONE_OFFSETS.get(m.group(2).upper(), 0)
    return naive.replace(tzinfo=timezone(timedelta(hours=hours)))


def _parse_rfc3339(s: str) -> Optional[datetime]:
    m = _RFC3339_RE.match(s)
    if not m:
        return None
    base, frac, zone = m.groups()
    iso = base.upper()
    if frac:
        iso += "." + frac[:6].ljust(6, "0")
    iso += "+00:00" if zone.upper() == "Z" else zone
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


# RFC1123Z, RFC1123, "Mon, 02 Jan 2006 15:04:05 -0700", "Mon, 02 Jan 2006 15:04:05 MST", RFC3339
FEED_DATE_LAYOUTS: Tuple[Tuple[str, Callable[[str], Optional[datetime]]], ...] = (
    ("rfc1123z", _parse_numeric_offset),
    ("rfc1123", _parse_zone_abbrev),
    ("numeric_offset", _parse_numeric_offset),
    ("zone_abbrev", _parse_zone_abbrev),
    ("rfc3339", _parse_rfc3339),
)


def parse_feed_date(value: Optional[str], *, now: Optional[datetime] = None) -> datetime:
    """Parse a feed timestamp into an aware datetime.

    Returns ``now`` (default: the current UTC time) if no layout matches.
    """
    s = (value or "").strip()
    if s:
        for _name, parser in FEED_DATE_LAYOUTS:
            parsed = parser(s)
            if parsed is not None:
                return parsed
    return now if now is not None else datetime.now(timezone.utc)
