"""HTTP session construction, with optional SOCKS routing for anonymized networks."""

from __future__ import annotations

import time
from typing import Callable

import requests

USER_AGENT = "ThreatWatch-Collector/1.0"

MAX_BODY_BYTES = 10 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


class ResponseTooLarge(requests.exceptions.RequestException):
    """Raised when a response body exceeds the configured size cap."""


def socks_proxy_url(tor_proxy: str) -> str:
    """``host:port`` -> ``socks5h://host:port`` (hostname resolution happens at the proxy)."""
    target = (tor_proxy or "").strip()
    if "://" in target:
        target = target.split("://", 1)[1]
    return f"socks5h://{target}"


def build_session(*, use_tor: bool = False, tor_proxy: str = "tor:9050") -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    if use_tor:
        proxy = socks_proxy_url(tor_proxy)
        session.proxies.update({"http": proxy, "https": proxy})
    return session


def fetch_body(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    max_bytes: int = MAX_BODY_BYTES,
    clock: Callable[[], float] = time.monotonic,
) -> bytes:
    """GET ``url`` and return the raw body.

    ``timeout`` bounds the whole exchange, body included, not just each socket
    read. Bodies larger than ``max_bytes`` raise ResponseTooLarge.
    """
    deadline = clock() + timeout
    with session.get(url, timeout=timeout, stream=True) as resp:
        resp.raise_for_status()
        try:
            declared = int(resp.headers.get("Content-Length") or 0)
        except ValueError:
            declared = 0
        if declared > max_bytes:
            raise ResponseTooLarge(f"{url} declares {declared} bytes (cap {max_bytes})")

        body = bytearray()
        for chunk in resp.iter_content(CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > max_bytes:
                raise ResponseTooLarge(f"{url} exceeded {max_bytes} bytes")
            if clock() > deadline:
                raise requests.exceptions.Timeout(f"{url} did not finish within {timeout:g}s")
        return bytes(body)
