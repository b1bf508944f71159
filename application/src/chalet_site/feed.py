"""Fetch the property's iCal export (Airbnb) and turn it into an availability map."""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from . import ical

DEFAULT_ICAL_URL = (
    "https://www.airbnb.com.br/calendar/ical/1457198661856129067.ics?s=64254c8251f4f54cf8b4c3ae58363ea5"
)
USER_AGENT = "Mozilla/5.0 (compatible; Calendar-Sync/1.0)"
CACHE_SECONDS = 3600
TIMEOUT_SECONDS = 10.0

# url -> (fetched_at monotonic, body)
_cache: dict[str, tuple[float, str]] = {}


class FeedError(Exception):
    """Upstream calendar feed answered with a non-success status."""


@dataclass
class AvailabilityResult:
    availability: dict[str, str]
    events_count: int
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def last_updated_iso(self) -> str:
        """UTC timestamp with milliseconds and Z suffix (e.g. 2024-01-17T12:00:00.000Z)."""
        return self.last_updated.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _ical_url() -> str:
    return (os.environ.get("ICAL_URL") or "").strip() or DEFAULT_ICAL_URL


def _cache_seconds() -> float:
    try:
        return float(os.environ.get("ICAL_CACHE_SECONDS", CACHE_SECONDS))
    except ValueError:
        return float(CACHE_SECONDS)


def _timeout() -> float:
    try:
        return float(os.environ.get("ICAL_TIMEOUT_SECONDS", TIMEOUT_SECONDS))
    except ValueError:
        return TIMEOUT_SECONDS


def clear_cache() -> None:
    _cache.clear()


async def fetch_calendar_text(
    url: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    GET the feed body. Cached per URL for ICAL_CACHE_SECONDS; failures are not cached.

    Raises FeedError on non-success status and httpx.HTTPError on network failure.
    """
    url = url or _ical_url()
    ttl = _cache_seconds()
    cached = _cache.get(url)
    if cached and ttl > 0 and time.monotonic() - cached[0] < ttl:
        print(f"[feed] Cache hit for {url}", file=sys.stderr)
        return cached[1]

    async with httpx.AsyncClient(timeout=_timeout(), transport=transport) as client:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
    if not response.is_success:
        print(f"[feed] Calendar fetch failed with status {response.status_code}", file=sys.stderr)
        raise FeedError(f"Erro ao buscar iCal: {response.status_code}")

    body = response.text
    _cache[url] = (time.monotonic(), body)
    print(f"[feed] Fetched {len(body)} bytes from {url}", file=sys.stderr)
    return body


async def get_availability(
    url: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AvailabilityResult:
    """Fetch + parse + expand. Errors propagate; the HTTP layer turns them into a failure response."""
    text = await fetch_calendar_text(url, transport=transport)
    events = ical.parse_ical(text)
    return AvailabilityResult(
        availability=ical.build_availability(events),
        events_count=len(events),
    )
