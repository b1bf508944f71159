"""iCal feed parsing: VEVENT blocks -> booked day strings (checkout day excluded)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

BOOKED = "booked"
AVAILABLE = "available"
DEFAULT_SUMMARY = "Reserva"


@dataclass
class CalendarEvent:
    """A reserved block from the feed (end is the checkout day)."""
    start: date
    end: date
    summary: str = DEFAULT_SUMMARY


def _property_value(line: str) -> str:
    """Value after the first ':' (parameters like ;VALUE=DATE are ignored)."""
    parts = line.split(":")
    return parts[1].strip() if len(parts) > 1 else ""


def parse_ical_date(value: str) -> date | None:
    """Parse YYYYMMDD[THHMMSS[Z]] keeping only the first 8 digits. None if not a real day."""
    clean = value.replace("T", "").replace("Z", "")[:8]
    if len(clean) != 8 or not clean.isdigit():
        return None
    try:
        return date(int(clean[:4]), int(clean[4:6]), int(clean[6:8]))
    except ValueError:
        return None


def parse_ical(text: str) -> list[CalendarEvent]:
    """
    Single pass over the feed lines. An event is kept only if both DTSTART and DTEND
    parsed; anything outside BEGIN:VEVENT / END:VEVENT is ignored.
    """
    events: list[CalendarEvent] = []
    start: date | None = None
    end: date | None = None
    summary = DEFAULT_SUMMARY
    in_event = False

    for line in text.split("\n"):
        stripped = line.strip()
        if stripped == "BEGIN:VEVENT":
            in_event = True
            start, end, summary = None, None, DEFAULT_SUMMARY
        elif stripped == "END:VEVENT" and in_event:
            if start is not None and end is not None:
                events.append(CalendarEvent(start=start, end=end, summary=summary))
            in_event = False
        elif in_event:
            if stripped.startswith("DTSTART"):
                start = parse_ical_date(_property_value(stripped))
            elif stripped.startswith("DTEND"):
                end = parse_ical_date(_property_value(stripped))
            elif stripped.startswith("SUMMARY"):
                summary = _property_value(stripped) or DEFAULT_SUMMARY

    return events


def dates_between(start: date, end: date) -> list[str]:
    """ISO day strings in [start, end). Empty when end <= start."""
    days: list[str] = []
    current = start
    while current < end:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


def build_availability(events: list[CalendarEvent]) -> dict[str, str]:
    """Union of every event's nights, each marked BOOKED."""
    availability: dict[str, str] = {}
    for event in events:
        for day in dates_between(event.start, event.end):
            availability[day] = BOOKED
    return availability
