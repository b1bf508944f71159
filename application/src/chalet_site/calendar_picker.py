"""Availability calendar picker: month grid, date selection and the reservation message."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable

from . import whatsapp
from .ical import AVAILABLE, BOOKED

MONTH_NAMES = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

# Weeks start on Sunday
WEEK_DAYS = ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]

RESERVATION_PREFIX = "Olá! Gostaria de fazer uma reserva para as seguintes datas: "
OTHER_DATES_MESSAGE = "Olá! Gostaria de verificar a disponibilidade para outras datas."


class EmptySelectionError(ValueError):
    """Reservation requested with no dates selected."""


class BookedDateError(ValueError):
    """A booked date cannot be part of a reservation."""


def format_date(year: int, month: int, day: int) -> str:
    """YYYY-MM-DD with 1-based month."""
    return f"{year}-{month:02d}-{day:02d}"


def parse_day(date_str: str) -> date:
    """Strict YYYY-MM-DD; raises ValueError otherwise."""
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def format_display_date(date_str: str) -> str:
    """pt-BR display (dd/mm/yyyy); unparseable strings are returned as-is."""
    try:
        return parse_day(date_str).strftime("%d/%m/%Y")
    except (ValueError, TypeError):
        return date_str


def month_grid(year: int, month: int) -> list[int | None]:
    """Leading None cells up to the weekday of the 1st, then 1..last day."""
    first_weekday, days_in_month = calendar.monthrange(year, month)
    leading = (first_weekday + 1) % 7  # monthrange counts from Monday
    cells: list[int | None] = [None] * leading
    cells.extend(range(1, days_in_month + 1))
    return cells


def shift_month(year: int, month: int, step: int) -> tuple[int, int]:
    """Move step months back (negative) or forward, rolling the year."""
    index = year * 12 + (month - 1) + step
    return index // 12, index % 12 + 1


def month_title(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def date_status(availability: dict[str, str], date_str: str) -> str:
    return availability.get(date_str, AVAILABLE)


@dataclass
class DayCell:
    day: int
    date: str
    status: str
    selected: bool = False
    is_today: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "date": self.date,
            "status": self.status,
            "selected": self.selected,
            "isToday": self.is_today,
        }


def month_view(
    year: int,
    month: int,
    availability: dict[str, str],
    selected: Iterable[str] = (),
    today: date | None = None,
) -> list[DayCell | None]:
    """Grid cells for one month with status, selection and today flags."""
    today = today or date.today()
    chosen = set(selected)
    cells: list[DayCell | None] = []
    for day in month_grid(year, month):
        if day is None:
            cells.append(None)
            continue
        date_str = format_date(year, month, day)
        status = date_status(availability, date_str)
        cells.append(DayCell(
            day=day,
            date=date_str,
            status=status,
            selected=date_str in chosen and status != BOOKED,
            is_today=date(year, month, day) == today,
        ))
    return cells


def reservation_message(dates: Iterable[str]) -> str:
    ordered = sorted(set(dates))
    if not ordered:
        raise EmptySelectionError("No dates selected")
    return RESERVATION_PREFIX + ", ".join(ordered)


def other_dates_url() -> str:
    """Link for asking about dates not shown in the calendar."""
    return whatsapp.build_url(OTHER_DATES_MESSAGE)


@dataclass
class Selection:
    """
    Dates a visitor picked for one browsing session.

    Unordered and deduplicated; booked dates are never accepted.
    """
    availability: dict[str, str] = field(default_factory=dict)
    _dates: set[str] = field(default_factory=set, init=False)

    def is_selected(self, date_str: str) -> bool:
        return date_str in self._dates

    def is_booked(self, date_str: str) -> bool:
        return date_status(self.availability, date_str) == BOOKED

    def toggle(self, date_str: str) -> bool:
        """Add or remove date_str. Returns False (no change) for a booked date."""
        if self.is_booked(date_str):
            return False
        if date_str in self._dates:
            self._dates.discard(date_str)
        else:
            self._dates.add(date_str)
        return True

    def remove(self, date_str: str) -> None:
        self._dates.discard(date_str)

    def clear(self) -> None:
        self._dates.clear()

    @property
    def dates(self) -> list[str]:
        """Selected dates in ascending order."""
        return sorted(self._dates)

    @property
    def can_reserve(self) -> bool:
        return bool(self._dates)

    def reservation_message(self) -> str:
        return reservation_message(self._dates)

    def reservation_url(self) -> str:
        return whatsapp.build_url(self.reservation_message())

    def listing(self) -> list[dict[str, str]]:
        """Sorted selection with pt-BR display dates (the "Datas Selecionadas" panel)."""
        return [{"date": d, "display": format_display_date(d)} for d in self.dates]


def visible_selection(dates: Iterable[str], availability: dict[str, str]) -> Selection:
    """Selection from query dates, silently leaving out invalid and booked ones."""
    selection = Selection(availability=availability)
    for raw in dates:
        try:
            date_str = parse_day((raw or "").strip()).isoformat()
        except ValueError:
            continue
        if not selection.is_selected(date_str):
            selection.toggle(date_str)
    return selection


def selection_from_dates(dates: Iterable[str], availability: dict[str, str]) -> Selection:
    """
    Build a Selection from submitted dates. Raises ValueError for a non-day string
    and BookedDateError if any date is booked.
    """
    selection = Selection(availability=availability)
    for raw in dates:
        date_str = (raw or "").strip()
        if not date_str:
            continue
        date_str = parse_day(date_str).isoformat()
        if selection.is_booked(date_str):
            raise BookedDateError(f"{date_str} is already booked")
        if not selection.is_selected(date_str):
            selection.toggle(date_str)
    return selection
