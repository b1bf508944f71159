"""Endpoint tests: availability JSON, calendar month view, WhatsApp redirects (feed mocked)."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from src.chalet_site.main import app
from src.chalet_site import feed


client = TestClient(app)

FEED_TEXT = """BEGIN:VCALENDAR
BEGIN:VEVENT
DTEND;VALUE=DATE:20240119
DTSTART;VALUE=DATE:20240117
SUMMARY:Reserved
END:VEVENT
BEGIN:VEVENT
DTSTART;VALUE=DATE:20240123
SUMMARY:Missing end
END:VEVENT
END:VCALENDAR
"""


def _booked(*days: str) -> feed.AvailabilityResult:
    return feed.AvailabilityResult(availability={d: "booked" for d in days}, events_count=1)


def _message(location: str) -> str:
    return parse_qs(urlparse(location).query)["text"][0]


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@patch("src.chalet_site.feed.fetch_calendar_text", return_value=FEED_TEXT)
def test_availability_success(mock_fetch):
    resp = client.get("/api/availability")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["availability"] == {"2024-01-17": "booked", "2024-01-18": "booked"}
    assert body["eventsCount"] == 1
    assert body["lastUpdated"].endswith("Z")
    mock_fetch.assert_called_once()


@patch("src.chalet_site.feed.fetch_calendar_text", side_effect=feed.FeedError("Erro ao buscar iCal: 503"))
def test_availability_upstream_status_failure(mock_fetch):
    resp = client.get("/api/availability")
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Erro ao buscar disponibilidade",
        "availability": {},
    }


@patch("src.chalet_site.feed.fetch_calendar_text", side_effect=httpx.ConnectError("unreachable"))
def test_availability_upstream_unreachable(mock_fetch):
    resp = client.get("/api/availability")
    assert resp.status_code == 500
    assert resp.json()["availability"] == {}
    assert resp.json()["success"] is False


@patch("src.chalet_site.feed.get_availability", return_value=_booked("2024-01-17", "2024-01-18"))
def test_calendar_month_view(mock_get):
    resp = client.get("/api/calendar", params=[("year", "2024"), ("month", "1"), ("selected", "2024-01-20")])
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["title"] == "Janeiro 2024"
    assert body["weekDays"][0] == "Dom"
    assert body["days"][0] is None
    days = {d["date"]: d for d in body["days"] if d}
    assert days["2024-01-17"]["status"] == "booked"
    assert days["2024-01-19"]["status"] == "available"
    assert days["2024-01-20"]["selected"] is True
    assert body["selectedDates"] == [{"date": "2024-01-20", "display": "20/01/2024"}]
    assert body["previous"] == {"year": 2023, "month": 12}
    assert body["next"] == {"year": 2024, "month": 2}


@patch("src.chalet_site.feed.get_availability", side_effect=feed.FeedError("Erro ao buscar iCal: 500"))
def test_calendar_month_view_feed_down(mock_get):
    resp = client.get("/api/calendar", params={"year": 2024, "month": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert all(d["status"] == "available" for d in body["days"] if d)


@patch("src.chalet_site.feed.get_availability", return_value=_booked())
def test_calendar_defaults_to_current_month(mock_get):
    today = date.today()
    body = client.get("/api/calendar").json()
    assert (body["year"], body["month"]) == (today.year, today.month)


@pytest.mark.parametrize("params", [
    {"year": 2024, "month": 0},
    {"year": 2024, "month": 13},
    {"year": 0, "month": 1},
    {"month": 0},
])
def test_calendar_invalid_month(params):
    resp = client.get("/api/calendar", params=params)
    assert resp.status_code == 400


@patch("src.chalet_site.feed.get_availability", return_value=_booked("2024-01-17", "2024-01-18"))
def test_reservation_redirects_to_whatsapp(mock_get):
    resp = client.post(
        "/api/reservation",
        data={"date": ["2024-01-20", "2024-01-19"]},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    location = resp.headers["location"]
    assert location.startswith("https://wa.me/")
    assert _message(location) == "Olá! Gostaria de fazer uma reserva para as seguintes datas: 2024-01-19, 2024-01-20"


@patch("src.chalet_site.feed.get_availability", return_value=_booked("2024-01-17", "2024-01-18"))
def test_reservation_rejects_booked_date(mock_get):
    resp = client.post("/api/reservation", data={"date": ["2024-01-17"]}, follow_redirects=False)
    assert resp.status_code == 409


@patch("src.chalet_site.feed.get_availability", return_value=_booked())
def test_reservation_rejects_invalid_date(mock_get):
    resp = client.post("/api/reservation", data={"date": ["2024-13-01"]}, follow_redirects=False)
    assert resp.status_code == 400


def test_reservation_empty_selection():
    resp = client.post(
        "/api/reservation",
        data={},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        follow_redirects=False,
    )
    assert resp.status_code == 400


def test_contact_redirects_with_placeholders():
    resp = client.post(
        "/api/contact",
        data={"name": "Maria", "phone": "(92) 99999-9999"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    msg = _message(resp.headers["location"])
    assert "👤 *Nome:* Maria" in msg
    assert msg.count("Não informado") == 4


def test_contact_browser_field_names():
    resp = client.post(
        "/api/contact",
        data={"name": "Maria", "phone": "1", "checkIn": "2024-01-17", "checkOut": "2024-01-19", "guests": "3"},
        follow_redirects=False,
    )
    msg = _message(resp.headers["location"])
    assert "📅 *Check-in:* 17/01/2024" in msg
    assert "📅 *Check-out:* 19/01/2024" in msg
    assert "👥 *Hóspedes:* 3" in msg


@pytest.mark.parametrize("data", [{"name": "Maria"}, {"phone": "1"}, {"name": " ", "phone": "1"}])
def test_contact_missing_required(data):
    resp = client.post("/api/contact", data=data, follow_redirects=False)
    assert resp.status_code == 400


def test_whatsapp_chat_link():
    resp = client.get("/api/whatsapp")
    assert resp.status_code == 200
    assert resp.json()["url"].startswith("https://wa.me/")


@patch("src.chalet_site.feed.get_availability", return_value=_booked("2024-01-17", "2024-01-18"))
def test_calendar_selected_dates_listing(mock_get):
    resp = client.get("/api/calendar", params=[
        ("year", "2024"), ("month", "1"),
        ("selected", "2024-01-21"), ("selected", "2024-01-17"),
        ("selected", "2024-01-19"), ("selected", "nope"), ("selected", "2024-01-21"),
    ])
    assert resp.status_code == 200
    assert resp.json()["selectedDates"] == [
        {"date": "2024-01-19", "display": "19/01/2024"},
        {"date": "2024-01-21", "display": "21/01/2024"},
    ]


@pytest.mark.parametrize("raw", ["20240120", "2024-W03-6", "2024-01-20T00:00"])
@patch("src.chalet_site.feed.get_availability", return_value=_booked())
def test_reservation_requires_plain_iso_day(mock_get, raw):
    resp = client.post("/api/reservation", data={"date": [raw]}, follow_redirects=False)
    assert resp.status_code == 400
