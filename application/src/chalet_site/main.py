"""FastAPI app: GET /api/availability from the Airbnb iCal feed, plus WhatsApp reservation links."""

from __future__ import annotations

import sys
import traceback
from datetime import date
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load .env when running locally (application/.env or repo root .env / .env.local)
_app_dir = Path(__file__).resolve().parent.parent.parent  # application/
_repo_root = _app_dir.parent
load_dotenv(_app_dir / ".env")
load_dotenv(_app_dir / ".env.local")
load_dotenv(_repo_root / ".env")
load_dotenv(_repo_root / ".env.local")

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from . import calendar_picker, contact_form, feed, whatsapp

app = FastAPI(title="Chalet Booking Site", version="0.1.0")

AVAILABILITY_ERROR = "Erro ao buscar disponibilidade"


async def _load_availability() -> feed.AvailabilityResult | None:
    """Availability map for this request, or None if the feed failed (error already logged)."""
    try:
        return await feed.get_availability()
    except Exception:
        print("[availability] Erro ao processar iCal:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return None


@app.get("/api/availability")
async def availability() -> JSONResponse:
    """Booked days derived from the calendar feed; failures become an empty map with success=false."""
    result = await _load_availability()
    if result is None:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": AVAILABILITY_ERROR, "availability": {}},
        )
    return JSONResponse(content={
        "success": True,
        "availability": result.availability,
        "lastUpdated": result.last_updated_iso(),
        "eventsCount": result.events_count,
    })


@app.get("/api/calendar")
async def calendar_month(request: Request, year: int | None = None, month: int | None = None) -> Response:
    """Month grid for the picker. Repeated ?selected=YYYY-MM-DD marks the visitor's selection."""
    today = date.today()
    year = today.year if year is None else year
    month = today.month if month is None else month
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        return Response(status_code=400, content="Invalid month")

    result = await _load_availability()
    booked = result.availability if result else {}
    selection = calendar_picker.visible_selection(request.query_params.getlist("selected"), booked)
    cells = calendar_picker.month_view(year, month, booked, selected=selection.dates, today=today)
    prev_year, prev_month = calendar_picker.shift_month(year, month, -1)
    next_year, next_month = calendar_picker.shift_month(year, month, 1)

    payload: dict[str, Any] = {
        "success": result is not None,
        "title": calendar_picker.month_title(year, month),
        "year": year,
        "month": month,
        "weekDays": calendar_picker.WEEK_DAYS,
        "days": [cell.to_dict() if cell else None for cell in cells],
        "selectedDates": selection.listing(),
        "previous": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
        "otherDatesUrl": calendar_picker.other_dates_url(),
    }
    if result is None:
        payload["error"] = AVAILABILITY_ERROR
    return JSONResponse(content=payload)


@app.post("/api/reservation")
async def reservation(request: Request) -> Response:
    """Selected dates (form field `date`, repeatable) -> redirect to the WhatsApp reservation link."""
    form_multi = await request.form()
    raw_dates = [str(d) for d in form_multi.getlist("date")]
    if not any(d.strip() for d in raw_dates):
        return Response(status_code=400, content="No dates selected")

    result = await _load_availability()
    booked = result.availability if result else {}
    try:
        selection = calendar_picker.selection_from_dates(raw_dates, booked)
    except calendar_picker.BookedDateError as exc:
        return Response(status_code=409, content=str(exc))
    except ValueError:
        return Response(status_code=400, content="Invalid date")

    return RedirectResponse(selection.reservation_url(), status_code=303)


@app.post("/api/contact")
async def contact(request: Request) -> Response:
    """Inquiry form submission -> redirect to the pre-filled WhatsApp message."""
    form_multi = await request.form()
    req = contact_form.ContactRequest.from_form(dict(form_multi))
    try:
        url = req.whatsapp_url()
    except contact_form.IncompleteFormError as exc:
        return Response(status_code=400, content=str(exc))
    print("[contact] Inquiry message composed", file=sys.stderr)
    return RedirectResponse(url, status_code=303)


@app.get("/api/whatsapp")
async def whatsapp_link() -> dict[str, str]:
    """Direct chat link for the business number."""
    return {"url": whatsapp.chat_url()}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
