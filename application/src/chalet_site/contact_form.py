"""Booking inquiry form: field state, required-field check and the WhatsApp message."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from . import whatsapp
from .calendar_picker import format_display_date

PROPERTY_NAME = "Anauê Jungle Chalés"
NOT_PROVIDED = "Não informado"
NO_MESSAGE = "Nenhuma mensagem adicional"
REQUIRED_FIELDS = ("name", "phone")
GUEST_OPTIONS = ("1", "2", "3", "4", "5", "6+")

# Browser field ids that differ from the attribute names
_FORM_ALIASES = {"checkIn": "check_in", "checkOut": "check_out"}


class IncompleteFormError(ValueError):
    """Submission attempted without every required field."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


@dataclass
class ContactRequest:
    name: str = ""
    email: str = ""
    phone: str = ""
    check_in: str = ""  # YYYY-MM-DD from <input type="date">
    check_out: str = ""
    guests: str = ""
    message: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "ContactRequest":
        """Accepts browser ids (checkIn) or attribute names (check_in); unknown keys ignored."""
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in form.items():
            attr = _FORM_ALIASES.get(key, key)
            if attr in known and value is not None:
                values[attr] = str(value).strip()
        # The guests select only offers GUEST_OPTIONS
        if values.get("guests") and values["guests"] not in GUEST_OPTIONS:
            values["guests"] = ""
        return cls(**values)

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]

    @property
    def is_submittable(self) -> bool:
        return not self.missing_fields()

    def compose_message(self) -> str:
        return compose_message(self)

    def whatsapp_url(self) -> str:
        missing = self.missing_fields()
        if missing:
            raise IncompleteFormError(missing)
        return whatsapp.build_url(self.compose_message())


def _display_date(value: str) -> str:
    value = value.strip()
    return format_display_date(value) if value else NOT_PROVIDED


def compose_message(req: ContactRequest) -> str:
    """Fixed inquiry template; optional fields left blank read NOT_PROVIDED."""
    lines = [
        f"🏠 *Nova Solicitação de Reserva - {PROPERTY_NAME}*",
        "",
        f"👤 *Nome:* {req.name.strip()}",
        f"📧 *Email:* {req.email.strip() or NOT_PROVIDED}",
        f"📱 *Telefone:* {req.phone.strip()}",
        "",
        f"📅 *Check-in:* {_display_date(req.check_in)}",
        f"📅 *Check-out:* {_display_date(req.check_out)}",
        f"👥 *Hóspedes:* {req.guests.strip() or NOT_PROVIDED}",
        "",
        "💬 *Mensagem:*",
        req.message.strip() or NO_MESSAGE,
        "",
        "---",
        "Enviado através do site oficial",
    ]
    return "\n".join(lines)
