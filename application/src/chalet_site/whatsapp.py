"""WhatsApp deep links (wa.me) pre-filled with a composed message."""

from __future__ import annotations

import os
from urllib.parse import quote

DEFAULT_NUMBER = "559294197052"
BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves alone besides letters, digits and "_.-~"
_UNRESERVED = "!*'()"


def _business_number() -> str:
    return (os.environ.get("WHATSAPP_NUMBER") or "").strip() or DEFAULT_NUMBER


def encode_message(message: str) -> str:
    """Percent-encode like the browser's encodeURIComponent (UTF-8, spaces as %20)."""
    return quote(message, safe=_UNRESERVED)


def chat_url(number: str | None = None) -> str:
    """Direct chat link without a pre-filled message."""
    return f"{BASE_URL}/{number or _business_number()}"


def build_url(message: str, number: str | None = None) -> str:
    """https://wa.me/<number>?text=<encoded message>"""
    return f"{chat_url(number)}?text={encode_message(message)}"
