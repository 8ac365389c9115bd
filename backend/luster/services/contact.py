"""
WhatsApp deep links for the "chat with us" buttons
"""
from typing import Optional
from urllib.parse import quote

from luster.core.config import settings

DEFAULT_WHATSAPP_MESSAGE = "Hello Luster Legacy! I would like to know more about your jewelry."


def whatsapp_link(message: Optional[str] = None, product_name: Optional[str] = None) -> str:
    """
    https://wa.me/<number>?text=<url-encoded message>

    A product name, when given, is mentioned at the end of the message.
    """
    text = (message or "").strip() or DEFAULT_WHATSAPP_MESSAGE
    if product_name:
        text = f"{text} I'm interested in: {product_name.strip()}"

    number = "".join(ch for ch in settings.WHATSAPP_NUMBER if ch.isdigit())
    return f"https://wa.me/{number}?text={quote(text, safe='')}"
