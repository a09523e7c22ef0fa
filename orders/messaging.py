"""Deep links into the shop's WhatsApp channel.

Nothing here sends a message: the links are handed to the browser, which
opens WhatsApp with the text pre-filled.
"""
from urllib.parse import quote

from .conf import shop_setting

WHATSAPP_BASE = "https://wa.me"


def deep_link(number: str, message: str) -> str:
    return f"{WHATSAPP_BASE}/{number}?text={quote(message, safe='')}"


def customer_verification_link(token: str) -> str:
    """Customer -> admin: asks the admin to verify the token."""
    return deep_link(shop_setting("ADMIN_WHATSAPP"), f"verify #{token}")


def admin_verification_link(phone: str, token: str) -> str:
    """Admin -> customer: confirms the verification."""
    return deep_link(phone, f"verified #{token}")


def cancellation_request_link(order_id: str) -> str:
    return deep_link(
        shop_setting("ADMIN_WHATSAPP"),
        f"Please cancel my paid order #{order_id}",
    )
