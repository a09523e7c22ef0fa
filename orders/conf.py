from django.conf import settings

# Fallbacks for the PRINTSHOP_* settings; printshop/settings.py fills them
# from the environment.
DEFAULTS = {
    "PRICE_PER_PAGE": 5,
    "MAX_FILE_SIZE": 10 * 1024 * 1024,
    "MAX_TOTAL_UPLOAD": 50 * 1024 * 1024,
    "MAX_FILES": 10,
    "ALLOWED_EXTENSIONS": (".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"),
    "ADMIN_PASSCODE": "admin123",
    "ADMIN_SESSION_TTL": 60 * 60 * 24,
    "ADMIN_WHATSAPP": "919412010234",
    "ORDERS_PER_PAGE": 10,
    "ADMIN_PAGE_LIMIT": 50,
}


def shop_setting(name: str):
    return getattr(settings, f"PRINTSHOP_{name}", DEFAULTS[name])
