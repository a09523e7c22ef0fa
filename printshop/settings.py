import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "printshop-dev-only-secret")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "orders.apps.OrdersConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "printshop.urls"
WSGI_APPLICATION = "printshop.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("PRINTSHOP_DB_PATH", str(BASE_DIR / "db.sqlite3")),
        # concurrent writers wait for the lock instead of failing at once
        "OPTIONS": {"timeout": 20},
        # file backed so tests can hit the database from several threads
        "TEST": {
            "NAME": os.getenv("PRINTSHOP_TEST_DB_PATH", str(BASE_DIR / "test_db.sqlite3")),
        },
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "Asia/Kolkata")

# Uploaded print files live under MEDIA_ROOT/<phone>/<name>
MEDIA_ROOT = os.getenv("PRINTSHOP_UPLOAD_DIR", str(BASE_DIR / "uploads"))
MEDIA_URL = "/uploads/"

PRINTSHOP_PRICE_PER_PAGE = int(os.getenv("PRINTSHOP_PRICE_PER_PAGE", "5"))
PRINTSHOP_MAX_FILE_SIZE = int(os.getenv("PRINTSHOP_MAX_FILE_SIZE", str(10 * 1024 * 1024)))
PRINTSHOP_MAX_TOTAL_UPLOAD = int(os.getenv("PRINTSHOP_MAX_TOTAL_UPLOAD", str(50 * 1024 * 1024)))
PRINTSHOP_MAX_FILES = int(os.getenv("PRINTSHOP_MAX_FILES", "10"))
PRINTSHOP_ADMIN_PASSCODE = os.getenv("PRINTSHOP_ADMIN_PASSCODE", "admin123")
PRINTSHOP_ADMIN_SESSION_TTL = int(os.getenv("PRINTSHOP_ADMIN_SESSION_TTL", str(60 * 60 * 24)))
PRINTSHOP_ADMIN_WHATSAPP = os.getenv("PRINTSHOP_ADMIN_WHATSAPP", "919412010234")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "orders": {
            "handlers": ["console"],
            "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"),
        },
    },
}
