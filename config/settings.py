"""
Hotelius – Django Settings (Infrastructure Only)
=================================================
Django serves as the framework container for Hotelius.
Engine code never imports these settings; the adapter wiring reads
them and passes plain values (PricingRules, secrets, limits) inward.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("HOTELIUS_SECRET_KEY", "hotelius-dev-key-replace-before-deployment")

DEBUG = _env_bool("HOTELIUS_DEBUG", False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("HOTELIUS_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # ── Hotelius Modules ──────────────────────────────────
    "core.booking_store",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL ───────────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("HOTELIUS_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Pricing ───────────────────────────────────────────────────
# Strings so they reach Decimal without passing through float.
HOTELIUS_TAX_RATE = os.environ.get("HOTELIUS_TAX_RATE", "0.10")
HOTELIUS_PLATFORM_FEE_RATE = os.environ.get("HOTELIUS_PLATFORM_FEE_RATE", "0.10")
HOTELIUS_PLATFORM_FEE_MINIMUM_CENTS = int(
    os.environ.get("HOTELIUS_PLATFORM_FEE_MINIMUM_CENTS", "200")
)

# ── Webhooks ──────────────────────────────────────────────────
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
HOTELIUS_WEBHOOK_MAX_PAYLOAD_BYTES = 64 * 1024
HOTELIUS_WEBHOOK_SIGNATURE_TOLERANCE_SECONDS = 300

# ── Cron ──────────────────────────────────────────────────────
HOTELIUS_CRON_SECRET = os.environ.get("HOTELIUS_CRON_SECRET", "")

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "hotelius": {
            "handlers": ["console"],
            "level": os.environ.get("HOTELIUS_LOG_LEVEL", "INFO"),
        },
    },
}
