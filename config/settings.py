"""
POS Inventory – Django Settings (Infrastructure Only)
=====================================================
Django is the container for configuration, logging and the durable
ledger table. The inventory core does not depend on Django at import
time; poscore.config.load_settings() reads POS_INVENTORY from here.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("POS_SECRET_KEY", "pos-dev-key-replace-before-deployment")

DEBUG = os.environ.get("POS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    # ── POS Modules ───────────────────────────────────────
    "poscore.ledger",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("POS_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Inventory Core ────────────────────────────────────────────
# Keys map onto poscore.config.InventorySettings (case-insensitive).
POS_INVENTORY = {
    "CATALOG_PATH": os.environ.get(
        "POS_CATALOG_PATH", str(BASE_DIR / "static" / "products_master.csv")
    ),
    "BATCH_PATH": os.environ.get("POS_BATCH_PATH") or None,
    "DEFAULT_REORDER_POINT": 20,
    "ALLOW_NEGATIVE_STOCK": False,
    "EXPIRY_WARNING_DAYS": 30,
    "DEFAULT_PAGE_SIZE": 20,
    "MAX_PAGE_SIZE": 100,
}

# ── Logging ───────────────────────────────────────────────────
POS_LOG_LEVEL = os.environ.get("POS_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "pos": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "pos",
        },
    },
    "loggers": {
        "pos": {
            "handlers": ["console"],
            "level": POS_LOG_LEVEL,
            "propagate": True,
        },
        "pos.projections": {
            "level": "INFO",
        },
    },
}
