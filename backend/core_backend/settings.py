"""
Django settings for the cafe ordering backend.

Values come from the environment with development defaults. The order
engine reads its own tunables (ORDER_*) through django.conf.settings.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_list(name, default=""):
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-secret-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "channels",
    "cafes",
    "orders",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "core_backend.urls"
ASGI_APPLICATION = "core_backend.asgi.application"

# ============================================================================
# DATABASE
# ============================================================================

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
            "ATOMIC_REQUESTS": False,
            "OPTIONS": {
                # Store calls that hang are reported as failed transitions
                "options": f"-c statement_timeout={os.environ.get('POSTGRES_STATEMENT_TIMEOUT_MS', '5000')}",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# ============================================================================
# CHANNELS (publish/subscribe transport)
# ============================================================================

REDIS_URL = os.environ.get("REDIS_URL")

if REDIS_URL:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {"hosts": [REDIS_URL]},
        }
    }
else:
    CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }

# ============================================================================
# REST FRAMEWORK
# ============================================================================

REST_FRAMEWORK = {
    "EXCEPTION_HANDLER": "core_backend.exceptions.api_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

# ============================================================================
# IDENTITY (tokens issued by the external identity provider)
# ============================================================================

IDENTITY_TOKEN_SECRET = os.environ.get("IDENTITY_TOKEN_SECRET", SECRET_KEY)
IDENTITY_TOKEN_ALGORITHMS = env_list("IDENTITY_TOKEN_ALGORITHMS", "HS256")

# ============================================================================
# ORDER ENGINE
# ============================================================================

# Used by the wait-time fallback when a menu item has no preparation time
ORDER_DEFAULT_PREPARATION_MINUTES = int(os.environ.get("ORDER_DEFAULT_PREPARATION_MINUTES", "15"))
ORDER_PUBLIC_NAME_MASK = os.environ.get("ORDER_PUBLIC_NAME_MASK", "***")
ORDER_POPULAR_ITEMS_LIMIT = int(os.environ.get("ORDER_POPULAR_ITEMS_LIMIT", "10"))

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose" if not DEBUG else "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "core_backend": {"level": LOG_LEVEL},
        "cafes": {"level": LOG_LEVEL},
        "orders": {"level": LOG_LEVEL},
    },
}
