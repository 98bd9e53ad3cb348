"""
Base Django settings for the DD ride dispatch backend.

Production overrides live in prod.py (``from .settings import *``).
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-dev-only-change-me")

DEBUG = os.getenv("DJANGO_DEBUG", "True") == "True"

ALLOWED_HOSTS = ["*"]


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third party
    "rest_framework",
    "corsheaders",
    "channels",

    # Local apps
    "accounts",
    "events",
    "drivers",
    "rides",
    "monitoring",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "dispatch_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "dispatch_backend.wsgi.application"
ASGI_APPLICATION = "dispatch_backend.asgi.application"


# Database

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

AUTH_USER_MODEL = "accounts.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]


# Internationalization

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# REST framework

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

# Tokens are issued by the identity service; we only verify them
SIMPLE_JWT = {
    "SIGNING_KEY": os.getenv("JWT_SIGNING_KEY", SECRET_KEY),
    "USER_ID_CLAIM": "user_id",
}

CORS_ALLOW_ALL_ORIGINS = DEBUG


# Channels (in-memory for dev/tests; prod.py switches to Redis)

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}


# Redis / Celery

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_URL = os.getenv("REDIS_URL", f"redis://{REDIS_HOST}:{REDIS_PORT}/0")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = os.getenv("CELERY_TASK_ALWAYS_EAGER", "False") == "True"


# Dispatch engine tuning (see services/config.py)

def _env_number(name, default):
    value = os.getenv(f"RIDE_DISPATCH_{name}")
    return type(default)(value) if value is not None else default


RIDE_DISPATCH = {
    "CLASS_WEIGHT": _env_number("CLASS_WEIGHT", 10.0),
    "WAIT_WEIGHT": _env_number("WAIT_WEIGHT", 0.5),
    "EMERGENCY_PRIORITY": _env_number("EMERGENCY_PRIORITY", 9999.0),
    "AVERAGE_RIDE_MINUTES": _env_number("AVERAGE_RIDE_MINUTES", 15.0),
    "MAX_BATCH_SIZE": _env_number("MAX_BATCH_SIZE", 500),
    "MAX_ASSIGN_ATTEMPTS": _env_number("MAX_ASSIGN_ATTEMPTS", 3),
    "PRIORITY_REFRESH_SECONDS": _env_number("PRIORITY_REFRESH_SECONDS", 60),
    "TOGGLE_THRESHOLD": _env_number("TOGGLE_THRESHOLD", 5),
    "TOGGLE_WINDOW_MINUTES": _env_number("TOGGLE_WINDOW_MINUTES", 30),
    "PROLONGED_INACTIVITY_MINUTES": _env_number("PROLONGED_INACTIVITY_MINUTES", 15),
    "MONITOR_INTERVAL_SECONDS": _env_number("MONITOR_INTERVAL_SECONDS", 60),
    "EMERGENCY_ESCALATION_SECONDS": _env_number("EMERGENCY_ESCALATION_SECONDS", 120),
    "TASK_MAX_RETRIES": _env_number("TASK_MAX_RETRIES", 5),
}

CELERY_BEAT_SCHEDULE = {
    "dispatch-active-events": {
        "task": "rides.tasks.dispatch_active_events_task",
        "schedule": float(RIDE_DISPATCH["PRIORITY_REFRESH_SECONDS"]),
    },
    "monitor-driver-activity": {
        "task": "monitoring.tasks.monitor_driver_activity_task",
        "schedule": float(RIDE_DISPATCH["MONITOR_INTERVAL_SECONDS"]),
    },
}


# Logging

LOG_LEVEL = os.getenv("DJANGO_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        name: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for name in ("services", "realtime", "rides", "drivers", "monitoring")
    },
}
