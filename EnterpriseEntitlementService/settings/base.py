"""
Base Django settings for EnterpriseEntitlementService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from celery.schedules import crontab

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-q8v$1m+e7n!x0p@kz3#d4w^s9u&j2c(h5r)t6y_b%g-f*a=l"
)

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
    "drf_spectacular",
    # Local apps
    "EnterpriseEntitlementService.apps.EnterpriseEntitlementServiceConfig",
    "core",
    "catalog",
    "licenses",
    "activations",
    "usage",
    "reports",
    "payments",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "core.middleware.observability.ObservabilityMiddleware",
    "core.middleware.metrics.MetricsMiddleware",
    "core.middleware.identity.IdentityMiddleware",
    "core.middleware.tracing.TracingMiddleware",
]

ROOT_URLCONF = "EnterpriseEntitlementService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "EnterpriseEntitlementService.wsgi.application"
ASGI_APPLICATION = "EnterpriseEntitlementService.asgi.application"

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "entitlement_service"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    # "format" is a usage report query parameter, not a renderer override
    "URL_FORMAT_OVERRIDE": None,
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "Enterprise Entitlement Service API",
    "DESCRIPTION": (
        "Feature entitlement service for paid enterprise licenses. "
        "Provides endpoints for license activation and renewal, feature access "
        "checks, usage reporting and payment processing."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Licenses", "description": "License activation, status and renewal"},
        {"name": "Features", "description": "Feature and bundle activation and access"},
        {"name": "Reports", "description": "Usage reports and retention policies"},
        {"name": "Payments", "description": "Checkout and payment webhooks"},
    ],
}

# Redis Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/1"),
        "OPTIONS": {
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        },
    }
}

# Email
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "25"))
DEFAULT_FROM_EMAIL = os.environ.get("NOTIFICATION_FROM_EMAIL", "billing@localhost")

# Entitlement engine
ENTITLEMENTS = {
    "REPORTS_DIR": os.environ.get("REPORTS_DIR", str(BASE_DIR / "reports_output")),
    "REPORT_CLEANUP_INTERVAL_SECONDS": int(
        os.environ.get("REPORT_CLEANUP_INTERVAL_SECONDS", "86400")
    ),
    "REPORT_SCHEDULE": {
        "PERIOD": os.environ.get("REPORT_PERIOD", "monthly"),
        "FORMAT": os.environ.get("REPORT_FORMAT", "json"),
        "FREQUENCY_HOURS": float(os.environ.get("REPORT_FREQUENCY_HOURS", "24")),
    },
    "RENEWAL_NOTICE_DAYS": int(os.environ.get("RENEWAL_NOTICE_DAYS", "30")),
    "PAYMENT_PROVIDER": {
        "BACKEND": os.environ.get("PAYMENT_PROVIDER", "mollie"),
        "API_KEY": os.environ.get("MOLLIE_API_KEY", ""),
        "BASE_URL": os.environ.get("MOLLIE_BASE_URL", "https://api.mollie.com/v2"),
        "REDIRECT_URL": os.environ.get("PAYMENT_REDIRECT_URL", "http://localhost:8000/"),
        "WEBHOOK_URL": os.environ.get(
            "PAYMENT_WEBHOOK_URL", "http://localhost:8000/api/v1/payments/webhook"
        ),
        "TIMEOUT": float(os.environ.get("PAYMENT_PROVIDER_TIMEOUT", "10")),
    },
    "NOTIFICATION_SINK": os.environ.get("NOTIFICATION_SINK", "celery"),
    "NOTIFICATION_FROM_EMAIL": DEFAULT_FROM_EMAIL,
    "BILLING_CONTACT_EMAIL": os.environ.get("BILLING_CONTACT_EMAIL"),
}

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "expire-overdue-licenses": {
        "task": "core.tasks.expire_overdue_licenses_task",
        "schedule": crontab(minute=0, hour=0),
    },
    "send-renewal-notifications": {
        "task": "core.tasks.send_renewal_notifications_task",
        "schedule": crontab(minute=0, hour=8),
    },
}

# Observability
LOGGING = get_logging_config(os.environ.get("DJANGO_ENV", "development"))
