"""
Test settings for EnterpriseEntitlementService.
"""

import tempfile

from .base import *  # noqa: F403, F401

DEBUG = False

# In-memory SQLite; apps without migrations get their tables from syncdb
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Use in-memory cache for tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password hashers for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

ENTITLEMENTS = {
    **ENTITLEMENTS,  # noqa: F405
    "REPORTS_DIR": tempfile.mkdtemp(prefix="entitlement-reports-"),
    "PAYMENT_PROVIDER": {"BACKEND": "memory"},
    "NOTIFICATION_SINK": "email",
    "BILLING_CONTACT_EMAIL": "billing@example.com",
}

# Disable logging during tests
LOGGING_CONFIG = None
