"""
Expose the ORM models to Django's app registry.
"""
from reports.infrastructure.models import RetentionPolicy  # noqa: F401
