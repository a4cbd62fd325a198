"""
Expose the ORM models to Django's app registry.
"""
from activations.infrastructure.models import FeatureActivation  # noqa: F401
