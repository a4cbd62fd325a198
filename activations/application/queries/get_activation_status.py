"""
Activation status queries.
"""
from dataclasses import dataclass


@dataclass
class GetFeatureStatusQuery:
    """Query to get the activation status of one feature."""

    organization_id: str
    feature_id: str


@dataclass
class GetFeatureAccessQuery:
    """Query to check whether an organization may use a feature."""

    organization_id: str
    feature_id: str


@dataclass
class GetBundleStatusQuery:
    """Query to get the activation status of a bundle."""

    organization_id: str
    bundle_id: str
