"""
GetLicenseStatusQuery and GetRenewalStatusQuery.
"""
from dataclasses import dataclass


@dataclass
class GetLicenseStatusQuery:
    """Query to get the license status of an organization."""

    organization_id: str


@dataclass
class GetRenewalStatusQuery:
    """Query to get the renewal status of an organization."""

    organization_id: str
