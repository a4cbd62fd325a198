"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions. Every exception carries a
machine-readable code that the API layer forwards to clients.
"""
from contextlib import contextmanager
from typing import Iterator, Optional


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class NotFoundError(DomainException):
    """Base exception for absent records."""

    pass


class LicenseNotFoundError(NotFoundError):
    """Raised when an organization has no license."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class ActivationNotFoundError(NotFoundError):
    """Raised when a feature activation is not found."""

    def __init__(self, message: str = "Feature activation not found"):
        super().__init__(message, code="ACTIVATION_NOT_FOUND")


class PaymentNotFoundError(NotFoundError):
    """Raised when the payment provider does not know a payment."""

    def __init__(self, message: str = "Payment not found"):
        super().__init__(message, code="PAYMENT_NOT_FOUND")


class ScheduleNotFoundError(NotFoundError):
    """Raised when an organization has no report schedule."""

    def __init__(self, message: str = "Report schedule not found"):
        super().__init__(message, code="SCHEDULE_NOT_FOUND")


class ValidationError(DomainException):
    """Base exception for invalid caller input."""

    pass


class InvalidAmountError(ValidationError):
    """Raised when a payment amount is invalid."""

    def __init__(self, message: str = "Invalid payment amount"):
        super().__init__(message, code="INVALID_AMOUNT")


class InvalidCurrencyError(ValidationError):
    """Raised when a currency is not supported."""

    def __init__(self, message: str = "Invalid currency"):
        super().__init__(message, code="INVALID_CURRENCY")


class InvalidDurationError(ValidationError):
    """Raised when a license duration is not positive."""

    def __init__(self, message: str = "Invalid license duration"):
        super().__init__(message, code="INVALID_DURATION")


class InvalidBillingPeriodError(ValidationError):
    """Raised when a billing period is unknown."""

    def __init__(self, message: str = "Invalid billing period"):
        super().__init__(message, code="INVALID_BILLING_PERIOD")


class InvalidOrganizationIDError(ValidationError):
    """Raised when an organization ID is missing or malformed."""

    def __init__(self, message: str = "Invalid organization ID"):
        super().__init__(message, code="INVALID_ORGANIZATION_ID")


class InvalidPaymentIDError(ValidationError):
    """Raised when a payment ID is missing."""

    def __init__(self, message: str = "Invalid payment ID"):
        super().__init__(message, code="INVALID_PAYMENT_ID")


class NoFeaturesOrBundlesError(ValidationError):
    """Raised when a license request names neither features nor bundles."""

    def __init__(self, message: str = "At least one feature or bundle is required"):
        super().__init__(message, code="NO_FEATURES_OR_BUNDLES")


class InvalidFeatureError(ValidationError):
    """Raised when a feature ID is not in the catalog."""

    def __init__(self, message: str = "Invalid feature"):
        super().__init__(message, code="INVALID_FEATURE")


class InvalidBundleError(ValidationError):
    """Raised when a bundle ID is not in the catalog."""

    def __init__(self, message: str = "Invalid bundle"):
        super().__init__(message, code="INVALID_BUNDLE")


class InvalidTierError(ValidationError):
    """Raised when a tier ID is not in the catalog."""

    def __init__(self, message: str = "Invalid tier"):
        super().__init__(message, code="INVALID_TIER")


class InvalidActivationTargetError(ValidationError):
    """Raised when an activation request does not name exactly one target."""

    def __init__(self, message: str = "Exactly one of tier, bundle or feature is required"):
        super().__init__(message, code="INVALID_ACTIVATION_TARGET")


class MissingFeatureDependencyError(ValidationError):
    """Raised when a feature's dependencies are not covered."""

    def __init__(self, message: str = "Feature dependencies are not satisfied"):
        super().__init__(message, code="MISSING_FEATURE_DEPENDENCY")


class InvalidReportPeriodError(ValidationError):
    """Raised when a report period is unknown."""

    def __init__(self, message: str = "Invalid report period"):
        super().__init__(message, code="INVALID_REPORT_PERIOD")


class InvalidRetentionPolicyError(ValidationError):
    """Raised when a retention threshold is below its minimum."""

    def __init__(self, message: str = "Invalid retention policy"):
        super().__init__(message, code="INVALID_RETENTION_POLICY")


class UnsupportedFormatError(ValidationError):
    """Raised when a report export format is not supported."""

    def __init__(self, message: str = "Unsupported export format"):
        super().__init__(message, code="UNSUPPORTED_FORMAT")


class InsufficientPaymentError(DomainException):
    """Raised when a paid amount is below the computed price."""

    def __init__(self, message: str = "Payment amount is below the required price"):
        super().__init__(message, code="INSUFFICIENT_PAYMENT")


class EntitlementError(DomainException):
    """Base exception for denied entitlements."""

    pass


class LicenseRequiredError(EntitlementError):
    """Raised when an operation needs a valid license."""

    def __init__(self, message: str = "A valid license is required"):
        super().__init__(message, code="LICENSE_REQUIRED")


class FeatureNotAllowedError(EntitlementError):
    """Raised when the license does not cover a feature."""

    def __init__(self, message: str = "Feature is not covered by the license"):
        super().__init__(message, code="FEATURE_NOT_ALLOWED")


class RepositoryFailureError(DomainException):
    """Raised when a storage collaborator fails."""

    def __init__(self, message: str = "Repository operation failed"):
        super().__init__(message, code="REPOSITORY_FAILURE")


class PaymentProviderError(DomainException):
    """Raised when the payment provider cannot be reached or rejects a call."""

    def __init__(self, message: str = "Payment provider error"):
        super().__init__(message, code="PAYMENT_PROVIDER_ERROR")


class PaymentAlreadyAppliedError(DomainException):
    """Raised when a payment already funds the organization's current license."""

    def __init__(
        self, message: str = "Payment already applied", license_id: Optional[str] = None
    ):
        super().__init__(message, code="PAYMENT_ALREADY_APPLIED")
        self.license_id = license_id


@contextmanager
def repository_failures(operation: str) -> Iterator[None]:
    """
    Wrap collaborator errors raised inside the block.

    Domain exceptions pass through unchanged; anything else becomes a
    RepositoryFailureError chained to the original error.

    Usage:
        with repository_failures("save license"):
            await repository.save(license)
    """
    try:
        yield
    except DomainException:
        raise
    except Exception as exc:
        raise RepositoryFailureError(f"{operation} failed: {exc}") from exc
