"""
ActivateLicenseHandler.

Handler for ActivateLicenseCommand.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from django.utils import timezone

from activations.domain.services import FeatureActivationService
from core.domain.events import EventBus
from core.domain.exceptions import (
    InvalidAmountError,
    InvalidDurationError,
    InvalidPaymentIDError,
    NoFeaturesOrBundlesError,
    PaymentAlreadyAppliedError,
    repository_failures,
)
from core.domain.value_objects import validate_organization_id
from core.infrastructure.locks import OrganizationLocks
from licenses.application.commands.activate_license import ActivateLicenseCommand
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.events import LicenseActivated
from licenses.domain.license import License
from licenses.domain.pricing import PaymentValidator
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ActivateLicenseHandler:
    """
    Handler for ActivateLicenseCommand.

    All input is validated before anything is written. The new license
    replaces any previous one and its features are activated in the same
    organization-locked section.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        validator: PaymentValidator,
        activation_service: FeatureActivationService,
        locks: OrganizationLocks,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        """Initialize handler with its collaborators."""
        self.license_repository = license_repository
        self.validator = validator
        self.activation_service = activation_service
        self.locks = locks
        self.event_bus = event_bus
        self.clock = clock

    def _validate(self, command: ActivateLicenseCommand) -> str:
        validate_organization_id(command.organization_id)
        if not command.payment_id or not command.payment_id.strip():
            raise InvalidPaymentIDError("Payment ID is required")
        if not command.features and not command.bundles:
            raise NoFeaturesOrBundlesError()
        if command.duration is None or command.duration <= timedelta(0):
            raise InvalidDurationError("License duration must be positive")
        if command.amount is None or Decimal(command.amount) <= 0:
            raise InvalidAmountError("Payment amount must be positive")

        catalog = self.validator.catalog
        currency = catalog.converter.normalize(command.currency)
        for feature_id in command.features:
            catalog.feature(feature_id)
        covered = catalog.expand(command.features, command.bundles)
        catalog.validate_dependencies(covered, covered)
        return currency

    async def handle(self, command: ActivateLicenseCommand) -> LicenseDTO:
        """
        Handle activate license command.

        Args:
            command: ActivateLicenseCommand

        Returns:
            LicenseDTO of the stored license

        Raises:
            InvalidOrganizationIDError, InvalidPaymentIDError, NoFeaturesOrBundlesError,
            InvalidDurationError, InvalidAmountError, InvalidCurrencyError,
            InvalidFeatureError, InvalidBundleError, MissingFeatureDependencyError:
                If the command is invalid
            InsufficientPaymentError: If the amount is below the price
            PaymentAlreadyAppliedError: If the payment already funds the current license
            RepositoryFailureError: If storage fails
        """
        currency = self._validate(command)
        amount = Decimal(command.amount)
        self.validator.validate_payment(amount, currency, command.features, command.bundles)

        async with self.locks.hold(command.organization_id):
            with repository_failures("load license"):
                current = await self.license_repository.find_by_organization(
                    command.organization_id
                )
            if current is not None and current.payment_id == command.payment_id:
                raise PaymentAlreadyAppliedError(
                    f"Payment {command.payment_id} already funds license {current.id}",
                    license_id=str(current.id),
                )
            license = License.create(
                organization_id=command.organization_id,
                features=command.features,
                bundles=command.bundles,
                payment_id=command.payment_id,
                currency=currency,
                amount=amount,
                duration=command.duration,
                now=self.clock(),
            )
            self.validator.validate_license_payment(license)

            with repository_failures("save license"):
                license = await self.license_repository.save(license)
            await self.activation_service.fan_out_license(license)

        logger.info(
            "License activated",
            extra={
                "organization_id": license.organization_id,
                "license_id": str(license.id),
                "payment_id": license.payment_id,
                "expires_at": license.expires_at.isoformat(),
            },
        )
        if self.event_bus is not None:
            await self.event_bus.publish(
                LicenseActivated(
                    organization_id=license.organization_id,
                    license_id=str(license.id),
                    features=tuple(sorted(license.features)),
                    bundles=tuple(sorted(license.bundles)),
                    payment_id=license.payment_id,
                    currency=license.currency,
                    amount=str(license.amount),
                    expires_at=license.expires_at,
                )
            )
        return LicenseDTO.from_entity(license)
