"""
Renewal handlers.

Handlers for RenewLicenseCommand and BulkRenewLicensesCommand.
"""
from licenses.application.commands.renew_license import (
    BulkRenewLicensesCommand,
    RenewLicenseCommand,
)
from licenses.application.dto.license_dto import (
    BulkRenewalDTO,
    BulkRenewalFailureDTO,
    LicenseDTO,
)
from licenses.domain.renewal import RenewalManager


class RenewLicenseHandler:
    """Handler for RenewLicenseCommand."""

    def __init__(self, renewal_manager: RenewalManager):
        """Initialize handler with the renewal manager."""
        self.renewal_manager = renewal_manager

    async def handle(self, command: RenewLicenseCommand) -> LicenseDTO:
        """
        Handle renew license command.

        Args:
            command: RenewLicenseCommand

        Returns:
            LicenseDTO of the replacement license

        Raises:
            LicenseNotFoundError: If the organization has no license
            InsufficientPaymentError: If the amount is below the price
        """
        renewed = await self.renewal_manager.renew(
            organization_id=command.organization_id,
            payment_id=command.payment_id,
            amount=command.amount,
            currency=command.currency,
            duration=command.duration,
        )
        return LicenseDTO.from_entity(renewed)


class BulkRenewLicensesHandler:
    """Handler for BulkRenewLicensesCommand."""

    def __init__(self, renewal_manager: RenewalManager):
        """Initialize handler with the renewal manager."""
        self.renewal_manager = renewal_manager

    async def handle(self, command: BulkRenewLicensesCommand) -> BulkRenewalDTO:
        """
        Handle bulk renewal command.

        Per-organization failures are reported in the result.

        Raises:
            InsufficientPaymentError: If the payment does not cover the batch
        """
        result = await self.renewal_manager.renew_bulk(
            organization_ids=command.organization_ids,
            payment_id=command.payment_id,
            total_amount=command.total_amount,
            currency=command.currency,
            duration=command.duration,
        )
        return BulkRenewalDTO(
            currency=result.currency,
            total_required=result.total_required,
            succeeded=[LicenseDTO.from_entity(lic) for lic in result.succeeded.values()],
            failed=[
                BulkRenewalFailureDTO(organization_id=org_id, code=exc.code, message=exc.message)
                for org_id, exc in result.failed.items()
            ],
        )
