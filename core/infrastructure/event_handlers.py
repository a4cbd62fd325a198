"""
Event handlers for domain events.

These handlers process domain events for side effects like audit
logging, metrics and keeping activations in step with licenses.
"""

import logging
from typing import Optional

from activations.domain.events import FeaturesActivated, FeaturesDeactivated
from core.domain.events import DomainEvent, EventBus, EventHandler
from core.metrics import (
    licenses_activated_total,
    licenses_canceled_total,
    licenses_expired_total,
    licenses_renewed_total,
)
from licenses.domain.events import (
    LicenseActivated,
    LicenseCanceled,
    LicenseExpired,
    LicenseRenewed,
)
from reports.domain.events import ReportsDeleted, RetentionPolicyChanged

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

AUDITED_EVENTS = (
    LicenseActivated,
    LicenseRenewed,
    LicenseExpired,
    LicenseCanceled,
    FeaturesActivated,
    FeaturesDeactivated,
    RetentionPolicyChanged,
    ReportsDeleted,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every event as one structured line to the "audit" logger.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        audit_logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
                "payload": event.to_dict(),
            },
        )


class MetricsEventHandler(EventHandler):
    """Event handler counting license lifecycle events in Prometheus."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, LicenseActivated):
            licenses_activated_total.labels(currency=event.currency).inc()
        elif isinstance(event, LicenseRenewed):
            licenses_renewed_total.labels(currency=event.currency).inc()
        elif isinstance(event, LicenseExpired):
            licenses_expired_total.inc()
        elif isinstance(event, LicenseCanceled):
            licenses_canceled_total.inc()


def register_event_handlers(
    event_bus: EventBus, renewal_handler: Optional[EventHandler] = None
) -> None:
    """
    Register all event handlers with the event bus.

    Args:
        event_bus: Bus to subscribe on
        renewal_handler: Handler extending activations on LicenseRenewed
    """
    audit_handler = AuditLogEventHandler()
    metrics_handler = MetricsEventHandler()

    for event_type in AUDITED_EVENTS:
        event_bus.subscribe(event_type, audit_handler)
    for event_type in (LicenseActivated, LicenseRenewed, LicenseExpired, LicenseCanceled):
        event_bus.subscribe(event_type, metrics_handler)
    if renewal_handler is not None:
        event_bus.subscribe(LicenseRenewed, renewal_handler)

    logger.info("Event handlers registered")
