"""
Django implementation of RetentionPolicyRepository port.
"""
from typing import Optional

from asgiref.sync import sync_to_async

from reports.domain.retention import RetentionPolicy
from reports.infrastructure.models import RetentionPolicy as RetentionPolicyModel
from reports.ports.report_storage import RetentionPolicyRepository


class DjangoRetentionPolicyRepository(RetentionPolicyRepository):
    """Django ORM implementation of RetentionPolicyRepository."""

    def _to_domain(self, model: RetentionPolicyModel) -> RetentionPolicy:
        return RetentionPolicy(
            daily_reports=model.daily_reports,
            weekly_reports=model.weekly_reports,
            monthly_reports=model.monthly_reports,
        )

    @sync_to_async
    def find(self, organization_id: str) -> Optional[RetentionPolicy]:
        try:
            model = RetentionPolicyModel.objects.get(organization_id=organization_id)
        except RetentionPolicyModel.DoesNotExist:
            return None
        return self._to_domain(model)

    @sync_to_async
    def save(
        self, organization_id: str, policy: RetentionPolicy, updated_by: Optional[str] = None
    ) -> RetentionPolicy:
        RetentionPolicyModel.objects.update_or_create(
            organization_id=organization_id,
            defaults={
                "daily_reports": policy.daily_reports,
                "weekly_reports": policy.weekly_reports,
                "monthly_reports": policy.monthly_reports,
                "updated_by": updated_by or "",
            },
        )
        return policy

    @sync_to_async
    def delete(self, organization_id: str) -> bool:
        deleted, _ = RetentionPolicyModel.objects.filter(organization_id=organization_id).delete()
        return deleted > 0
