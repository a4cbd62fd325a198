"""
Django implementation of ActivationRepository port.

This adapter converts between domain entities and Django ORM models.
"""

from decimal import Decimal
from typing import List, Optional

from asgiref.sync import sync_to_async

from activations.domain.activation import FeatureActivation
from activations.infrastructure.models import FeatureActivation as ActivationModel
from activations.ports.activation_repository import ActivationRepository


class DjangoActivationRepository(ActivationRepository):
    """
    Django ORM implementation of ActivationRepository.

    The (organization, feature) pair is unique; saving an activation for
    a pair that already has a row updates that row in place.
    """

    def _to_domain(self, model: ActivationModel) -> FeatureActivation:
        """
        Convert Django model to domain entity.

        Args:
            model: Django FeatureActivation model

        Returns:
            FeatureActivation domain entity
        """
        return FeatureActivation(
            id=model.id,
            organization_id=model.organization_id,
            feature_id=model.feature_id,
            active=model.active,
            activated_at=model.activated_at,
            expires_at=model.expires_at,
            payment_id=model.payment_id,
            currency=model.currency,
            amount=Decimal(model.amount),
            source=model.source,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    def save(self, activation: FeatureActivation) -> FeatureActivation:
        """
        Insert or update the activation row for its organization and feature.

        Args:
            activation: FeatureActivation entity to save

        Returns:
            Saved activation entity
        """
        fields = {
            "active": activation.active,
            "activated_at": activation.activated_at,
            "expires_at": activation.expires_at,
            "payment_id": activation.payment_id,
            "currency": activation.currency,
            "amount": activation.amount,
            "source": activation.source,
            "created_at": activation.created_at,
            "updated_at": activation.updated_at,
        }
        model = ActivationModel.objects.filter(
            organization_id=activation.organization_id, feature_id=activation.feature_id
        ).first()
        if model is None:
            model = ActivationModel(
                id=activation.id,
                organization_id=activation.organization_id,
                feature_id=activation.feature_id,
            )
        for name, value in fields.items():
            setattr(model, name, value)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    def find(self, organization_id: str, feature_id: str) -> Optional[FeatureActivation]:
        """
        Find the activation of one feature.

        Args:
            organization_id: Organization ID
            feature_id: Feature ID

        Returns:
            FeatureActivation or None if not found
        """
        try:
            model = ActivationModel.objects.get(
                organization_id=organization_id, feature_id=feature_id
            )
        except ActivationModel.DoesNotExist:
            return None
        return self._to_domain(model)

    @sync_to_async
    def list_active(self, organization_id: str) -> List[FeatureActivation]:
        """
        List active activations of an organization.

        Args:
            organization_id: Organization ID

        Returns:
            List of FeatureActivation entities
        """
        models_list = ActivationModel.objects.filter(organization_id=organization_id, active=True)
        return [self._to_domain(model) for model in models_list]

    @sync_to_async
    def list_by_organization(self, organization_id: str) -> List[FeatureActivation]:
        """
        List all activations of an organization.

        Args:
            organization_id: Organization ID

        Returns:
            List of FeatureActivation entities
        """
        models_list = ActivationModel.objects.filter(organization_id=organization_id)
        return [self._to_domain(model) for model in models_list]
