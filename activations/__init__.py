"""
Activations module - per-feature activation state of an organization.

This module handles:
- FeatureActivation entity and activation targets (feature, bundle, tier)
- Activating and deactivating features covered by the license
- Activation status of features and bundles
"""
