"""
Catalog module - fixed feature, bundle and tier definitions.

This module handles:
- Feature, Bundle and Tier definitions with per-currency prices
- Feature dependencies
- Currency conversion against a static rate table
"""
