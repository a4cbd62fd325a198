"""
Licenses module - paid enterprise licenses.

This module handles:
- License entity and its lifecycle (activate, renew, expire, cancel)
- Payment validation against catalog pricing
- Entitlement resolution and renewal status
"""
