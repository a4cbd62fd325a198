"""
Payments module - payment creation, provider webhooks and notifications.

This module handles:
- Creating provider payments for license purchases and renewals
- Applying provider webhook outcomes to licenses
- Payment and license notifications
"""
