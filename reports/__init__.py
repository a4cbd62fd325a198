"""
Reports module - scheduled usage reports and their retention.

This module handles:
- Per-organization report schedules
- Report storage on the filesystem
- Retention policies and the periodic cleanup cycle
"""
