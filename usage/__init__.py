"""
Usage module - per-feature usage tracking and usage reports.

This module handles:
- Thread-safe usage counters per organization and feature
- Usage report generation joined with pricing and expiry
- JSON and CSV report export
"""
