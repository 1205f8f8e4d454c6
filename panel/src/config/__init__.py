"""
Configuration module for the panel backend.

Provides centralized configuration for:
- Association lookup list limit
- Form session lifetime
"""

from panel.src.config.settings import AppSettings, get_settings, DEFAULT_LOOKUP_LIST_LIMIT

__all__ = [
    "AppSettings",
    "get_settings",
    "DEFAULT_LOOKUP_LIST_LIMIT",
]
