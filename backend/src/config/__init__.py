"""
Configuration module for the Ekklesia backend.

Provides centralized, environment-driven application settings.
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
