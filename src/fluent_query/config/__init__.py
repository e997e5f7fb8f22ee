"""Configuration management for fluent-query.

Usage:
    >>> from fluent_query.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.param_prefix)
"""

from fluent_query.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
