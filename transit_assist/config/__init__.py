"""
Configuration package for the Transit Assist backend.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    TransitProviderKind,
    RedisSettings,
    CacheSettings,
    RecommendationSettings,
    PresenceSettings,
    TransitSettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "TransitProviderKind",
    "RedisSettings",
    "CacheSettings",
    "RecommendationSettings",
    "PresenceSettings",
    "TransitSettings",
    "settings",
    "get_settings",
    "reload_settings",
]
