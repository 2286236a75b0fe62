"""Core utilities and configuration for the analytics engine"""
from core.config import settings
from core.exceptions import AnalyticsError, ExternalAPIError, ValidationError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "AnalyticsError",
    "ValidationError",
    "ExternalAPIError",
]
