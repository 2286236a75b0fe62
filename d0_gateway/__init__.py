"""
D0 Gateway - HTTP clients for the backend analytics services

Schema introspection, report execution and dashboard persistence all go
through this gateway. No other domain makes direct HTTP calls.
"""

from .base import BaseAPIClient
from .exceptions import (
    APIProviderError,
    AuthenticationError,
    InvalidResponseError,
    ServiceUnavailableError,
    TimeoutError,
)
from .providers import DashboardServiceClient, ReportServiceClient, SchemaIntrospectionClient

__all__ = [
    "BaseAPIClient",
    "DashboardServiceClient",
    "ReportServiceClient",
    "SchemaIntrospectionClient",
    # Exceptions
    "APIProviderError",
    "AuthenticationError",
    "ServiceUnavailableError",
    "InvalidResponseError",
    "TimeoutError",
]
