"""
Service-specific API clients for D0 Gateway
"""

from .dashboards import DashboardServiceClient
from .reports import ReportServiceClient
from .schema import SchemaIntrospectionClient

__all__ = [
    "DashboardServiceClient",
    "ReportServiceClient",
    "SchemaIntrospectionClient",
]
