"""
Shared fixtures for the analytics engine test suite
"""
from unittest.mock import AsyncMock, Mock

import pytest

from core.config import Settings, get_settings
from d1_reports.models import ReportDraft, ReportField, ReportHeader, ReportResult


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the settings cache before each test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings():
    """Settings isolated from .env files and the process environment overrides"""
    return Settings(_env_file=None, environment="test", business_vertical_id="bv-1")


@pytest.fixture
def sales_result():
    """Two-column result with upper-case keys as returned by the backend"""
    return ReportResult(
        headers=[
            ReportHeader(key="REGION", label="Region", data_type="text"),
            ReportHeader(key="TOTAL", label="Total Sales", data_type="number"),
        ],
        data=[
            {"REGION": "North", "TOTAL": 120},
            {"REGION": "South", "TOTAL": "80.5"},
            {"REGION": "East", "TOTAL": None},
            {"REGION": "West", "TOTAL": "n/a"},
        ],
    )


@pytest.fixture
def draft_with_field():
    return ReportDraft(
        name="Monthly Sales",
        data_sources=[{"alias": "data", "table_name": "form_sales", "form_code": "SALES", "form_id": "f-1"}],
        fields=[ReportField(field_name="region", alias="Region", order=1)],
    )


@pytest.fixture
def mock_report_client():
    """ReportServiceClient double with every endpoint as an AsyncMock"""
    client = Mock()
    client.provider = "reports"
    for name in (
        "list_reports",
        "get_report",
        "create_report",
        "update_report",
        "delete_report",
        "clone_report",
        "toggle_favorite",
        "execute_report",
        "preview_report",
        "export_report",
        "list_schedules",
        "create_schedule",
        "update_schedule",
        "delete_schedule",
    ):
        setattr(client, name, AsyncMock())
    return client


@pytest.fixture
def mock_dashboard_client():
    client = Mock()
    client.provider = "dashboards"
    for name in ("get_dashboard", "create_dashboard", "update_dashboard"):
        setattr(client, name, AsyncMock())
    return client
