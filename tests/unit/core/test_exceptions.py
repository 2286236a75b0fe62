"""
Tests for the exception hierarchy
"""

import pytest

from core.exceptions import AnalyticsError, ConfigurationError, ExternalAPIError, ValidationError
from d0_gateway.exceptions import AuthenticationError, InvalidResponseError, TimeoutError

pytestmark = pytest.mark.unit


class TestAnalyticsErrors:
    def test_base_error_to_dict(self):
        error = AnalyticsError("Something broke", details={"step": 2})
        assert error.to_dict() == {
            "error": "AnalyticsError",
            "message": "Something broke",
            "details": {"step": 2},
        }
        assert error.status_code == 500

    def test_validation_error_carries_field(self):
        error = ValidationError("Please enter a report name", field="name")
        assert error.status_code == 400
        assert error.error_code == "VALIDATION_ERROR"
        assert error.details == {"field": "name"}
        assert str(error) == "Please enter a report name"

    def test_external_api_error_keeps_server_text(self):
        error = ExternalAPIError("reports", "Table form_x does not exist", status_code=422, response_body="{}")
        assert error.message == "Table form_x does not exist"
        assert error.status_code == 422
        assert error.provider == "reports"
        assert error.details["response_body"] == "{}"

    def test_external_api_error_defaults_to_bad_gateway(self):
        assert ExternalAPIError("reports", "boom").status_code == 502

    def test_configuration_error(self):
        error = ConfigurationError("Missing base URL", setting="api_base_url")
        assert error.details == {"setting": "api_base_url"}


class TestGatewayErrors:
    def test_gateway_errors_are_external_api_errors(self):
        for error in (
            AuthenticationError("reports"),
            TimeoutError("reports", timeout_seconds=30),
            InvalidResponseError("reports", expected_format="{report}"),
        ):
            assert isinstance(error, ExternalAPIError)
            assert isinstance(error, AnalyticsError)

    def test_timeout_error(self):
        error = TimeoutError("schema", timeout_seconds=30)
        assert error.status_code == 408
        assert error.message == "Request timeout"
        assert error.timeout_seconds == 30

    def test_authentication_error(self):
        assert AuthenticationError("dashboards").status_code == 401
