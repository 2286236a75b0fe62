"""
Gateway-specific exceptions
"""
from typing import Optional

from core.exceptions import ExternalAPIError


class APIProviderError(ExternalAPIError):
    """Error from a backend service"""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        self.response_data = response_data
        super().__init__(provider=provider, message=message, status_code=status_code or 500)


class AuthenticationError(APIProviderError):
    """Backend rejected the bearer token"""

    def __init__(self, provider: str, message: str = "Authentication failed"):
        super().__init__(provider, message, status_code=401)


class ServiceUnavailableError(APIProviderError):
    """Backend service is temporarily unavailable"""

    def __init__(self, provider: str, message: str = "Service temporarily unavailable"):
        super().__init__(provider, message, status_code=503)


class InvalidResponseError(APIProviderError):
    """Invalid or unexpected response from a backend service"""

    def __init__(self, provider: str, expected_format: str, received_data: Optional[str] = None):
        message = f"Invalid response format, expected {expected_format}"
        super().__init__(provider, message, status_code=502, response_data={"received": received_data})


class TimeoutError(APIProviderError):
    """Request to a backend service timed out"""

    def __init__(self, provider: str, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(provider, "Request timeout", status_code=408)

