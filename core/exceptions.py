"""
Custom exceptions for the analytics engine
Provides structured error handling across all domains
"""
from typing import Any, Dict, Optional


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for display or logging"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AnalyticsError):
    """Raised when a draft, widget or dashboard fails validation"""

    def __init__(self, message: str, field: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field, **details} if field else details,
            status_code=400,
        )


class ExternalAPIError(AnalyticsError):
    """Raised when a backend service call fails"""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **details,
    ):
        super().__init__(
            message=message,
            error_code="EXTERNAL_API_ERROR",
            details={
                "provider": provider,
                "api_status_code": status_code,
                "response_body": response_body,
                **details,
            },
            status_code=status_code or 502,
        )
        self.provider = provider


class ConfigurationError(AnalyticsError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else {},
            status_code=500,
        )
