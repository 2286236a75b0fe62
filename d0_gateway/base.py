"""
Base API client with common functionality for all backend service clients
"""

import time
from typing import Any

import httpx

from core.config import get_settings
from core.exceptions import ConfigurationError, ExternalAPIError
from core.logging import get_logger

from .exceptions import AuthenticationError, ServiceUnavailableError, TimeoutError


class BaseAPIClient:
    """Base class for the backend REST service clients

    One request is one round trip: no caching, no retries and no client-side
    rate limiting. Errors propagate to the caller as ExternalAPIError.
    """

    def __init__(
        self,
        provider: str,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
    ):
        self.provider = provider
        self.settings = get_settings()
        self.logger = get_logger(f"gateway.{provider}", domain="d0", provider=provider)

        self.base_url = base_url or self._get_base_url()
        if not self.base_url:
            raise ConfigurationError(f"No base URL configured for {provider}", setting="api_base_url")
        self.api_token = api_token or self.settings.get_api_token()
        self.timeout = timeout or self.settings.request_timeout

        self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), headers=self._get_headers())

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    def _get_base_url(self) -> str:
        """Get the base URL for the backend"""
        return self.settings.api_base_url

    def _get_headers(self) -> dict[str, str]:
        """Get JSON and authentication headers"""
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json; charset=utf-8",
        }
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _build_url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def _raise_for_status(self, response: Any) -> None:
        """Convert an error response into an exception carrying the server's own text"""
        if response.status_code < 400:
            return

        error_msg = f"HTTP {response.status_code}"
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                error_msg = error_data.get("message") or error_data.get("error") or error_msg
        except Exception:
            error_msg = response.text or getattr(response, "reason_phrase", None) or error_msg

        if response.status_code == 401:
            raise AuthenticationError(provider=self.provider, message=error_msg)
        if response.status_code == 503:
            raise ServiceUnavailableError(provider=self.provider, message=error_msg)

        raise ExternalAPIError(
            provider=self.provider,
            message=error_msg,
            status_code=response.status_code,
            response_body=response.text,
        )

    async def _send(self, method: str, endpoint: str, **kwargs) -> Any:
        url = self._build_url(endpoint)
        self.logger.debug(f"{method} {url}")

        start_time = time.time()
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            self.logger.warning(f"{method} {endpoint} timed out after {self.timeout}s")
            raise TimeoutError(provider=self.provider, timeout_seconds=self.timeout) from e
        except httpx.HTTPError as e:
            self.logger.warning(f"{method} {endpoint} failed: {e}")
            raise ExternalAPIError(provider=self.provider, message=str(e), status_code=500) from e

        duration_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(f"{method} {endpoint} -> {response.status_code} in {duration_ms}ms")

        self._raise_for_status(response)
        return response

    async def make_request(self, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
        """
        Make an authenticated API request

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Dict containing the API response. Non-JSON bodies are returned
            as {"text": body}.

        Raises:
            AuthenticationError: When the backend answers 401
            ServiceUnavailableError: When the backend answers 503
            TimeoutError: When the request times out
            ExternalAPIError: When the backend returns an error
        """
        response = await self._send(method, endpoint, **kwargs)

        try:
            return response.json()
        except ValueError:
            return {"text": response.text}

    async def download(self, endpoint: str, params: dict[str, Any] | None = None) -> bytes:
        """Fetch a binary artifact"""
        response = await self._send("GET", endpoint, params=params)
        return response.content

    async def health_check(self) -> dict[str, Any]:
        """Perform a health check on the backend"""
        try:
            await self.make_request("GET", "health")
            return {"provider": self.provider, "status": "healthy"}
        except Exception as e:
            return {"provider": self.provider, "status": "unhealthy", "error": str(e)}
