"""
Test Helper Utilities

Reusable helpers for common test patterns to ensure consistency
and reduce boilerplate across the test suite.
"""

from typing import Any, Optional
from unittest.mock import Mock


def make_response(
    status_code: int = 200,
    json_data: Optional[Any] = None,
    text: str = "",
    content: bytes = b"",
) -> Mock:
    """
    Build a mock httpx response.

    Usage:
        client.client.request = AsyncMock(return_value=make_response(200, {"tables": []}))

    A response without ``json_data`` raises ValueError from ``.json()``, like
    httpx does for non-JSON bodies.
    """
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.content = content
    response.reason_phrase = ""
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


def recorded_updates() -> tuple:
    """
    Collector for WidgetRefreshScheduler callbacks.

    Returns:
        (updates, callback) where every callback invocation appends
        (widget_id, payload, error) to ``updates``
    """
    updates = []

    def on_update(widget_id, payload, error):
        updates.append((widget_id, payload, error))

    return updates, on_update
