"""
Dashboard persistence service client
"""
from typing import Any, Dict, List, Optional

from d0_gateway.base import BaseAPIClient


class DashboardServiceClient(BaseAPIClient):
    """Client for the dashboard persistence service"""

    def __init__(self, **kwargs):
        super().__init__(provider="dashboards", **kwargs)

    async def list_dashboards(self, **params) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        return await self.make_request("GET", "/dashboards", params=query)

    async def get_dashboard(self, dashboard_id: str) -> Dict[str, Any]:
        return await self.make_request("GET", f"/dashboards/{dashboard_id}")

    async def create_dashboard(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a dashboard with its full widget array, returns {dashboard, message}"""
        return await self.make_request("POST", "/dashboards", json=payload)

    async def update_dashboard(self, dashboard_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("PUT", f"/dashboards/{dashboard_id}", json=payload)

    async def delete_dashboard(self, dashboard_id: str) -> Dict[str, Any]:
        return await self.make_request("DELETE", f"/dashboards/{dashboard_id}")

    async def clone_dashboard(self, dashboard_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        return await self.make_request("POST", f"/dashboards/{dashboard_id}/clone", json={"name": name})

    async def set_default_dashboard(self, dashboard_id: str) -> Dict[str, Any]:
        return await self.make_request("POST", f"/dashboards/{dashboard_id}/set-default")

    async def execute_dashboard(self, dashboard_id: str) -> Dict[str, Any]:
        """Execute every widget report server-side, returns {results: {widget_id: result}}"""
        return await self.make_request("POST", f"/dashboards/{dashboard_id}/execute")

    # Widgets

    async def add_widget(self, dashboard_id: str, widget: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("POST", f"/dashboards/{dashboard_id}/widgets", json=widget)

    async def update_widget(self, dashboard_id: str, widget_id: str, widget: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("PUT", f"/dashboards/{dashboard_id}/widgets/{widget_id}", json=widget)

    async def remove_widget(self, dashboard_id: str, widget_id: str) -> Dict[str, Any]:
        return await self.make_request("DELETE", f"/dashboards/{dashboard_id}/widgets/{widget_id}")

    async def update_layout(self, dashboard_id: str, widgets: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Replace the full widget layout"""
        return await self.make_request("PUT", f"/dashboards/{dashboard_id}/layout", json={"layout": widgets})
