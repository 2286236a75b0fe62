"""
Report execution service client

REST wrapper over report definitions: CRUD, execution, dry-run preview,
export, e-mail delivery, schedules, categories and tags.
"""
from typing import Any, Dict, List, Optional

from d0_gateway.base import BaseAPIClient


class ReportServiceClient(BaseAPIClient):
    """Client for the report execution service"""

    def __init__(self, **kwargs):
        super().__init__(provider="reports", **kwargs)

    # Definitions

    async def list_reports(self, **params) -> Dict[str, Any]:
        """List definitions; params are passed through as query filters (page, category, search, ...)"""
        query = {key: value for key, value in params.items() if value is not None}
        return await self.make_request("GET", "/reports/definitions", params=query)

    async def get_report(self, report_id: str) -> Dict[str, Any]:
        return await self.make_request("GET", f"/reports/definitions/{report_id}")

    async def create_report(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a definition, returns {report, message}"""
        return await self.make_request("POST", "/reports/definitions", json=payload)

    async def update_report(self, report_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("PUT", f"/reports/definitions/{report_id}", json=payload)

    async def delete_report(self, report_id: str) -> Dict[str, Any]:
        return await self.make_request("DELETE", f"/reports/definitions/{report_id}")

    async def clone_report(self, report_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        return await self.make_request("POST", f"/reports/definitions/{report_id}/clone", json={"name": name})

    async def toggle_favorite(self, report_id: str) -> Dict[str, Any]:
        return await self.make_request("POST", f"/reports/definitions/{report_id}/favorite")

    # Execution

    async def execute_report(
        self,
        report_id: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Execute a stored definition

        Args:
            report_id: Definition id
            filters: Runtime filters applied over the stored ones
            page: Optional page number
            page_size: Optional page size

        Returns:
            {report, result, message?}
        """
        body: Dict[str, Any] = {"filters": filters}
        if page is not None:
            body["page"] = page
        if page_size is not None:
            body["page_size"] = page_size
        return await self.make_request("POST", f"/reports/definitions/{report_id}/execute", json=body)

    async def preview_report(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Execute an unsaved definition body without persisting it, returns {result, message}"""
        return await self.make_request("POST", "/reports/preview", json=payload)

    # Export and delivery

    async def export_report(self, report_id: str, format: str) -> bytes:
        return await self.download(f"/reports/definitions/{report_id}/export", params={"format": format})

    async def email_report(self, report_id: str, recipients: List[str], format: str) -> Dict[str, Any]:
        return await self.make_request(
            "POST",
            f"/reports/definitions/{report_id}/email",
            json={"recipients": recipients, "format": format},
        )

    # Schedules

    async def list_schedules(self, report_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"report_id": report_id} if report_id else None
        response = await self.make_request("GET", "/reports/schedules", params=params)
        return response.get("schedules") or []

    async def create_schedule(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("POST", "/reports/schedules", json=payload)

    async def update_schedule(self, schedule_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.make_request("PUT", f"/reports/schedules/{schedule_id}", json=payload)

    async def delete_schedule(self, schedule_id: str) -> Dict[str, Any]:
        return await self.make_request("DELETE", f"/reports/schedules/{schedule_id}")

    # Catalog

    async def list_categories(self) -> List[str]:
        response = await self.make_request("GET", "/reports/categories")
        return response.get("categories") or []

    async def list_tags(self) -> List[str]:
        response = await self.make_request("GET", "/reports/tags")
        return response.get("tags") or []
