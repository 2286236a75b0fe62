"""
Schema introspection client

Lists the form tables available for report building and the typed fields of
each table.
Endpoints: /reports/forms/tables, /reports/forms/tables/{table}/fields
"""
from typing import Any, Dict, List
from urllib.parse import quote

from d0_gateway.base import BaseAPIClient
from core.exceptions import ValidationError


class SchemaIntrospectionClient(BaseAPIClient):
    """Client for the schema introspection service"""

    def __init__(self, **kwargs):
        super().__init__(provider="schema", **kwargs)

    async def list_tables(self) -> List[Dict[str, Any]]:
        """
        List available tables

        Returns:
            [{table_name, form_code, form_id, form_title, record_count?}]
        """
        response = await self.make_request("GET", "/reports/forms/tables")
        return response.get("tables") or []

    async def list_fields(self, table_name: str) -> List[Dict[str, Any]]:
        """
        List the typed fields of a table

        Args:
            table_name: Table returned by list_tables()

        Returns:
            [{name, type, label?, is_required?, is_unique?}]
        """
        if not table_name:
            raise ValidationError("Table name is required", field="table_name")

        response = await self.make_request("GET", f"/reports/forms/tables/{quote(table_name, safe='')}/fields")
        return response.get("fields") or []
