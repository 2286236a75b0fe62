"""
Report Definition Builder

Owns one in-memory ReportDraft and the wizard state around it. Mutations are
plain synchronous methods on the session; only data source selection, preview
and save talk to the backend.

Field and filter mutations do no validation beyond de-duplicating fields by
name. A draft is validated when it is turned into a definition by
build_definition(), which preview and save both go through.
"""

import re
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import AnalyticsError, ValidationError
from core.logging import get_logger
from d0_gateway.providers.schema import SchemaIntrospectionClient

from .models import (
    BaseReportDefinition,
    ChartType,
    DataSource,
    FilterOperator,
    FormTable,
    LogicalOperator,
    ReportDraft,
    ReportField,
    ReportFilter,
    ReportResult,
    ReportSort,
    ReportType,
    SortDirection,
    TableField,
    parse_report_definition,
)

logger = get_logger(__name__, domain="d1")

PRIMARY_ALIAS = "data"


class BuilderStep(IntEnum):
    """Report builder wizard steps"""

    DATA_SOURCE = 1
    FIELDS = 2
    CONFIGURATION = 3
    PREVIEW = 4


def humanize_field_name(name: str) -> str:
    """Turn a column name into a display alias: "total_cost" -> "Total Cost" """
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), name.replace("_", " "))


def build_definition(
    draft: ReportDraft,
    code: str,
    name: Optional[str] = None,
    business_vertical_id: Optional[str] = None,
) -> BaseReportDefinition:
    """
    Validate a draft and produce the matching report definition variant

    Args:
        draft: Draft under construction
        code: Definition code
        name: Overrides the draft name when given
        business_vertical_id: Tenant the definition belongs to

    Returns:
        TableReportDefinition, ChartReportDefinition, KpiReportDefinition or
        PivotReportDefinition depending on ``draft.report_type``

    Raises:
        ValidationError: When the draft does not form a valid definition
    """
    data = draft.model_dump()
    data["code"] = code
    data["name"] = name or draft.name
    data["business_vertical_id"] = business_vertical_id
    if draft.report_type == ReportType.CHART and data.get("chart_type") is None:
        data["chart_type"] = ChartType.BAR

    try:
        return parse_report_definition(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid report definition: {first.get('msg')}",
            field=location or None,
            errors=len(e.errors()),
        ) from e


class ReportBuilderSession:
    """Single owner of a report draft and its builder state"""

    def __init__(self, gateway=None, schema_client: Optional[SchemaIntrospectionClient] = None):
        if gateway is None:
            from .gateway import ReportExecutionGateway

            gateway = ReportExecutionGateway()

        self.gateway = gateway
        self.schema_client = schema_client or SchemaIntrospectionClient()

        self.draft = ReportDraft()
        self.step = BuilderStep.DATA_SOURCE
        self.available_tables: List[FormTable] = []
        self.table_fields: List[TableField] = []
        self.selected_table: Optional[str] = None

        self.preview_result: Optional[ReportResult] = None
        self.saved_report: Optional[BaseReportDefinition] = None
        self.loading = False
        self.error = ""

    # Schema

    async def load_tables(self) -> List[FormTable]:
        try:
            tables = await self.schema_client.list_tables()
            self.available_tables = [FormTable.model_validate(table) for table in tables]
        except AnalyticsError as e:
            logger.warning(f"Failed to load form tables: {e.message}")
            self.error = e.message or "Failed to load form tables"
        return self.available_tables

    async def select_data_source(self, table_name: str, form_code: Optional[str] = None, form_id: Optional[str] = None):
        """
        Make ``table_name`` the sole data source of the draft

        The field list of the table is fetched from the schema service. A
        failed fetch is reported through ``error``; the step still advances.
        """
        self.selected_table = table_name
        self.draft.data_sources = [
            DataSource(alias=PRIMARY_ALIAS, table_name=table_name, form_code=form_code, form_id=form_id)
        ]

        try:
            fields = await self.schema_client.list_fields(table_name)
            self.table_fields = [TableField.model_validate(field) for field in fields]
        except AnalyticsError as e:
            logger.warning(f"Failed to load fields for {table_name}: {e.message}")
            self.table_fields = []
            self.error = e.message or "Failed to load fields"

        self.step = BuilderStep.FIELDS

    # Fields

    def add_field(self, field: Union[TableField, Dict[str, Any]]) -> None:
        """Append a column; adding a field name twice is a no-op"""
        if isinstance(field, dict):
            field = TableField.model_validate(field)

        if any(existing.field_name == field.name for existing in self.draft.fields):
            return

        self.draft.fields.append(
            ReportField(
                field_name=field.name,
                alias=humanize_field_name(field.name),
                data_source=PRIMARY_ALIAS,
                data_type=field.type,
                is_visible=True,
                order=len(self.draft.fields) + 1,
            )
        )

    def remove_field(self, index: int) -> None:
        """Remove a column by index

        Remaining ``order`` values are left as they are, so a removal can
        leave a gap until the next move_field().
        """
        if 0 <= index < len(self.draft.fields):
            del self.draft.fields[index]

    def move_field(self, from_index: int, to_index: int) -> None:
        fields = list(self.draft.fields)
        if not 0 <= from_index < len(fields):
            return

        moved = fields.pop(from_index)
        fields.insert(to_index, moved)
        for position, field in enumerate(fields):
            field.order = position + 1
        self.draft.fields = fields

    def update_field_alias(self, index: int, alias: str) -> None:
        if 0 <= index < len(self.draft.fields):
            self.draft.fields[index].alias = alias

    # Filters

    def add_filter(self, field_name: str, operator: Union[FilterOperator, str], value: Any = None) -> None:
        self.draft.filters.append(
            ReportFilter(
                field_name=field_name,
                data_source=PRIMARY_ALIAS,
                operator=FilterOperator(operator),
                value=value,
                logical_op=LogicalOperator.AND,
            )
        )

    def remove_filter(self, index: int) -> None:
        if 0 <= index < len(self.draft.filters):
            del self.draft.filters[index]

    # Sorting

    def add_sort(self, field_name: str, direction: Union[SortDirection, str] = SortDirection.ASC) -> None:
        if any(sort.field_name == field_name for sort in self.draft.sorting):
            return
        self.draft.sorting.append(
            ReportSort(
                field_name=field_name,
                data_source=PRIMARY_ALIAS,
                direction=SortDirection(direction),
                order=len(self.draft.sorting) + 1,
            )
        )

    def remove_sort(self, index: int) -> None:
        """Remove a sort key; the remaining keys keep their relative priority"""
        if 0 <= index < len(self.draft.sorting):
            del self.draft.sorting[index]
            for position, sort in enumerate(self.draft.sorting):
                sort.order = position + 1

    # Configuration

    def set_report_type(self, report_type: Union[ReportType, str]) -> None:
        self.draft.report_type = ReportType(report_type)
        if self.draft.report_type == ReportType.CHART and self.draft.chart_type is None:
            self.draft.chart_type = ChartType.BAR
        self.step = BuilderStep.CONFIGURATION

    def set_chart_type(self, chart_type: Union[ChartType, str]) -> None:
        self.draft.chart_type = ChartType(chart_type)

    def set_details(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> None:
        if name is not None:
            self.draft.name = name
        if description is not None:
            self.draft.description = description
        if category is not None:
            self.draft.category = category

    # Backend round trips

    async def preview(self) -> Optional[ReportResult]:
        """Execute the draft once and keep the result in ``preview_result``

        Returns None when the preview failed or another preview/save is
        still in flight.
        """
        if self.loading:
            logger.warning("Preview ignored: a request is already in flight")
            return None

        self.loading = True
        self.error = ""
        try:
            self.preview_result = await self.gateway.preview(self.draft)
            self.step = BuilderStep.PREVIEW
            return self.preview_result
        except AnalyticsError as e:
            self.error = e.message or "Failed to preview report"
            return None
        finally:
            self.loading = False

    async def save(self) -> Optional[BaseReportDefinition]:
        if self.loading:
            logger.warning("Save ignored: a request is already in flight")
            return None

        self.loading = True
        self.error = ""
        try:
            self.saved_report = await self.gateway.save(self.draft)
            logger.info(f"Saved report {self.saved_report.id} ({self.saved_report.code})")
            return self.saved_report
        except AnalyticsError as e:
            self.error = e.message or "Failed to save report"
            return None
        finally:
            self.loading = False
