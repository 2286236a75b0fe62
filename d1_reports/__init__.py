"""
D1 Reports - Report definitions, the report builder session and the execution
gateway.

Drafts are composed in memory by ReportBuilderSession, validated into the
report definition union by build_definition(), and executed, previewed or
exported through ReportExecutionGateway.
"""

from .builder import BuilderStep, ReportBuilderSession, build_definition, humanize_field_name
from .display import format_filter_display, report_type_display, to_table_payload
from .gateway import ReportExecutionGateway, derive_report_code, merge_filters
from .models import (
    AggregateFunction,
    BaseReportDefinition,
    ChartReportDefinition,
    ChartType,
    DataSource,
    ExecutionResponse,
    ExportArtifact,
    ExportFormat,
    FilterOperator,
    FormTable,
    JoinType,
    KpiReportDefinition,
    LogicalOperator,
    PivotReportDefinition,
    ReportDefinition,
    ReportDraft,
    ReportField,
    ReportFilter,
    ReportHeader,
    ReportMetadata,
    ReportResult,
    ReportSchedule,
    ReportSort,
    ReportType,
    ScheduleFrequency,
    SortDirection,
    TableField,
    TableReportDefinition,
    parse_report_definition,
)

__all__ = [
    # Builder
    "BuilderStep",
    "ReportBuilderSession",
    "build_definition",
    "humanize_field_name",
    # Gateway
    "ReportExecutionGateway",
    "derive_report_code",
    "merge_filters",
    # Display
    "to_table_payload",
    "report_type_display",
    "format_filter_display",
    # Models
    "AggregateFunction",
    "BaseReportDefinition",
    "ChartReportDefinition",
    "ChartType",
    "DataSource",
    "ExecutionResponse",
    "ExportArtifact",
    "ExportFormat",
    "FilterOperator",
    "FormTable",
    "JoinType",
    "KpiReportDefinition",
    "LogicalOperator",
    "PivotReportDefinition",
    "ReportDefinition",
    "ReportDraft",
    "ReportField",
    "ReportFilter",
    "ReportHeader",
    "ReportMetadata",
    "ReportResult",
    "ReportSchedule",
    "ReportSort",
    "ReportType",
    "ScheduleFrequency",
    "SortDirection",
    "TableField",
    "TableReportDefinition",
    "parse_report_definition",
]
