"""
Display helpers for report results

Shapes a ReportResult into the payload consumed by the table renderer and
provides human-readable labels for report types and filters.
"""
from typing import Any, Dict, Union

from .models import FilterOperator, ReportFilter, ReportResult, ReportType

REPORT_TYPE_LABELS = {
    ReportType.TABLE: "Table Report",
    ReportType.CHART: "Chart Report",
    ReportType.KPI: "KPI Dashboard",
    ReportType.PIVOT: "Pivot Table",
}

FILTER_OPERATOR_LABELS = {
    FilterOperator.EQ: "=",
    FilterOperator.NE: "≠",
    FilterOperator.GT: ">",
    FilterOperator.GTE: "≥",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "≤",
    FilterOperator.LIKE: "contains",
    FilterOperator.IN: "in",
    FilterOperator.BETWEEN: "between",
    FilterOperator.THIS_MONTH: "this month",
    FilterOperator.THIS_WEEK: "this week",
    FilterOperator.THIS_YEAR: "this year",
    FilterOperator.LAST_MONTH: "last month",
    FilterOperator.LAST_WEEK: "last week",
    FilterOperator.LAST_YEAR: "last year",
}


def to_table_payload(result: ReportResult) -> Dict[str, Any]:
    """
    Build the table renderer payload

    Returns:
        {"header": [{key, label, type}], "data": [row, ...]} with every key
        lower-cased so header keys and row keys always agree.
    """
    normalized = result.normalized()
    return {
        "header": [
            {"key": header.key, "label": header.label, "type": header.data_type or "text"}
            for header in normalized.headers
        ],
        "data": normalized.data,
    }


def report_type_display(report_type: Union[ReportType, str]) -> str:
    try:
        return REPORT_TYPE_LABELS[ReportType(report_type)]
    except ValueError:
        return str(report_type)


def format_filter_display(report_filter: ReportFilter) -> str:
    """Render a filter as "<field> <operator> <value>"

    Relative date operators take no value and render without one.
    """
    operator = FILTER_OPERATOR_LABELS.get(report_filter.operator, report_filter.operator.value)
    if report_filter.operator.is_relative_date:
        return f"{report_filter.field_name} {operator}"
    return f"{report_filter.field_name} {operator} {report_filter.value}"
