"""
Chart Transform Engine

Pure mapping from a tabular ReportResult to an ECharts-style chart option.

The first header is the category (x) field and the second header is the
value (y) field; further columns are ignored. Values that are missing or not
numeric become 0 rather than failing the chart.
"""

import math
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from d1_reports.models import ChartType, ReportResult

CHART_TYPE_LABELS = {
    ChartType.BAR: "Bar Chart",
    ChartType.LINE: "Line Chart",
    ChartType.PIE: "Pie Chart",
    ChartType.DOUGHNUT: "Doughnut Chart",
    ChartType.AREA: "Area Chart",
    ChartType.SCATTER: "Scatter Plot",
}

SERIES_COLORS = {
    ChartType.BAR: "#3b82f6",
    ChartType.LINE: "#8b5cf6",
    ChartType.AREA: "#10b981",
    ChartType.SCATTER: "#f59e0b",
}

# Category labels rotate once there are more than this many categories
ROTATE_LABELS_AFTER = 10

_RADIAL = (ChartType.PIE, ChartType.DOUGHNUT)

# String spellings a JavaScript Number() accepts
_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_RADIX_RE = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_INFINITY_RE = re.compile(r"[+-]?Infinity")


def coerce_number(value: Any) -> Union[int, float]:
    """
    Numeric value of a cell, 0 when it has none

    None, empty or blank strings, unparseable strings, NaN and non-scalar
    values all coerce to 0. Booleans count as 0/1.

    Strings are read the way a JavaScript Number() reads them: decimal and
    exponent forms, unsigned 0x/0o/0b literals and "Infinity". Python-only
    spellings such as "inf", "nan" or "1_000" are not numbers.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
        return 0 if math.isnan(number) else number
    if isinstance(value, str):
        text = value.strip()
        if _RADIX_RE.fullmatch(text):
            return int(text, 0)
        if _INFINITY_RE.fullmatch(text):
            return float(text.replace("Infinity", "inf"))
        if not _DECIMAL_RE.fullmatch(text):
            return 0
        number = float(text)
        return int(number) if number.is_integer() else number
    return 0


def category_label(value: Any) -> str:
    """String label of a category cell; falsy cells become an empty label"""
    if not value or (isinstance(value, float) and math.isnan(value)):
        return ""
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def chart_type_display(chart_type: Union[ChartType, str]) -> str:
    try:
        return CHART_TYPE_LABELS[ChartType(chart_type)]
    except ValueError:
        return str(chart_type)


def _base_option(chart_type: Optional[ChartType], title: str) -> Dict[str, Any]:
    radial = chart_type in _RADIAL
    axis_pointer = "cross" if chart_type in (ChartType.LINE, ChartType.AREA) else "shadow"

    option: Dict[str, Any] = {
        "title": {
            "text": title,
            "left": "center",
            "textStyle": {"fontSize": 16, "fontWeight": "bold"},
        },
        "tooltip": {
            "trigger": "item" if radial else "axis",
            "axisPointer": {"type": axis_pointer},
        },
        "legend": {"show": True, "bottom": 0},
    }
    if not radial:
        option["grid"] = {"left": "3%", "right": "4%", "bottom": "10%", "containLabel": True}
    return option


def _value_axis(label: str) -> Dict[str, Any]:
    return {"type": "value", "name": label}


def transform(
    result: Union[ReportResult, Dict[str, Any]],
    chart_type: Union[ChartType, str, None],
    title: str = "",
) -> Optional[Dict[str, Any]]:
    """
    Build a chart option from a report result

    Args:
        result: Execution result (model or raw dict)
        chart_type: Chart family; unknown values render as a bar chart
        title: Chart title

    Returns:
        Chart option dict, or None when there is nothing to draw (no rows,
        or fewer than two columns)
    """
    if not isinstance(result, ReportResult):
        result = ReportResult.model_validate(result or {})
    if not result.data:
        return None

    result = result.normalized()
    if len(result.headers) < 2:
        return None

    try:
        kind: Optional[ChartType] = ChartType(chart_type)
    except ValueError:
        kind = None

    x_field, y_field = result.headers[0], result.headers[1]
    categories: List[str] = [category_label(row.get(x_field.key)) for row in result.data]
    values = [coerce_number(row.get(y_field.key)) for row in result.data]

    option = _base_option(kind, title)

    if kind == ChartType.BAR:
        option["xAxis"] = {
            "type": "category",
            "data": categories,
            "axisLabel": {"rotate": 45 if len(categories) > ROTATE_LABELS_AFTER else 0, "interval": 0},
        }
        option["yAxis"] = _value_axis(y_field.label)
        option["series"] = [
            {
                "name": y_field.label,
                "type": "bar",
                "data": values,
                "itemStyle": {"color": SERIES_COLORS[ChartType.BAR]},
                "label": {"show": False},
            }
        ]

    elif kind in (ChartType.LINE, ChartType.AREA):
        series = {
            "name": y_field.label,
            "type": "line",
            "data": values,
            "smooth": True,
            "itemStyle": {"color": SERIES_COLORS[kind]},
        }
        if kind == ChartType.AREA:
            series["areaStyle"] = {"opacity": 0.5}
        option["xAxis"] = {"type": "category", "data": categories, "boundaryGap": False}
        option["yAxis"] = _value_axis(y_field.label)
        option["series"] = [series]

    elif kind in _RADIAL:
        option["tooltip"] = {"trigger": "item", "formatter": "{a} <br/>{b}: {c} ({d}%)"}
        option["series"] = [
            {
                "name": y_field.label,
                "type": "pie",
                "radius": ["40%", "70%"] if kind == ChartType.DOUGHNUT else "70%",
                "data": [{"name": name, "value": value} for name, value in zip(categories, values)],
                "emphasis": {
                    "itemStyle": {"shadowBlur": 10, "shadowOffsetX": 0, "shadowColor": "rgba(0, 0, 0, 0.5)"}
                },
                "label": {"show": True, "formatter": "{b}: {d}%"},
            }
        ]

    elif kind == ChartType.SCATTER:
        # y-values against the category axis, not a true (x, y) scatter
        option["xAxis"] = {"type": "category", "data": categories}
        option["yAxis"] = _value_axis(y_field.label)
        option["series"] = [
            {
                "name": y_field.label,
                "type": "scatter",
                "data": values,
                "symbolSize": 10,
                "itemStyle": {"color": SERIES_COLORS[ChartType.SCATTER]},
            }
        ]

    else:
        option["xAxis"] = {"type": "category", "data": categories}
        option["yAxis"] = _value_axis(y_field.label)
        option["series"] = [
            {
                "name": y_field.label,
                "type": "bar",
                "data": values,
                "itemStyle": {"color": SERIES_COLORS[ChartType.BAR]},
            }
        ]

    return option
