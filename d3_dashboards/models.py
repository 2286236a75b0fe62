"""
Dashboard Models

Widgets are a discriminated union keyed by ``type``. Report-bound widgets
(chart, table, kpi) carry a ``report_id``; text and iframe widgets carry their
content in a typed ``config``.

Widget positions are plain integers. Grid bounds and overlap are checked by the
layout engine when a widget is placed, not by the model, so later manual edits
are accepted as given.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class WidgetType(str, Enum):
    """Widget type enumeration"""

    CHART = "chart"
    TABLE = "table"
    KPI = "kpi"
    TEXT = "text"
    IFRAME = "iframe"


REPORT_WIDGET_TYPES = frozenset({WidgetType.CHART.value, WidgetType.TABLE.value, WidgetType.KPI.value})


class WidgetPosition(BaseModel):
    """Half-open cell rectangle [x, x+w) x [y, y+h)"""

    x: int = 0
    y: int = 0
    w: int = 1
    h: int = 1

    def cells(self) -> List[tuple]:
        """Covered (row, col) cells"""
        return [(self.y + i, self.x + j) for i in range(self.h) for j in range(self.w)]

    def overlaps(self, other: "WidgetPosition") -> bool:
        return (
            self.x < other.x + other.w
            and other.x < self.x + self.w
            and self.y < other.y + other.h
            and other.y < self.y + self.h
        )


class TextWidgetConfig(BaseModel):
    content: str = ""


class IframeWidgetConfig(BaseModel):
    url: str = ""


class BaseWidget(BaseModel):
    """Fields shared by every widget variant"""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    title: str = ""
    description: Optional[str] = ""
    report_id: Optional[str] = None
    position: WidgetPosition = Field(default_factory=WidgetPosition)
    refresh_interval: int = Field(default=0, description="Seconds between re-executions, 0 disables refresh")


class ChartWidget(BaseWidget):
    type: Literal["chart"] = "chart"
    config: Dict[str, Any] = Field(default_factory=dict)


class TableWidget(BaseWidget):
    type: Literal["table"] = "table"
    config: Dict[str, Any] = Field(default_factory=dict)


class KpiWidget(BaseWidget):
    type: Literal["kpi"] = "kpi"
    config: Dict[str, Any] = Field(default_factory=dict)


class TextWidget(BaseWidget):
    type: Literal["text"] = "text"
    config: TextWidgetConfig = Field(default_factory=TextWidgetConfig)


class IframeWidget(BaseWidget):
    type: Literal["iframe"] = "iframe"
    config: IframeWidgetConfig = Field(default_factory=IframeWidgetConfig)


Widget = Annotated[
    Union[ChartWidget, TableWidget, KpiWidget, TextWidget, IframeWidget],
    Field(discriminator="type"),
]

_widget_adapter = TypeAdapter(Widget)


def parse_widget(data: Dict[str, Any]) -> BaseWidget:
    """Build the widget variant matching ``data["type"]``"""
    return _widget_adapter.validate_python(data)


@dataclass(frozen=True)
class WidgetTemplate:
    """Palette entry used to create new widgets"""

    type: WidgetType
    label: str
    description: str
    w: int
    h: int
    icon: str = ""


WIDGET_TEMPLATES: List[WidgetTemplate] = [
    WidgetTemplate(WidgetType.CHART, "Chart Widget", "Visualize data with interactive charts", 6, 4, "📊"),
    WidgetTemplate(WidgetType.KPI, "KPI Widget", "Display key performance indicators", 3, 2, "📈"),
    WidgetTemplate(WidgetType.TABLE, "Table Widget", "Show data in tabular format", 8, 5, "📋"),
    WidgetTemplate(WidgetType.TEXT, "Text Widget", "Add text, notes, or descriptions", 4, 2, "📝"),
    WidgetTemplate(WidgetType.IFRAME, "Embed Widget", "Embed external content or URLs", 6, 4, "🌐"),
]


def get_widget_template(widget_type: Union[WidgetType, str]) -> WidgetTemplate:
    """Template for a widget type, falling back to the chart template"""
    for template in WIDGET_TEMPLATES:
        if template.type == widget_type:
            return template
    return WIDGET_TEMPLATES[0]


class Dashboard(BaseModel):
    """Dashboard with its full widget array and an opaque layout blob"""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    code: str = ""
    name: str = ""
    description: Optional[str] = ""
    business_vertical_id: Optional[str] = None
    widgets: List[Widget] = Field(default_factory=list)
    layout: Dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
