"""
D3 Dashboards - Widget model, grid layout engine, builder wizard and widget
rendering.
"""

from .builder import DashboardBuilderSession, WizardStep
from .grid import GridLayoutEngine
from .models import (
    REPORT_WIDGET_TYPES,
    WIDGET_TEMPLATES,
    BaseWidget,
    ChartWidget,
    Dashboard,
    IframeWidget,
    IframeWidgetConfig,
    KpiWidget,
    TableWidget,
    TextWidget,
    TextWidgetConfig,
    Widget,
    WidgetPosition,
    WidgetTemplate,
    WidgetType,
    get_widget_template,
    parse_widget,
)
from .rendering import WidgetRefreshScheduler, render_widget

__all__ = [
    "DashboardBuilderSession",
    "WizardStep",
    "GridLayoutEngine",
    "WidgetRefreshScheduler",
    "render_widget",
    # Models
    "REPORT_WIDGET_TYPES",
    "WIDGET_TEMPLATES",
    "BaseWidget",
    "ChartWidget",
    "Dashboard",
    "IframeWidget",
    "IframeWidgetConfig",
    "KpiWidget",
    "TableWidget",
    "TextWidget",
    "TextWidgetConfig",
    "Widget",
    "WidgetPosition",
    "WidgetTemplate",
    "WidgetType",
    "get_widget_template",
    "parse_widget",
]
