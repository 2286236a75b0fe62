"""
Widget rendering and periodic refresh

render_widget() executes the report bound to a widget and shapes the result
for its renderer: chart option, table payload or KPI value. Text and iframe
widgets render from their own config without a backend call.

WidgetRefreshScheduler re-renders widgets that declare a refresh_interval,
one asyncio task per widget, until stopped.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional

from core.config import Settings, get_settings
from core.exceptions import AnalyticsError
from core.logging import get_logger
from d1_reports.display import to_table_payload
from d1_reports.gateway import ReportExecutionGateway
from d1_reports.models import ChartType
from d2_charts.transform import transform

from .models import REPORT_WIDGET_TYPES, BaseWidget, WidgetType

logger = get_logger(__name__, domain="d3")

UpdateCallback = Callable[[str, Optional[Any], Optional[str]], Any]


async def render_widget(widget: BaseWidget, gateway: ReportExecutionGateway) -> Optional[Any]:
    """
    Render one widget

    Returns:
        chart: chart option dict (None when the result has nothing to draw)
        table: {"header": [...], "data": [...]}
        kpi: {"label": ..., "value": ...} taken from the first cell
        text / iframe: the widget config
        None for report widgets without a bound report

    Raises:
        ExternalAPIError: When executing the bound report fails
    """
    if widget.type not in REPORT_WIDGET_TYPES:
        return widget.config.model_dump()
    if not widget.report_id:
        return None

    response = await gateway.execute(widget.report_id)
    definition, result = response.definition, response.result

    if widget.type == WidgetType.CHART:
        chart_type = getattr(definition, "chart_type", None) or ChartType.BAR
        return transform(result, chart_type, widget.title or definition.name)

    if widget.type == WidgetType.TABLE:
        return to_table_payload(result)

    normalized = result.normalized()
    header = normalized.headers[0] if normalized.headers else None
    value = None
    if header and normalized.data:
        value = normalized.data[0].get(header.key)
    return {"label": widget.title or (header.label if header else definition.name), "value": value}


class WidgetRefreshScheduler:
    """Periodically re-renders widgets with a refresh interval

    ``on_update(widget_id, payload, error)`` is called after every refresh,
    with ``error`` set and ``payload`` None when the refresh failed. It may
    be a plain function or a coroutine function.

    Widgets are tracked by id. Each tick re-reads the current widget, from
    ``resolve(widget_id)`` when given (e.g. ``GridLayoutEngine.get_widget``)
    or from the last ``start()``/``sync()`` call otherwise, so edits take
    effect on the next refresh and a removed widget stops refreshing.
    """

    def __init__(
        self,
        gateway: ReportExecutionGateway,
        on_update: UpdateCallback,
        settings: Optional[Settings] = None,
        resolve: Optional[Callable[[str], Optional[BaseWidget]]] = None,
    ):
        self.gateway = gateway
        self.on_update = on_update
        self.settings = settings or get_settings()
        self.resolve = resolve
        self._widgets: Dict[str, BaseWidget] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def running(self) -> List[str]:
        """Ids of widgets with an active refresh task"""
        return [widget_id for widget_id, task in self._tasks.items() if not task.done()]

    @staticmethod
    def is_refreshable(widget: Optional[BaseWidget]) -> bool:
        return (
            widget is not None
            and widget.type in REPORT_WIDGET_TYPES
            and bool(widget.report_id)
            and widget.refresh_interval > 0
        )

    def interval_for(self, widget: BaseWidget) -> int:
        return max(widget.refresh_interval, self.settings.min_refresh_interval)

    def _current(self, widget_id: str) -> Optional[BaseWidget]:
        if self.resolve is not None:
            return self.resolve(widget_id)
        return self._widgets.get(widget_id)

    def start(self, widgets: List[BaseWidget]) -> int:
        """
        Start refresh tasks for every eligible widget

        Only report-bound widgets with a positive refresh_interval are
        scheduled. Widgets already scheduled are left alone.

        Returns:
            Number of tasks started
        """
        if not self.settings.enable_widget_refresh:
            logger.debug("Widget refresh disabled")
            return 0

        started = 0
        for widget in widgets:
            if not self.is_refreshable(widget):
                continue
            self._widgets[widget.id] = widget
            if widget.id in self.running:
                continue
            self._tasks[widget.id] = asyncio.create_task(self._refresh_loop(widget.id))
            started += 1

        logger.info(f"Started refresh for {started} widgets")
        return started

    async def sync(self, widgets: List[BaseWidget]) -> int:
        """
        Match the running tasks to the given widget list

        Tasks of widgets that are gone or no longer refreshable are
        cancelled, the rest pick up the new widget values on their next
        tick and newly eligible widgets are started.

        Returns:
            Number of tasks started
        """
        current = {widget.id: widget for widget in widgets if self.is_refreshable(widget)}
        for widget_id in [widget_id for widget_id in self._tasks if widget_id not in current]:
            await self.stop_widget(widget_id)

        self._widgets = current
        return self.start(list(current.values()))

    async def stop_widget(self, widget_id: str) -> bool:
        """Cancel the refresh task of one widget"""
        self._widgets.pop(widget_id, None)
        task = self._tasks.pop(widget_id, None)
        if task is None:
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return True

    async def _notify(self, widget_id: str, payload: Optional[Any], error: Optional[str]) -> None:
        try:
            outcome = self.on_update(widget_id, payload, error)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Update callback failed for widget {widget_id}: {e}")

    async def _refresh_loop(self, widget_id: str) -> None:
        log = logger.with_context(widget_id=widget_id)
        widget = self._current(widget_id)
        while self.is_refreshable(widget):
            await asyncio.sleep(self.interval_for(widget))

            widget = self._current(widget_id)
            if not self.is_refreshable(widget):
                break

            try:
                payload = await render_widget(widget, self.gateway)
            except AnalyticsError as e:
                log.warning(f"Refresh of widget {widget_id} failed: {e.message}", extra={"report_id": widget.report_id})
                await self._notify(widget_id, None, e.message)
                continue
            except Exception as e:
                log.exception(f"Refresh of widget {widget_id} failed unexpectedly")
                await self._notify(widget_id, None, str(e) or type(e).__name__)
                continue
            await self._notify(widget_id, payload, None)

        log.info(f"Stopped refresh of widget {widget_id}: removed or no longer refreshable")
        self._widgets.pop(widget_id, None)

    async def stop(self) -> None:
        """Cancel every refresh task and wait for them to finish"""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._widgets.clear()
