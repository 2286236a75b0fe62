"""
Dashboard builder wizard

Info -> Layout -> Preview. Steps change only through next_step() and
previous_step(), one at a time, clamped at both ends. Nothing is persisted
between steps; save() writes the dashboard info, the full widget array and
the layout blob in a single request.
"""

from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.config import Settings, get_settings
from core.exceptions import AnalyticsError, ValidationError
from core.logging import get_logger
from d0_gateway.exceptions import InvalidResponseError
from d0_gateway.providers.dashboards import DashboardServiceClient

from .grid import GridLayoutEngine
from .models import BaseWidget, Dashboard, WidgetTemplate, WidgetType

logger = get_logger(__name__, domain="d3")

DEFAULT_BUSINESS_VERTICAL = "default"


class WizardStep(IntEnum):
    """Dashboard builder wizard steps"""

    INFO = 1
    LAYOUT = 2
    PREVIEW = 3


class DashboardBuilderSession:
    """Single owner of a dashboard under construction"""

    def __init__(
        self,
        client: Optional[DashboardServiceClient] = None,
        engine: Optional[GridLayoutEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or DashboardServiceClient()
        self.engine = engine or GridLayoutEngine(self.settings.grid_rows, self.settings.grid_cols)

        self.dashboard = Dashboard()
        self.step = WizardStep.INFO
        self.saved_dashboard: Optional[Dashboard] = None
        self.loading = False
        self.error = ""

    # Wizard

    def next_step(self) -> WizardStep:
        self.step = WizardStep(min(self.step + 1, WizardStep.PREVIEW))
        return self.step

    def previous_step(self) -> WizardStep:
        self.step = WizardStep(max(self.step - 1, WizardStep.INFO))
        return self.step

    def set_info(
        self,
        code: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_default: Optional[bool] = None,
        is_public: Optional[bool] = None,
        tags: Optional[List[str]] = None,
    ) -> None:
        updates = {
            "code": code,
            "name": name,
            "description": description,
            "is_default": is_default,
            "is_public": is_public,
            "tags": tags,
        }
        self.dashboard = self.dashboard.model_copy(
            update={key: value for key, value in updates.items() if value is not None}
        )

    # Widgets

    @property
    def widgets(self) -> List[BaseWidget]:
        return self.engine.widgets

    @property
    def selected_widget(self) -> Optional[BaseWidget]:
        return self.engine.selected_widget

    def add_widget(self, template: Union[WidgetTemplate, WidgetType, str]) -> BaseWidget:
        return self.engine.add_widget(template)

    def remove_widget(self, widget_id: str) -> bool:
        return self.engine.remove_widget(widget_id)

    def select_widget(self, widget_id: Optional[str]) -> None:
        self.engine.select_widget(widget_id)

    def update_widget_config(self, widget_id: str, key: str, value: Any) -> Optional[BaseWidget]:
        return self.engine.update_widget_config(widget_id, key, value)

    def update_selected_widget(self, key: str, value: Any) -> Optional[BaseWidget]:
        """Replace one field of the selected widget; no-op without a selection"""
        if self.engine.selected_widget_id is None:
            return None
        return self.engine.update_widget_config(self.engine.selected_widget_id, key, value)

    # Persistence

    def to_payload(self) -> Dict[str, Any]:
        snapshot = self.engine.snapshot()
        return {
            "code": self.dashboard.code,
            "name": self.dashboard.name,
            "description": self.dashboard.description,
            "business_vertical_id": (
                self.dashboard.business_vertical_id
                or self.settings.business_vertical_id
                or DEFAULT_BUSINESS_VERTICAL
            ),
            "widgets": snapshot["widgets"],
            "layout": snapshot["layout"],
            "is_default": self.dashboard.is_default,
            "is_public": self.dashboard.is_public,
            "tags": list(self.dashboard.tags),
        }

    def _dashboard_from(self, response: Dict[str, Any], fallback: Optional[Dict[str, Any]] = None) -> Dashboard:
        data = response.get("dashboard", response)
        try:
            return Dashboard.model_validate({**(fallback or {}), **data})
        except PydanticValidationError as e:
            raise InvalidResponseError(self.client.provider, expected_format="Dashboard", received_data=str(data)) from e

    async def save(self) -> Optional[Dashboard]:
        """
        Persist the dashboard

        A dashboard opened with load() is updated in place; otherwise a new
        one is created. Failures are reported through ``error``.
        """
        if self.loading:
            logger.warning("Save ignored: a request is already in flight")
            return None

        self.loading = True
        self.error = ""
        try:
            if not self.dashboard.code or not self.dashboard.name:
                raise ValidationError("Please provide both dashboard code and name", field="code")

            payload = self.to_payload()
            if self.dashboard.id:
                response = await self.client.update_dashboard(self.dashboard.id, payload)
            else:
                response = await self.client.create_dashboard(payload)

            self.saved_dashboard = self._dashboard_from(response, fallback=payload)
            self.dashboard = self.dashboard.model_copy(update={"id": self.saved_dashboard.id})
            logger.info(f"Saved dashboard {self.saved_dashboard.id} with {len(payload['widgets'])} widgets")
            return self.saved_dashboard
        except AnalyticsError as e:
            logger.warning(f"Failed to save dashboard: {e.message}")
            self.error = e.message or "Failed to save dashboard"
            return None
        finally:
            self.loading = False

    async def load(self, dashboard_id: str) -> Optional[Dashboard]:
        """Open an existing dashboard for editing"""
        self.loading = True
        self.error = ""
        try:
            dashboard = self._dashboard_from(await self.client.get_dashboard(dashboard_id))
        except AnalyticsError as e:
            self.error = e.message or "Failed to load dashboard"
            return None
        finally:
            self.loading = False

        self.engine = GridLayoutEngine(
            self.engine.rows, self.engine.cols, widgets=list(dashboard.widgets), layout=dashboard.layout
        )
        self.dashboard = dashboard.model_copy(update={"widgets": []})
        self.step = WizardStep.INFO
        return dashboard
