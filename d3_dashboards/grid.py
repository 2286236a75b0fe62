"""
Dashboard Grid Layout Engine

Keeps the widget collection of one dashboard on a bounded rows x cols cell
grid. Each widget covers the half-open rectangle [x, x+w) x [y, y+h).

New widgets are placed with a row-major first-fit scan. When no origin fits,
the widget is still added at (0, 0) and may overlap others: adding a widget
never fails. Manual edits (update_widget_config, move_widget, resize_widget)
are applied as given without bounds or overlap checks; overlapping_pairs()
reports the result.
"""

import itertools
import time
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from core.config import get_settings
from core.exceptions import ValidationError
from core.logging import get_logger

from .models import BaseWidget, WidgetPosition, WidgetTemplate, WidgetType, get_widget_template, parse_widget

logger = get_logger(__name__, domain="d3")

Cell = Tuple[int, int]

# Keys that identify a widget and never change after creation
_IMMUTABLE_KEYS = {"id", "type"}


class GridLayoutEngine:
    """Widget collection of a dashboard positioned on a fixed-size grid"""

    def __init__(
        self,
        rows: Optional[int] = None,
        cols: Optional[int] = None,
        widgets: Optional[List[Union[BaseWidget, Dict[str, Any]]]] = None,
        layout: Optional[Dict[str, Any]] = None,
    ):
        settings = get_settings()
        self.rows = rows or settings.grid_rows
        self.cols = cols or settings.grid_cols
        if self.rows < 1 or self.cols < 1:
            raise ValidationError(f"Grid must be at least 1x1, got {self.rows}x{self.cols}", field="grid")

        self.widgets: List[BaseWidget] = [
            widget if isinstance(widget, BaseWidget) else parse_widget(widget) for widget in widgets or []
        ]
        self.layout: Dict[str, Any] = dict(layout or {})
        self.selected_widget_id: Optional[str] = None
        self._id_counter = itertools.count(1)

    # Lookup

    @property
    def selected_widget(self) -> Optional[BaseWidget]:
        return self.get_widget(self.selected_widget_id) if self.selected_widget_id else None

    def get_widget(self, widget_id: str) -> Optional[BaseWidget]:
        return next((widget for widget in self.widgets if widget.id == widget_id), None)

    def _index_of(self, widget_id: str) -> int:
        return next((i for i, widget in enumerate(self.widgets) if widget.id == widget_id), -1)

    def select_widget(self, widget_id: Optional[str]) -> None:
        self.selected_widget_id = widget_id if widget_id and self.get_widget(widget_id) else None

    # Placement

    def occupied_cells(self, ignore_id: Optional[str] = None) -> Set[Cell]:
        """Union of the (row, col) cells covered by every widget"""
        cells: Set[Cell] = set()
        for widget in self.widgets:
            if widget.id != ignore_id:
                cells.update(widget.position.cells())
        return cells

    def is_area_free(self, x: int, y: int, w: int, h: int, occupied: Optional[Set[Cell]] = None) -> bool:
        """True when the w x h rectangle at (x, y) lies inside the grid and covers no occupied cell"""
        if x < 0 or y < 0 or w < 1 or h < 1 or x + w > self.cols or y + h > self.rows:
            return False

        if occupied is None:
            occupied = self.occupied_cells()
        return all((row, col) not in occupied for row in range(y, y + h) for col in range(x, x + w))

    def find_free_position(self, w: int, h: int) -> Optional[Tuple[int, int]]:
        """
        First free origin for a w x h rectangle

        Origins are scanned row by row, left to right.

        Returns:
            (x, y) of the first origin that fits, or None
        """
        occupied = self.occupied_cells()
        for row in range(self.rows):
            for col in range(self.cols - w + 1):
                if self.is_area_free(col, row, w, h, occupied):
                    return col, row
        return None

    def validate_placement(self, position: WidgetPosition, ignore_id: Optional[str] = None) -> List[str]:
        """
        Check a position against the creation-time grid rules

        Returns:
            Problems found; an empty list means the position is valid
        """
        problems = []
        if position.x < 0 or position.y < 0:
            problems.append(f"origin ({position.x}, {position.y}) is negative")
        if position.w < 1 or position.h < 1:
            problems.append(f"size {position.w}x{position.h} is empty")
        if position.x + position.w > self.cols:
            problems.append(f"right edge {position.x + position.w} exceeds {self.cols} columns")
        if position.y + position.h > self.rows:
            problems.append(f"bottom edge {position.y + position.h} exceeds {self.rows} rows")

        overlapping = [
            widget.id
            for widget in self.widgets
            if widget.id != ignore_id and widget.position.overlaps(position)
        ]
        if overlapping:
            problems.append(f"overlaps {', '.join(overlapping)}")
        return problems

    def overlapping_pairs(self) -> List[Tuple[str, str]]:
        """Ids of every pair of widgets whose rectangles overlap"""
        return [
            (first.id, second.id)
            for first, second in itertools.combinations(self.widgets, 2)
            if first.position.overlaps(second.position)
        ]

    # Mutation

    def _next_widget_id(self) -> str:
        return f"widget-{int(time.time() * 1000)}-{next(self._id_counter)}"

    def add_widget(
        self,
        template: Union[WidgetTemplate, WidgetType, str],
        widget_id: Optional[str] = None,
    ) -> BaseWidget:
        """
        Create a widget from a palette template at the first free origin

        The new widget becomes the selected widget. When no free origin
        exists it is placed at (0, 0).
        """
        if not isinstance(template, WidgetTemplate):
            template = get_widget_template(template)

        origin = self.find_free_position(template.w, template.h)
        if origin is None:
            logger.warning(
                f"No free {template.w}x{template.h} area on {self.cols}x{self.rows} grid, placing at (0, 0)"
            )
            origin = (0, 0)

        widget = parse_widget(
            {
                "id": widget_id or self._next_widget_id(),
                "type": WidgetType(template.type).value,
                "title": f"{template.label} {len(self.widgets) + 1}",
                "description": "",
                "position": {"x": origin[0], "y": origin[1], "w": template.w, "h": template.h},
            }
        )
        self.widgets.append(widget)
        self.selected_widget_id = widget.id

        logger.debug(f"Added {widget.type} widget {widget.id} at {origin}")
        return widget

    def remove_widget(self, widget_id: str) -> bool:
        index = self._index_of(widget_id)
        if index < 0:
            return False

        del self.widgets[index]
        if self.selected_widget_id == widget_id:
            self.selected_widget_id = None
        return True

    def update_widget_config(self, widget_id: str, key: str, value: Any) -> Optional[BaseWidget]:
        """
        Replace one field of a widget

        Position and size edits are not checked against the grid or other
        widgets.

        Returns:
            The updated widget, or None when no widget has ``widget_id``

        Raises:
            ValidationError: When ``key`` is immutable or unknown, or the
                value does not fit the field
        """
        index = self._index_of(widget_id)
        if index < 0:
            return None

        widget = self.widgets[index]
        if key in _IMMUTABLE_KEYS:
            raise ValidationError(f"Widget field '{key}' cannot be changed", field=key)
        if key not in type(widget).model_fields:
            raise ValidationError(f"Unknown widget field '{key}' for {widget.type} widget", field=key)

        try:
            updated = parse_widget({**widget.model_dump(), key: value})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid value for widget field '{key}': {e.errors()[0].get('msg')}", field=key) from e

        self.widgets[index] = updated
        return updated

    def move_widget(self, widget_id: str, x: int, y: int) -> Optional[BaseWidget]:
        widget = self.get_widget(widget_id)
        if widget is None:
            return None
        return self.update_widget_config(widget_id, "position", {**widget.position.model_dump(), "x": x, "y": y})

    def resize_widget(self, widget_id: str, w: int, h: int) -> Optional[BaseWidget]:
        widget = self.get_widget(widget_id)
        if widget is None:
            return None
        return self.update_widget_config(widget_id, "position", {**widget.position.model_dump(), "w": w, "h": h})

    def snapshot(self) -> Dict[str, Any]:
        """Serializable widget array and layout blob, as persisted on save"""
        return {
            "widgets": [widget.model_dump(mode="json") for widget in self.widgets],
            "layout": dict(self.layout),
        }
