"""Pointer-drag state machine for moving and resizing Gantt bars.

A drag is an explicit :class:`DragSession` created on pointer-down, updated
on every pointer-move and consumed on pointer-up. Releasing always commits;
there is no cancel gesture.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from .errors import GeometryError
from .models import TaskNode, TaskPath
from .timeline import ONE_DAY, BarGeometry, Viewport

if TYPE_CHECKING:
    from .state import PlannerState

logger = logging.getLogger(__name__)


class DragMode(str, Enum):
    MOVE_BAR = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


@dataclass
class DragSession:
    mode: DragMode
    project_id: str
    path: TaskPath
    anchor_x: float
    anchor_geometry: BarGeometry
    anchor_viewport: Viewport
    container_width: float
    start_date: date
    due_date: date
    latest_descendant_due: Optional[date] = None
    viewport: Optional[Viewport] = None
    geometry: Optional[BarGeometry] = None

    def __post_init__(self) -> None:
        if self.viewport is None:
            self.viewport = self.anchor_viewport
        if self.geometry is None:
            self.geometry = self.anchor_geometry

    @property
    def rescaled(self) -> bool:
        return self.viewport != self.anchor_viewport

    def delta_percent(self, pointer_x: float) -> float:
        """Pointer displacement as a percentage of the viewport in force at press time."""
        delta = (pointer_x - self.anchor_x) / self.container_width * 100
        if not math.isfinite(delta):
            raise GeometryError(f"Non-finite pointer delta for x={pointer_x}")
        return delta


class InteractionController:
    """Idle when ``session`` is None, active otherwise."""

    def __init__(self, state: "PlannerState", today: Optional[date] = None) -> None:
        self.state = state
        self.today = today
        self.session: Optional[DragSession] = None

    @property
    def active(self) -> bool:
        return self.session is not None

    def press(
        self,
        project_id: str,
        path: TaskPath,
        mode: DragMode,
        pointer_x: float,
        container_width: float,
        viewport: Optional[Viewport] = None,
    ) -> DragSession:
        if container_width <= 0 or not math.isfinite(container_width):
            raise GeometryError(f"Cannot drag inside a container {container_width}px wide")
        if self.session is not None:
            logger.warning("Pointer-down during an active drag; committing the previous drag")
            self.release()
        project = self.state.project(project_id)
        node = project.node_at(path)
        if viewport is None:
            viewport = Viewport.for_project(project, self.today)
        self.session = DragSession(
            mode=DragMode(mode),
            project_id=project_id,
            path=path,
            anchor_x=pointer_x,
            anchor_geometry=viewport.bar_geometry(node.start_date, node.due_date),
            anchor_viewport=viewport,
            container_width=container_width,
            start_date=node.start_date,
            due_date=node.due_date,
            latest_descendant_due=node.latest_descendant_due(),
        )
        logger.debug("Drag %s started on %s %s", mode, project_id, path)
        return self.session

    def move(self, pointer_x: float) -> DragSession:
        """Update the provisional bar; may grow the session viewport."""
        session = self._require_session()
        anchor = session.anchor_geometry
        viewport = session.anchor_viewport
        delta = session.delta_percent(pointer_x)
        min_width = viewport.min_width_percent

        if session.mode is DragMode.RESIZE_START:
            left = min(anchor.left + delta, anchor.right - min_width)
            geometry = BarGeometry(left, anchor.right - left)
        elif session.mode is DragMode.RESIZE_END:
            width = max(anchor.width + delta, min_width)
            geometry = self._floor_trailing_edge(session, BarGeometry(anchor.left, width))
        else:
            geometry = self._floor_trailing_edge(session, BarGeometry(anchor.left + delta, anchor.width))

        # Work in the widest viewport seen so far, growing it when the bar overflows.
        geometry = session.viewport.rebase_geometry(geometry, viewport)
        grown = session.viewport.grow_to_fit(geometry.left, geometry.right)
        if grown is not session.viewport:
            geometry = grown.rebase_geometry(geometry, session.viewport)
            logger.debug(
                "Viewport grown to %s..%s (%d days)", grown.min_date, grown.max_date, grown.total_days
            )
            session.viewport = grown
        left = max(0.0, geometry.left)
        session.geometry = BarGeometry(left, min(100.0, geometry.right) - left)
        return session

    def provisional_dates(self) -> Tuple[date, date]:
        """Dates the bar would commit if released now."""
        return self._dates_for(self._require_session())

    def release(self, pointer_x: Optional[float] = None) -> TaskNode:
        """Commit the drag through the date propagator and return to idle."""
        session = self._require_session()
        try:
            if pointer_x is not None:
                self.move(pointer_x)
            start, due = self._dates_for(session)
        finally:
            self.session = None
        if session.rescaled:
            logger.info(
                "Timeline expanded to %d days while dragging %s %s",
                session.viewport.total_days,
                session.project_id,
                session.path,
            )
        return self.state.reschedule(session.project_id, session.path, start, due)

    def _floor_trailing_edge(self, session: DragSession, geometry: BarGeometry) -> BarGeometry:
        """A parent's end never retreats before its latest descendant."""
        if session.latest_descendant_due is None:
            return geometry
        floor = session.anchor_viewport.to_percent(session.latest_descendant_due + ONE_DAY)
        if geometry.right >= floor:
            return geometry
        return BarGeometry(geometry.left, floor - geometry.left)

    def _dates_for(self, session: DragSession) -> Tuple[date, date]:
        viewport = session.viewport
        geometry = session.geometry
        if session.mode is DragMode.RESIZE_START:
            start = min(viewport.to_date(geometry.left), session.due_date)
            due = session.due_date
        elif session.mode is DragMode.RESIZE_END:
            start = session.start_date
            due = max(viewport.to_date(geometry.right) - ONE_DAY, start)
        else:
            start = viewport.to_date(geometry.left)
            due = start + timedelta(days=(session.due_date - session.start_date).days)
        floor = session.latest_descendant_due
        if session.mode is not DragMode.RESIZE_START and floor is not None and due < floor:
            due = floor
        return start, due

    def _require_session(self) -> DragSession:
        if self.session is None:
            raise GeometryError("No drag in progress")
        return self.session
