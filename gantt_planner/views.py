"""Derived, read-only views consumed by the rendering layer."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Project, TaskNode, TaskPath
from .timeline import BarGeometry, Viewport

COMPLETED = "completed"
INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class GanttRow:
    path: TaskPath
    depth: int
    node: TaskNode
    geometry: BarGeometry


@dataclass(frozen=True)
class CalendarEntry:
    project_id: str
    project_name: str
    path: TaskPath
    node: TaskNode


def project_deadline(project: Project) -> Optional[date]:
    """Latest due date anywhere in the project."""
    dates = [node.due_date for _path, node in project.iter_nodes()]
    return max(dates) if dates else None


def is_overdue(node: TaskNode, today: date) -> bool:
    if node.completion < 100 and node.due_date < today:
        return True
    return any(is_overdue(child, today) for child in node.children)


def is_project_overdue(project: Project, today: date) -> bool:
    return any(is_overdue(node, today) for node in project.children)


def involves_pic(project: Project, pic: str) -> bool:
    if project.person_in_charge == pic:
        return True
    return any(node.person_in_charge == pic for _path, node in project.iter_nodes())


def filter_projects(
    projects: Iterable[Project],
    *,
    today: date,
    pic: Optional[str] = None,
    overdue: Optional[bool] = None,
    completion: Optional[str] = None,
    show_archived: bool = False,
) -> List[Project]:
    """Dashboard filters; archived projects are hidden unless asked for."""
    result = []
    for project in projects:
        if project.archived and not show_archived:
            continue
        if pic and not involves_pic(project, pic):
            continue
        if overdue is not None and is_project_overdue(project, today) != overdue:
            continue
        if completion == COMPLETED and project.completion != 100:
            continue
        if completion == INCOMPLETE and project.completion >= 100:
            continue
        result.append(project)
    return result


def pic_overlaps(project: Project) -> List[Tuple[TaskPath, TaskPath]]:
    """Pairs of tasks assigned to the same person whose spans overlap."""
    by_pic: Dict[str, List[Tuple[TaskPath, TaskNode]]] = defaultdict(list)
    for path, node in project.iter_nodes():
        if node.person_in_charge:
            by_pic[node.person_in_charge].append((path, node))
    overlaps = []
    for entries in by_pic.values():
        for i, (path_a, node_a) in enumerate(entries):
            for path_b, node_b in entries[i + 1:]:
                if node_a.start_date < node_b.due_date and node_b.start_date < node_a.due_date:
                    overlaps.append((path_a, path_b))
    return overlaps


def calendar_entries(projects: Iterable[Project], year: int, month: int) -> Dict[date, List[CalendarEntry]]:
    """Group every task due in the given month by its due day."""
    days: Dict[date, List[CalendarEntry]] = defaultdict(list)
    for project in projects:
        if project.archived:
            continue
        for path, node in project.iter_nodes():
            if node.due_date.year == year and node.due_date.month == month:
                days[node.due_date].append(CalendarEntry(project.id, project.name, path, node))
    return dict(days)


def gantt_rows(project: Project, viewport: Viewport, expanded_only: bool = False) -> List[GanttRow]:
    """Flatten the tree in display order with each node's bar geometry.

    With ``expanded_only`` the children of collapsed nodes are left out.
    """
    rows: List[GanttRow] = []

    def walk(children: List[TaskNode], prefix: TaskPath) -> None:
        for index, node in enumerate(children):
            path = prefix + (index,)
            rows.append(GanttRow(path, len(prefix), node, viewport.bar_geometry(node.start_date, node.due_date)))
            if node.expanded or not expanded_only:
                walk(node.children, path)

    walk(project.children, ())
    return rows
