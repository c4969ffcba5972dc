"""Read-only scan for tasks that need a reminder."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from .models import Project, TaskPath


class DueKind(str, Enum):
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_TOMORROW = "due-tomorrow"


@dataclass(frozen=True)
class DueNotice:
    project_id: str
    project_name: str
    path: TaskPath
    task_name: str
    due_date: date
    kind: DueKind

    @property
    def title(self) -> str:
        prefix = "Sub-Task" if len(self.path) > 1 else "Task"
        if self.kind is DueKind.OVERDUE:
            return f"{prefix} Overdue: {self.task_name}"
        return f"{prefix} Due: {self.task_name}"

    @property
    def body(self) -> str:
        return f"Project: {self.project_name}\nDue: {self.due_date.isoformat()}"


def classify(due_date: date, today: date) -> Optional[DueKind]:
    if due_date < today:
        return DueKind.OVERDUE
    if due_date == today:
        return DueKind.DUE_TODAY
    if due_date == today + timedelta(days=1):
        return DueKind.DUE_TOMORROW
    return None


def scan_due(projects: Iterable[Project], today: Optional[date] = None) -> List[DueNotice]:
    """List unfinished tasks of active projects that are overdue or due soon."""
    today = today or date.today()
    notices: List[DueNotice] = []
    for project in projects:
        if project.archived:
            continue
        for path, node in project.iter_nodes():
            if node.completion >= 100:
                continue
            kind = classify(node.due_date, today)
            if kind is not None:
                notices.append(
                    DueNotice(project.id, project.name, path, node.name, node.due_date, kind)
                )
    return notices
