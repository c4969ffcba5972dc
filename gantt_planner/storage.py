"""Snapshot persistence: the whole planner state as one JSON document."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import SnapshotError
from .models import DependencyMode, Project, TaskNode

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    projects: List[Project] = field(default_factory=list)
    pic_list: List[str] = field(default_factory=list)
    next_project_id: int = 1


class SnapshotStore:
    """Load/save the full snapshot at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        return load_snapshot(self.path)

    def save(self, snapshot: Snapshot) -> None:
        save_snapshot(self.path, snapshot)

    def quarantine(self) -> Path:
        """Move an unreadable snapshot aside so the next save starts clean."""
        target = self.path.with_name(f"{self.path.name}.{datetime.now().strftime('%Y%m%d%H%M%S')}.corrupt")
        self.path.replace(target)
        return target


def save_snapshot(path: Path | str, snapshot: Snapshot) -> None:
    """Overwrite the snapshot file with the current state."""
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "version": SNAPSHOT_VERSION,
        "next_project_id": snapshot.next_project_id,
        "pic_list": list(snapshot.pic_list),
        "projects": [project_to_dict(project) for project in snapshot.projects],
    }
    with snapshot_path.open("w", encoding="utf-8") as handle:
        json.dump(document, handle, indent=2)
    logger.debug("Saved %d projects to %s", len(snapshot.projects), snapshot_path)


def load_snapshot(path: Path | str) -> Snapshot:
    """Read a snapshot written by :func:`save_snapshot`."""
    snapshot_path = Path(path)
    try:
        with snapshot_path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"Invalid snapshot {snapshot_path}: {exc}") from exc
    if not isinstance(document, dict) or "projects" not in document:
        raise SnapshotError(f"Invalid snapshot {snapshot_path}: missing projects")
    try:
        projects = [project_from_dict(item) for item in document["projects"]]
        next_id = int(document.get("next_project_id", 1))
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Invalid snapshot {snapshot_path}: {exc}") from exc
    # Never hand out an id that is already taken.
    for project in projects:
        if project.id.isdigit():
            next_id = max(next_id, int(project.id) + 1)
    return Snapshot(
        projects=projects,
        pic_list=[str(name) for name in document.get("pic_list", [])],
        next_project_id=next_id,
    )


def project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "person_in_charge": project.person_in_charge,
        "completion": project.completion,
        "expanded": project.expanded,
        "archived": project.archived,
        "children": [task_to_dict(node) for node in project.children],
    }


def task_to_dict(node: TaskNode) -> Dict[str, Any]:
    return {
        "name": node.name,
        "start_date": node.start_date.isoformat(),
        "due_date": node.due_date.isoformat(),
        "completion": node.completion,
        "person_in_charge": node.person_in_charge,
        "notes": node.notes,
        "dependency_mode": node.dependency_mode.value,
        "expanded": node.expanded,
        "children": [task_to_dict(child) for child in node.children],
    }


def project_from_dict(data: Dict[str, Any]) -> Project:
    return Project(
        id=str(data["id"]),
        name=data.get("name", ""),
        person_in_charge=data.get("person_in_charge") or None,
        completion=int(data.get("completion", 0)),
        children=[task_from_dict(item) for item in data.get("children", [])],
        expanded=bool(data.get("expanded", False)),
        archived=bool(data.get("archived", False)),
    )


def task_from_dict(data: Dict[str, Any]) -> TaskNode:
    due = date.fromisoformat(data["due_date"])
    start_raw = data.get("start_date")
    return TaskNode(
        name=data.get("name", ""),
        start_date=date.fromisoformat(start_raw) if start_raw else due,
        due_date=due,
        completion=max(0, min(100, int(data.get("completion", 0)))),
        person_in_charge=data.get("person_in_charge") or None,
        notes=data.get("notes") or "",
        children=[task_from_dict(item) for item in data.get("children", [])],
        dependency_mode=DependencyMode(data.get("dependency_mode", DependencyMode.FREE.value)),
        expanded=bool(data.get("expanded", False)),
    )
