"""Data models shared across the planner."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from .errors import TaskNotFoundError

TaskPath = Tuple[int, ...]


class DependencyMode(str, Enum):
    FREE = "free"
    BOUND_TO_PARENT_START = "parent"


@dataclass
class TaskNode:
    """A task or sub-task. Nesting depth is unlimited."""

    name: str
    start_date: date
    due_date: date
    completion: int = 0
    person_in_charge: Optional[str] = None
    notes: str = ""
    children: List["TaskNode"] = field(default_factory=list)
    dependency_mode: DependencyMode = DependencyMode.FREE
    expanded: bool = False

    @property
    def is_bound(self) -> bool:
        return self.dependency_mode is DependencyMode.BOUND_TO_PARENT_START

    def duration_days(self) -> int:
        return (self.due_date - self.start_date).days

    def latest_child_due(self) -> Optional[date]:
        """Return the latest due date among direct children, if any."""
        if not self.children:
            return None
        return max(child.due_date for child in self.children)

    def latest_descendant_due(self) -> Optional[date]:
        latest: Optional[date] = None
        for _path, node in iter_nodes(self.children):
            if latest is None or node.due_date > latest:
                latest = node.due_date
        return latest


@dataclass
class Project:
    """A named, ordered collection of top-level tasks."""

    id: str
    name: str
    person_in_charge: Optional[str] = None
    completion: int = 0
    children: List[TaskNode] = field(default_factory=list)
    expanded: bool = False
    archived: bool = False

    def node_at(self, path: TaskPath) -> TaskNode:
        """Resolve a task path, raising TaskNotFoundError for stale paths."""
        if not path:
            raise TaskNotFoundError(f"Empty task path in project {self.id}")
        node = self._child(self.children, path, 0)
        for depth in range(1, len(path)):
            node = self._child(node.children, path, depth)
        return node

    def _child(self, siblings: List[TaskNode], path: TaskPath, depth: int) -> TaskNode:
        index = path[depth]
        if index < 0 or index >= len(siblings):
            raise TaskNotFoundError(f"No task at {path[:depth + 1]} in project {self.id}")
        return siblings[index]

    def container_at(self, path: TaskPath) -> Container:
        """Return the project itself for the root path, else the node."""
        if not path:
            return self
        return self.node_at(path)

    def path_of(self, target: TaskNode) -> TaskPath:
        """Find the current path of a node by identity."""
        for path, node in iter_nodes(self.children):
            if node is target:
                return path
        raise TaskNotFoundError(f"Task {target.name!r} is not in project {self.id}")

    def iter_nodes(self) -> Iterator[Tuple[TaskPath, TaskNode]]:
        return iter_nodes(self.children)

    def all_dates(self) -> List[date]:
        dates: List[date] = []
        for _path, node in self.iter_nodes():
            dates.extend((node.start_date, node.due_date))
        return dates


Container = Union[Project, TaskNode]


def iter_nodes(children: List[TaskNode], prefix: TaskPath = ()) -> Iterator[Tuple[TaskPath, TaskNode]]:
    """Yield (path, node) pairs depth-first, pre-order."""
    for index, node in enumerate(children):
        path = prefix + (index,)
        yield path, node
        yield from iter_nodes(node.children, path)


def ancestor_paths(path: TaskPath) -> Iterator[TaskPath]:
    """Yield the paths of every ancestor task, nearest first."""
    for length in range(len(path) - 1, 0, -1):
        yield path[:length]
