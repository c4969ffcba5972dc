"""Undo support for deletions.

Only deletions are recorded. Each entry is a small command object holding the
detached subtree and where it used to live; there is no redo.

A detached subtree is owned by its entry alone, so it is kept as-is instead of being
copied again. Keeping the same objects lets an older entry find a parent
that was itself deleted and restored in the meantime.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from .completion import recompute
from .models import Container, Project, TaskNode
from .scheduling import widen_chain

if TYPE_CHECKING:
    from .state import PlannerState

logger = logging.getLogger(__name__)


class UndoEntry(ABC):
    @property
    def description(self) -> str:
        return type(self).__name__

    @abstractmethod
    def restore(self, state: "PlannerState") -> Project:
        """Put the deleted payload back and return the affected project."""


@dataclass
class DeletedProject(UndoEntry):
    project: Project
    index: int

    @property
    def description(self) -> str:
        return f"Delete project {self.project.name!r}"

    def restore(self, state: "PlannerState") -> Project:
        index = min(self.index, len(state.projects))
        state.projects.insert(index, self.project)
        recompute(self.project)
        return self.project


@dataclass
class DeletedTask(UndoEntry):
    project_id: str
    node: TaskNode
    parent: Optional[TaskNode]
    index: int
    previous_parent_due: Optional[date] = None

    @property
    def description(self) -> str:
        return f"Delete task {self.node.name!r}"

    def restore(self, state: "PlannerState") -> Project:
        project = state.project(self.project_id)
        # The parent may have moved since the delete; find it where it is now.
        parent_path = () if self.parent is None else project.path_of(self.parent)
        container: Container = project if self.parent is None else self.parent
        index = min(self.index, len(container.children))
        container.children.insert(index, self.node)
        if self.parent is not None and self.previous_parent_due is not None:
            self.parent.due_date = max(self.parent.due_date, self.previous_parent_due)
        widen_chain(project, parent_path)
        recompute(project)
        return project


class UndoLedger:
    """A LIFO stack of delete commands with no depth limit."""

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return bool(self._entries)

    def push(self, entry: UndoEntry) -> None:
        self._entries.append(entry)
        logger.debug("Undo entry recorded: %s", entry.description)

    def peek(self) -> Optional[UndoEntry]:
        return self._entries[-1] if self._entries else None

    def pop(self, state: "PlannerState") -> Optional[Project]:
        """Restore the most recent deletion; returns the affected project."""
        if not self._entries:
            return None
        entry = self._entries[-1]
        project = entry.restore(state)
        self._entries.pop()
        logger.info("Undid: %s", entry.description)
        return project

    def clear(self) -> None:
        self._entries.clear()
