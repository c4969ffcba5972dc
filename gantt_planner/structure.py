"""Structural edits: insert, remove, reparent and reorder task nodes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from .completion import recompute
from .errors import CycleError, TaskNotFoundError
from .models import DependencyMode, Project, TaskNode, TaskPath, ancestor_paths
from .scheduling import shrink_to_children, validate_dates, widen_chain

logger = logging.getLogger(__name__)


class DropIntent(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    ONTO = "onto"


@dataclass
class RemovedNode:
    """Everything needed to put a removed node back where it was."""

    node: TaskNode
    parent_path: TaskPath
    index: int
    previous_parent_due: Optional[date] = None


def drop_intent(offset_y: float, row_height: float) -> DropIntent:
    """Pick before/onto/after from the pointer's third of the target row."""
    if row_height <= 0 or offset_y < row_height / 3:
        return DropIntent.BEFORE
    if offset_y > row_height * 2 / 3:
        return DropIntent.AFTER
    return DropIntent.ONTO


def insert(project: Project, parent_path: TaskPath, node: TaskNode, index: Optional[int] = None) -> TaskPath:
    """Insert ``node`` under ``parent_path`` (the root when empty)."""
    validate_dates(node.start_date, node.due_date)
    container = project.container_at(parent_path)
    if index is None:
        index = len(container.children)
    if not 0 <= index <= len(container.children):
        raise TaskNotFoundError(f"Cannot insert at {parent_path + (index,)} in project {project.id}")
    container.children.insert(index, node)
    path = parent_path + (index,)
    widen_chain(project, parent_path)
    recompute(project)
    logger.debug("Inserted %r at %s in project %s", node.name, path, project.id)
    return path


def remove(project: Project, parent_path: TaskPath, index: int) -> RemovedNode:
    """Detach a node; the parent's due date may shrink to its remaining children."""
    container = project.container_at(parent_path)
    if not 0 <= index < len(container.children):
        raise TaskNotFoundError(f"No task at {parent_path + (index,)} in project {project.id}")
    node = container.children.pop(index)
    removed = RemovedNode(node=node, parent_path=parent_path, index=index)
    if isinstance(container, TaskNode):
        removed.previous_parent_due = container.due_date
        if shrink_to_children(container):
            logger.debug(
                "Shrunk %s %s due date to %s", project.id, parent_path, container.due_date
            )
    recompute(project)
    logger.debug("Removed %r from %s in project %s", node.name, parent_path + (index,), project.id)
    return removed


def move(project: Project, path: TaskPath, target_parent_path: TaskPath, index: Optional[int] = None) -> TaskPath:
    """Move a node to ``index`` of another container and return its new path.

    ``index`` counts positions before the node is detached, so dropping
    "after" a later sibling works without adjustment by the caller.
    """
    node = project.node_at(path)
    target = project.container_at(target_parent_path)
    _check_cycle(path, target_parent_path)
    source = project.container_at(path[:-1])
    source_index = path[-1]
    if index is None:
        index = len(target.children)
    if not 0 <= index <= len(target.children):
        raise TaskNotFoundError(f"Cannot move to {target_parent_path + (index,)} in project {project.id}")

    source.children.pop(source_index)
    if target is source and source_index < index:
        index -= 1
    target.children.insert(index, node)
    if target is not source:
        node.dependency_mode = (
            DependencyMode.FREE if target is project else DependencyMode.BOUND_TO_PARENT_START
        )

    new_path = project.path_of(node)
    widen_chain(project, new_path[:-1])
    recompute(project)
    logger.debug("Moved %r from %s to %s in project %s", node.name, path, new_path, project.id)
    return new_path


def reparent(project: Project, path: TaskPath, new_parent_path: TaskPath, index: Optional[int] = None) -> TaskPath:
    """Move a node under a new parent; the empty path means the top level."""
    return move(project, path, new_parent_path, index)


def reorder(project: Project, parent_path: TaskPath, from_index: int, to_index: int) -> TaskPath:
    """Move a child to ``to_index`` among its current siblings."""
    container = project.container_at(parent_path)
    count = len(container.children)
    if not (0 <= from_index < count and 0 <= to_index < count):
        raise TaskNotFoundError(
            f"Cannot reorder {from_index}->{to_index} under {parent_path} in project {project.id}"
        )
    node = container.children.pop(from_index)
    container.children.insert(to_index, node)
    widen_chain(project, parent_path)
    recompute(project)
    return parent_path + (to_index,)


def apply_drop(project: Project, source_path: TaskPath, target_path: TaskPath, intent: DropIntent) -> TaskPath:
    """Translate a row drop into a move.

    Dropping on the project row itself (empty ``target_path``) moves the
    node to the top of the project.
    """
    if source_path == target_path:
        return source_path
    if not target_path:
        return move(project, source_path, (), 0)
    if intent is DropIntent.ONTO:
        return reparent(project, source_path, target_path)
    offset = 1 if intent is DropIntent.AFTER else 0
    return move(project, source_path, target_path[:-1], target_path[-1] + offset)


def _check_cycle(path: TaskPath, target_parent_path: TaskPath) -> None:
    chain = [target_parent_path, *ancestor_paths(target_parent_path)]
    if path in chain:
        raise CycleError(f"Cannot move {path} into its own subtree at {target_parent_path}")
