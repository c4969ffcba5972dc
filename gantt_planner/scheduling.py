"""Date constraint propagation over the task tree.

Two rules keep dates consistent:

* a parent whose due date is edited drags its bound children along, each
  child keeping its prior duration and starting on the parent's new due date;
* a parent always covers its latest child, so a child that finishes later
  than its parent pushes the parent (and the parent's ancestors) out.

Both rules are expressed through :func:`apply_date_change`, which must be
called on the node the user actually edited.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from .errors import DateValidationError
from .models import Project, TaskNode, TaskPath, ancestor_paths

logger = logging.getLogger(__name__)

MIN_BOUND_DURATION = timedelta(days=1)


def validate_dates(start: date, due: date) -> None:
    if start > due:
        raise DateValidationError(
            f"Start date {start.isoformat()} must be on or before due date {due.isoformat()}"
        )


def apply_date_change(project: Project, path: TaskPath, new_start: date, new_due: date) -> TaskNode:
    """Set a node's dates, reschedule bound children and widen ancestors."""
    validate_dates(new_start, new_due)
    node = project.node_at(path)
    logger.debug(
        "Rescheduling %s %s to %s..%s", project.id, path, new_start.isoformat(), new_due.isoformat()
    )
    _reschedule(node, new_start, new_due)
    widen_ancestors(project, path)
    return node


def _reschedule(node: TaskNode, new_start: date, new_due: date) -> None:
    node.start_date = new_start
    node.due_date = new_due
    for child in node.children:
        if not child.is_bound:
            continue
        duration = max(child.due_date - child.start_date, MIN_BOUND_DURATION)
        _reschedule(child, new_due, new_due + duration)
    _cover_children(node)


def _cover_children(node: TaskNode) -> bool:
    """Extend the node's due date over its latest child. Never re-pins."""
    latest = node.latest_child_due()
    if latest is not None and latest > node.due_date:
        node.due_date = latest
        return True
    return False


def widen_ancestors(project: Project, path: TaskPath) -> None:
    """Walk up from ``path`` extending every ancestor that no longer covers its children."""
    for ancestor_path in ancestor_paths(path):
        ancestor = project.node_at(ancestor_path)
        if _cover_children(ancestor):
            logger.debug("Extended %s %s due date to %s", project.id, ancestor_path, ancestor.due_date)


def widen_chain(project: Project, container_path: TaskPath) -> None:
    """Coverage check starting at a container (the project root is a no-op)."""
    if not container_path:
        return
    if _cover_children(project.node_at(container_path)):
        logger.debug("Extended %s %s due date to cover children", project.id, container_path)
    widen_ancestors(project, container_path)


def shrink_to_children(node: TaskNode) -> bool:
    """Pull a parent's due date back to its latest child, never before its start."""
    latest = node.latest_child_due()
    if latest is None or latest >= node.due_date:
        return False
    node.due_date = max(latest, node.start_date)
    return True


def normalize_tree(project: Project) -> None:
    """Restore date invariants on data that did not come through the editor.

    Inverted spans collapse onto their due date and every parent is widened
    over its children, deepest first.
    """
    for node in project.children:
        _normalize_subtree(project, node)


def _normalize_subtree(project: Project, node: TaskNode) -> None:
    for child in node.children:
        _normalize_subtree(project, child)
    if node.start_date > node.due_date:
        logger.warning(
            "Task %r in project %s starts after its due date; using the due date as start",
            node.name,
            project.id,
        )
        node.start_date = node.due_date
    _cover_children(node)
