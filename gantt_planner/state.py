"""Application state: every user-facing operation goes through here.

The state object owns the project list, the person-in-charge roster, the
project id counter and the undo ledger. Each mutation re-normalizes the
affected project, saves a full snapshot and notifies listeners so the
rendering layer can redraw.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterable, Iterator, List, Optional

from . import structure
from .completion import recompute
from .errors import (
    PlannerError,
    ProjectNotFoundError,
    RosterError,
    SnapshotError,
    TaskNotFoundError,
)
from .interchange import export_csv, parse_csv
from .models import DependencyMode, Project, TaskNode, TaskPath
from .scheduling import apply_date_change, normalize_tree
from .storage import Snapshot, SnapshotStore
from .undo import DeletedProject, DeletedTask, UndoLedger

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class PlannerState:
    def __init__(
        self,
        projects: Optional[List[Project]] = None,
        pic_list: Optional[Iterable[str]] = None,
        next_project_id: int = 1,
        store: Optional[SnapshotStore] = None,
    ) -> None:
        self.projects: List[Project] = list(projects or [])
        self.pic_list: List[str] = list(pic_list or [])
        self.next_project_id = next_project_id
        self.store = store
        self.undo = UndoLedger()
        self._listeners: List[Listener] = []
        self.load_error: Optional[str] = None
        for project in self.projects:
            normalize_tree(project)
            recompute(project)

    @classmethod
    def from_store(cls, store: SnapshotStore, default_pic_list: Iterable[str] = ()) -> "PlannerState":
        try:
            snapshot = store.load()
        except SnapshotError as exc:
            moved = store.quarantine()
            logger.error("Unreadable snapshot moved to %s; starting empty: %s", moved, exc)
            state = cls(pic_list=default_pic_list, store=store)
            state.load_error = f"{exc}\nThe file was moved to {moved}."
            return state
        if snapshot is None:
            logger.info("No snapshot at %s; starting empty", store.path)
            return cls(pic_list=default_pic_list, store=store)
        logger.info("Loaded %d projects from %s", len(snapshot.projects), store.path)
        return cls(snapshot.projects, snapshot.pic_list, snapshot.next_project_id, store)

    # --- Plumbing ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> Snapshot:
        return Snapshot(list(self.projects), list(self.pic_list), self.next_project_id)

    def _commit(self, project: Optional[Project] = None) -> None:
        if project is not None:
            recompute(project)
        if self.store is not None:
            self.store.save(self.snapshot())
        for listener in list(self._listeners):
            listener()

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Log rejected edits; stale addresses are contract violations."""
        try:
            yield
        except (TaskNotFoundError, ProjectNotFoundError) as exc:
            logger.error("%s aborted: %s", action, exc)
            raise
        except PlannerError as exc:
            logger.warning("%s rejected: %s", action, exc)
            raise

    def project(self, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise ProjectNotFoundError(f"No project with id {project_id!r}")

    def node(self, project_id: str, path: TaskPath) -> TaskNode:
        return self.project(project_id).node_at(path)

    # --- Projects ---------------------------------------------------------

    def add_project(self, name: str, person_in_charge: Optional[str] = None) -> Project:
        project = Project(id=str(self.next_project_id), name=name.strip(), person_in_charge=person_in_charge)
        self.next_project_id += 1
        self.projects.append(project)
        logger.info("Added project %s %r", project.id, project.name)
        self._commit(project)
        return project

    def delete_project(self, project_id: str) -> Project:
        with self._guard("Delete project"):
            project = self.project(project_id)
        index = self.projects.index(project)
        self.undo.push(DeletedProject(project=project, index=index))
        del self.projects[index]
        logger.info("Deleted project %s %r", project.id, project.name)
        self._commit()
        return project

    def rename_project(self, project_id: str, name: str) -> None:
        with self._guard("Rename project"):
            project = self.project(project_id)
        if name.strip():
            project.name = name.strip()
            self._commit(project)

    def set_archived(self, project_id: str, archived: bool) -> None:
        with self._guard("Archive project"):
            project = self.project(project_id)
        project.archived = archived
        logger.info("Project %s %s", project_id, "archived" if archived else "restored")
        self._commit(project)

    def assign_project_pic(self, project_id: str, person_in_charge: Optional[str]) -> None:
        with self._guard("Assign project PIC"):
            project = self.project(project_id)
            self._check_known_pic(person_in_charge)
        project.person_in_charge = person_in_charge or None
        self._commit(project)

    def reorder_projects(self, from_index: int, to_index: int) -> None:
        with self._guard("Reorder projects"):
            if not (0 <= from_index < len(self.projects) and 0 <= to_index < len(self.projects)):
                raise ProjectNotFoundError(f"Cannot move project {from_index} to {to_index}")
        self.projects.insert(to_index, self.projects.pop(from_index))
        self._commit()

    def drop_project(self, source_id: str, target_id: str, intent: structure.DropIntent) -> int:
        """Reorder projects by dragging one row onto another; returns the new index."""
        with self._guard("Move project"):
            source = self.project(source_id)
            target = self.project(target_id)
        from_index = self.projects.index(source)
        to_index = self.projects.index(target)
        if intent is structure.DropIntent.AFTER:
            to_index += 1
        if from_index < to_index:
            to_index -= 1
        if to_index != from_index:
            self.reorder_projects(from_index, to_index)
        return to_index

    def toggle_all_tasks(self, project_id: str) -> bool:
        """Expand every top-level task unless all already are; returns the new flag."""
        project = self.project(project_id)
        expand = not all(node.expanded for node in project.children)
        project.expanded = expand
        for node in project.children:
            node.expanded = expand
        self._commit()
        return expand

    # --- Tasks ------------------------------------------------------------

    def add_task(
        self,
        project_id: str,
        parent_path: TaskPath,
        name: str,
        start_date: date,
        due_date: date,
        notes: str = "",
        person_in_charge: Optional[str] = None,
    ) -> TaskPath:
        """Append a task; sub-tasks start out bound to their parent."""
        with self._guard("Add task"):
            project = self.project(project_id)
            node = TaskNode(
                name=name.strip(),
                start_date=start_date,
                due_date=due_date,
                notes=notes,
                person_in_charge=person_in_charge or project.person_in_charge,
                dependency_mode=(
                    DependencyMode.BOUND_TO_PARENT_START if parent_path else DependencyMode.FREE
                ),
            )
            path = structure.insert(project, tuple(parent_path), node)
        logger.info("Added task %r at %s in project %s", node.name, path, project_id)
        self._commit(project)
        return path

    def delete_task(self, project_id: str, path: TaskPath) -> TaskNode:
        with self._guard("Delete task"):
            project = self.project(project_id)
            project.node_at(path)
            parent = project.node_at(path[:-1]) if len(path) > 1 else None
            removed = structure.remove(project, path[:-1], path[-1])
        self.undo.push(
            DeletedTask(
                project_id=project_id,
                node=removed.node,
                parent=parent,
                index=removed.index,
                previous_parent_due=removed.previous_parent_due,
            )
        )
        logger.info("Deleted task %r from project %s", removed.node.name, project_id)
        self._commit(project)
        return removed.node

    def reschedule(self, project_id: str, path: TaskPath, start_date: date, due_date: date) -> TaskNode:
        """Commit a date edit from a dialog or a finished drag."""
        with self._guard("Change dates"):
            project = self.project(project_id)
            node = apply_date_change(project, path, start_date, due_date)
        self._commit(project)
        return node

    def set_completion(self, project_id: str, path: TaskPath, value: int) -> None:
        with self._guard("Set completion"):
            node = self.node(project_id, path)
            if node.children:
                raise PlannerError(f"Completion of {node.name!r} is derived from its sub-tasks")
            if not 0 <= value <= 100:
                raise PlannerError(f"Completion must be between 0 and 100, got {value}")
        node.completion = int(value)
        self._commit(self.project(project_id))

    def rename_task(self, project_id: str, path: TaskPath, name: str) -> None:
        with self._guard("Rename task"):
            node = self.node(project_id, path)
        if name.strip():
            node.name = name.strip()
            self._commit()

    def set_notes(self, project_id: str, path: TaskPath, notes: str) -> None:
        with self._guard("Edit notes"):
            node = self.node(project_id, path)
        node.notes = notes
        self._commit()

    def assign_task_pic(self, project_id: str, path: TaskPath, person_in_charge: Optional[str]) -> None:
        with self._guard("Assign task PIC"):
            node = self.node(project_id, path)
            self._check_known_pic(person_in_charge)
        node.person_in_charge = person_in_charge or None
        self._commit()

    def set_expanded(self, project_id: str, path: TaskPath, expanded: bool) -> None:
        project = self.project(project_id)
        if path:
            project.node_at(path).expanded = expanded
        else:
            project.expanded = expanded
        self._commit()

    def move_task(
        self, project_id: str, path: TaskPath, target_parent_path: TaskPath, index: Optional[int] = None
    ) -> TaskPath:
        with self._guard("Move task"):
            project = self.project(project_id)
            new_path = structure.move(project, path, target_parent_path, index)
        self._commit(project)
        return new_path

    def reorder_task(self, project_id: str, parent_path: TaskPath, from_index: int, to_index: int) -> TaskPath:
        with self._guard("Reorder task"):
            project = self.project(project_id)
            new_path = structure.reorder(project, parent_path, from_index, to_index)
        self._commit(project)
        return new_path

    def drop_task(
        self, project_id: str, source_path: TaskPath, target_path: TaskPath, intent: structure.DropIntent
    ) -> TaskPath:
        with self._guard("Drop task"):
            project = self.project(project_id)
            new_path = structure.apply_drop(project, source_path, target_path, intent)
        self._commit(project)
        return new_path

    # --- Roster -----------------------------------------------------------

    def add_pic(self, name: str) -> None:
        name = name.strip()
        with self._guard("Add PIC"):
            if not name:
                raise RosterError("Person-in-charge name cannot be empty")
            if name in self.pic_list:
                raise RosterError(f"{name!r} already exists")
        self.pic_list.append(name)
        self._commit()

    def remove_pic(self, name: str) -> None:
        with self._guard("Remove PIC"):
            if name not in self.pic_list:
                raise RosterError(f"{name!r} is not on the roster")
            if self._pic_in_use(name):
                raise RosterError(f"Cannot remove {name!r}: still assigned to a project or task")
        self.pic_list.remove(name)
        self._commit()

    def _pic_in_use(self, name: str) -> bool:
        for project in self.projects:
            if project.person_in_charge == name:
                return True
            if any(node.person_in_charge == name for _path, node in project.iter_nodes()):
                return True
        return False

    def _check_known_pic(self, name: Optional[str]) -> None:
        if name and name not in self.pic_list:
            raise RosterError(f"{name!r} is not on the roster")

    # --- Interchange and undo ---------------------------------------------

    def import_csv(self, text: str, selected_ids: Optional[Iterable[str]] = None) -> List[Project]:
        """Append projects from the file under fresh ids.

        ``selected_ids`` names the file's own project ids to keep; ``None``
        imports everything.
        """
        with self._guard("Import CSV"):
            result = parse_csv(text)
        if selected_ids is not None:
            wanted = set(selected_ids)
            result.projects = [project for project in result.projects if project.id in wanted]
        for project in result.projects:
            project.id = str(self.next_project_id)
            self.next_project_id += 1
            self.projects.append(project)
        if result.pic_list is not None:
            for name in result.pic_list:
                if name not in self.pic_list:
                    self.pic_list.append(name)
        logger.info("Imported %d projects", len(result.projects))
        self._commit()
        return result.projects

    def export_csv(self) -> str:
        return export_csv(self.projects, self.pic_list)

    def undo_last(self) -> bool:
        with self._guard("Undo"):
            project = self.undo.pop(self)
        if project is None:
            return False
        self._commit(project)
        return True
