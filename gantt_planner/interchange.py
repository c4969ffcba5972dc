"""CSV interchange format for projects and the person-in-charge roster."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .completion import recompute
from .errors import CsvImportError
from .models import DependencyMode, Project, TaskNode, TaskPath
from .scheduling import normalize_tree

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ProjectID",
    "ProjectName",
    "TaskName",
    "DueDate",
    "",
    "SubTaskLevel",
    "ParentTaskID",
    "PIC",
    "Completion",
    "Notes",
    "StartDate",
    "Dependencies",
]
PIC_LIST_MARKER = "PICList"
PARENT_DEPENDENCY = "parent"
FREE_DEPENDENCY = "free"
_REQUIRED_COLUMNS = ("ProjectID", "ProjectName", "TaskName", "DueDate")


@dataclass
class ImportResult:
    projects: List[Project] = field(default_factory=list)
    pic_list: Optional[List[str]] = None


@dataclass(frozen=True)
class ProjectSummary:
    """One line of the import picker."""

    id: str
    name: str
    completion: int
    task_count: int


def export_csv(projects: Iterable[Project], pic_list: Iterable[str]) -> str:
    """Serialize projects depth-first, one row per task.

    Each project opens with a row whose TaskName is empty; it carries the
    project's own person in charge and completion.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for project in projects:
        writer.writerow([
            project.id, project.name, "", "", "", 0, "",
            project.person_in_charge or "", project.completion, "", "", "",
        ])
        row_of_path: Dict[TaskPath, int] = {}
        for row_index, (path, node) in enumerate(project.iter_nodes()):
            row_of_path[path] = row_index
            parent_row = row_of_path.get(path[:-1], "")
            writer.writerow([
                project.id,
                project.name,
                node.name,
                node.due_date.isoformat(),
                "",
                len(path) - 1,
                parent_row,
                node.person_in_charge or "",
                node.completion,
                node.notes,
                node.start_date.isoformat(),
                _dependency_cell(node, len(path) - 1),
            ])
    writer.writerow([PIC_LIST_MARKER, *pic_list])
    return buffer.getvalue()


def write_csv(path: Path | str, projects: Iterable[Project], pic_list: Iterable[str]) -> None:
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        handle.write(export_csv(projects, pic_list))


def read_csv(path: Path | str) -> ImportResult:
    csv_path = Path(path)
    with csv_path.open("r", newline="", encoding="utf-8") as handle:
        return parse_csv(handle.read())


def parse_csv(text: str) -> ImportResult:
    """Parse an exported file. Any bad date aborts the whole import.

    Nesting follows ``SubTaskLevel``: a row at level ``n`` attaches to the
    most recent row at level ``n - 1`` of the same project.
    """
    reader = csv.reader(io.StringIO(text.strip()))
    header = next(reader, None)
    if not header:
        raise CsvImportError("Invalid project CSV: empty file")
    columns = {name.strip(): idx for idx, name in enumerate(header) if name.strip()}
    missing = [name for name in _REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise CsvImportError(f"Invalid project CSV: missing columns {', '.join(missing)}")

    result = ImportResult()
    current: Optional[Project] = None
    stack: List[TaskNode] = []
    for line_number, row in enumerate(reader, start=2):
        if not any(cell.strip() for cell in row):
            continue
        if row[0] == PIC_LIST_MARKER:
            result.pic_list = [name.strip() for name in row[1:] if name.strip()]
            break

        def cell(name: str, default: str = "") -> str:
            index = columns.get(name)
            if index is None or index >= len(row):
                return default
            return row[index]

        project_id = cell("ProjectID")
        if current is None or current.id != project_id:
            current = Project(id=project_id, name=cell("ProjectName"))
            result.projects.append(current)
            stack = []

        task_name = cell("TaskName")
        if not task_name:
            current.person_in_charge = cell("PIC") or current.person_in_charge
            continue

        level = _parse_level(cell("SubTaskLevel", "0"), line_number)
        node = _parse_task(task_name, cell, line_number, level)
        if level > len(stack):
            logger.warning(
                "Line %d: %r has no parent at level %d; skipped", line_number, task_name, level - 1
            )
            continue
        siblings = current.children if level == 0 else stack[level - 1].children
        siblings.append(node)
        del stack[level:]
        stack.append(node)

    for project in result.projects:
        normalize_tree(project)
        recompute(project)
    logger.info("Parsed %d projects from CSV", len(result.projects))
    return result


def summarize_csv(text: str) -> List[ProjectSummary]:
    """Parse a file only to list what it holds, so the user can pick projects."""
    return [
        ProjectSummary(project.id, project.name, project.completion, sum(1 for _ in project.iter_nodes()))
        for project in parse_csv(text).projects
    ]


def _parse_task(task_name: str, cell, line_number: int, level: int) -> TaskNode:
    due = _parse_date(cell("DueDate"), "due", line_number)
    start_raw = cell("StartDate")
    start = _parse_date(start_raw, "start", line_number) if start_raw.strip() else due
    if start > due:
        logger.warning(
            "Line %d: start date %s after due date %s for %r; using due date as start",
            line_number,
            start.isoformat(),
            due.isoformat(),
            task_name,
        )
        start = due
    dependencies = [token.strip() for token in cell("Dependencies").split("|") if token.strip()]
    if PARENT_DEPENDENCY in dependencies or (level > 0 and not dependencies):
        mode = DependencyMode.BOUND_TO_PARENT_START
    else:
        mode = DependencyMode.FREE
    return TaskNode(
        name=task_name,
        start_date=start,
        due_date=due,
        completion=_parse_completion(cell("Completion")),
        person_in_charge=cell("PIC").strip() or None,
        notes=cell("Notes"),
        dependency_mode=mode,
    )


def _parse_date(value: str, label: str, line_number: int) -> date:
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise CsvImportError(f"Line {line_number}: invalid {label} date {text!r}") from exc


def _parse_level(value: str, line_number: int) -> int:
    text = value.strip() or "0"
    try:
        level = int(text)
    except ValueError as exc:
        raise CsvImportError(f"Line {line_number}: invalid SubTaskLevel {text!r}") from exc
    return max(0, level)


def _parse_completion(value: str) -> int:
    try:
        return max(0, min(100, int(value.strip())))
    except ValueError:
        return 0


def _dependency_cell(node: TaskNode, level: int) -> str:
    # An empty cell on a nested row reads back as bound, so free sub-tasks say so.
    if node.is_bound:
        return PARENT_DEPENDENCY
    return FREE_DEPENDENCY if level > 0 else ""
