from datetime import date

from gantt_planner.models import Project, TaskNode
from gantt_planner.timeline import Viewport
from gantt_planner.views import (
    COMPLETED,
    INCOMPLETE,
    calendar_entries,
    filter_projects,
    gantt_rows,
    is_project_overdue,
    pic_overlaps,
    project_deadline,
)

TODAY = date(2024, 4, 20)


def test_deadline_and_overdue(nested_project: Project) -> None:
    assert project_deadline(nested_project) == date(2024, 4, 14)
    assert project_deadline(Project(id="9", name="Empty")) is None
    assert is_project_overdue(nested_project, TODAY)
    assert not is_project_overdue(nested_project, date(2024, 4, 1))


def test_filters(nested_project: Project) -> None:
    nested_project.node_at((1,)).person_in_charge = "Bob"
    done = Project(id="2", name="Done", completion=100)
    archived = Project(id="3", name="Old", archived=True)
    projects = [nested_project, done, archived]

    assert filter_projects(projects, today=TODAY) == [nested_project, done]
    assert filter_projects(projects, today=TODAY, show_archived=True) == projects
    assert filter_projects(projects, today=TODAY, pic="Bob") == [nested_project]
    assert filter_projects(projects, today=TODAY, overdue=False) == [done]
    assert filter_projects(projects, today=TODAY, completion=COMPLETED) == [done]
    assert filter_projects(projects, today=TODAY, completion=INCOMPLETE) == [nested_project]


def test_pic_overlaps_ignore_touching_spans() -> None:
    a = TaskNode(name="a", start_date=date(2024, 1, 1), due_date=date(2024, 1, 5), person_in_charge="Ann")
    b = TaskNode(name="b", start_date=date(2024, 1, 4), due_date=date(2024, 1, 8), person_in_charge="Ann")
    c = TaskNode(name="c", start_date=date(2024, 1, 8), due_date=date(2024, 1, 9), person_in_charge="Ann")
    d = TaskNode(name="d", start_date=date(2024, 1, 1), due_date=date(2024, 1, 9), person_in_charge="Ben")
    project = Project(id="1", name="P", children=[a, b, c, d])

    assert pic_overlaps(project) == [((0,), (1,))]


def test_calendar_groups_by_due_day(nested_project: Project) -> None:
    days = calendar_entries([nested_project], 2024, 4)

    assert sorted(days) == [date(2024, 4, 12), date(2024, 4, 14)]
    assert [entry.node.name for entry in days[date(2024, 4, 12)]] == ["Design", "Print flyers"]
    assert calendar_entries([nested_project], 2024, 5) == {}


def test_gantt_rows_follow_display_order(nested_project: Project) -> None:
    viewport = Viewport.for_project(nested_project)

    rows = gantt_rows(nested_project, viewport)
    collapsed = gantt_rows(nested_project, viewport, expanded_only=True)

    assert [(row.path, row.depth) for row in rows] == [((0,), 0), ((0, 0), 1), ((1,), 0)]
    assert [row.path for row in collapsed] == [(0,), (1,)]
    assert rows[0].geometry.left == viewport.to_percent(date(2024, 4, 1))
