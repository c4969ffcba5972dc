from datetime import date

import pytest

from gantt_planner.errors import GeometryError
from gantt_planner.models import Project, TaskNode
from gantt_planner.timeline import BarGeometry, Viewport, timeline_ticks


def test_viewport_pads_project_dates_by_a_day() -> None:
    task = TaskNode(name="t", start_date=date(2024, 4, 10), due_date=date(2024, 4, 12))
    viewport = Viewport.for_project(Project(id="1", name="P", children=[task]))

    assert (viewport.min_date, viewport.max_date) == (date(2024, 4, 9), date(2024, 4, 13))
    assert viewport.total_days == 4


def test_empty_project_centres_on_today() -> None:
    viewport = Viewport.for_project(Project(id="1", name="P"), today=date(2024, 6, 1))

    assert (viewport.min_date, viewport.max_date) == (date(2024, 5, 31), date(2024, 6, 2))


def test_empty_window_is_rejected() -> None:
    with pytest.raises(GeometryError):
        Viewport(date(2024, 1, 1), date(2024, 1, 1))


def test_bar_covers_whole_days() -> None:
    viewport = Viewport(date(2024, 4, 9), date(2024, 4, 13))

    geometry = viewport.bar_geometry(date(2024, 4, 10), date(2024, 4, 12))

    assert geometry == BarGeometry(25.0, 75.0)
    assert viewport.bar_dates(geometry) == (date(2024, 4, 10), date(2024, 4, 12))


def test_to_date_rounds_to_nearest_day() -> None:
    viewport = Viewport(date(2024, 1, 1), date(2024, 1, 11))

    assert viewport.to_date(14.0) == date(2024, 1, 2)
    assert viewport.to_date(16.0) == date(2024, 1, 3)
    with pytest.raises(GeometryError):
        viewport.to_date(float("nan"))


def test_grow_to_fit_extends_both_edges() -> None:
    viewport = Viewport(date(2024, 1, 1), date(2024, 1, 11))

    grown = viewport.grow_to_fit(-15.0, 101.0)

    assert grown.min_date == date(2023, 12, 30)
    assert grown.max_date == date(2024, 1, 12)
    assert viewport.grow_to_fit(0.0, 100.0) is viewport


def test_rebase_keeps_the_same_day() -> None:
    source = Viewport(date(2024, 1, 2), date(2024, 1, 6))
    target = Viewport(date(2024, 1, 1), date(2024, 1, 6))

    percent = target.rebase(25.0, source)

    assert target.to_date(percent) == date(2024, 1, 3)


@pytest.mark.parametrize(
    "days, expected_count",
    [(10, 11), (35, 6)],
)
def test_daily_and_weekly_ticks(days: int, expected_count: int) -> None:
    start = date(2024, 1, 1)
    viewport = Viewport(start, date.fromordinal(start.toordinal() + days))

    ticks = timeline_ticks(viewport)

    assert len(ticks) == expected_count
    assert ticks[0].percent == 0.0
    assert ticks[0].label == "Jan 01"


def test_monthly_ticks_start_on_first_of_month() -> None:
    viewport = Viewport(date(2024, 1, 15), date(2024, 5, 2))

    ticks = timeline_ticks(viewport)

    assert [tick.day for tick in ticks] == [date(2024, m, 1) for m in (2, 3, 4, 5)]
    assert ticks[0].label == "Feb 2024"
