from datetime import date

import pytest

from gantt_planner.errors import GeometryError
from gantt_planner.interaction import DragMode, InteractionController
from gantt_planner.models import DependencyMode, Project, TaskNode
from gantt_planner.state import PlannerState


def _single_task_state() -> PlannerState:
    task = TaskNode(name="Draft", start_date=date(2024, 4, 10), due_date=date(2024, 4, 12))
    return PlannerState([Project(id="1", name="Launch", children=[task])])


def test_left_edge_drag_grows_viewport_backwards() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    session = controller.press("1", (0,), DragMode.RESIZE_START, 100.0, 400.0)
    assert session.anchor_viewport.min_date == date(2024, 4, 9)
    controller.move(-100.0)

    assert session.viewport.min_date == date(2024, 4, 8)
    assert session.geometry.left == 0.0
    assert controller.provisional_dates() == (date(2024, 4, 8), date(2024, 4, 12))

    node = controller.release()
    assert (node.start_date, node.due_date) == (date(2024, 4, 8), date(2024, 4, 12))
    assert not controller.active


def test_move_bar_keeps_duration() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    controller.press("1", (0,), DragMode.MOVE_BAR, 200.0, 400.0)
    node = controller.release(300.0)

    assert (node.start_date, node.due_date) == (date(2024, 4, 11), date(2024, 4, 13))


def test_parent_end_cannot_retreat_before_children(nested_project: Project) -> None:
    nested_project.node_at((0, 0)).dependency_mode = DependencyMode.FREE
    state = PlannerState([nested_project])
    controller = InteractionController(state)

    controller.press("1", (0,), DragMode.RESIZE_END, 350.0, 400.0)
    node = controller.release(-50.0)

    assert node.due_date == date(2024, 4, 12)


def test_resize_end_never_precedes_start() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    controller.press("1", (0,), DragMode.RESIZE_END, 400.0, 400.0)
    node = controller.release(0.0)

    assert node.start_date == date(2024, 4, 10)
    assert node.due_date == date(2024, 4, 10)


def test_zero_width_container_is_rejected() -> None:
    controller = InteractionController(_single_task_state())

    with pytest.raises(GeometryError):
        controller.press("1", (0,), DragMode.MOVE_BAR, 0.0, 0.0)
    assert not controller.active


def test_move_without_press_is_rejected() -> None:
    controller = InteractionController(_single_task_state())

    with pytest.raises(GeometryError):
        controller.move(10.0)


def test_second_press_commits_previous_drag() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    controller.press("1", (0,), DragMode.MOVE_BAR, 200.0, 400.0)
    controller.move(300.0)
    controller.press("1", (0,), DragMode.MOVE_BAR, 0.0, 400.0)

    assert state.node("1", (0,)).start_date == date(2024, 4, 11)
    assert controller.active


def test_move_bar_before_viewport_grows_it_backwards() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    session = controller.press("1", (0,), DragMode.MOVE_BAR, 200.0, 400.0)
    node = controller.release(0.0)

    assert session.rescaled
    assert session.viewport.min_date == date(2024, 4, 8)
    assert (node.start_date, node.due_date) == (date(2024, 4, 8), date(2024, 4, 10))


def test_resize_end_past_viewport_grows_it_forwards() -> None:
    state = _single_task_state()
    controller = InteractionController(state)

    session = controller.press("1", (0,), DragMode.RESIZE_END, 400.0, 400.0)
    node = controller.release(600.0)

    assert session.rescaled
    assert session.viewport.max_date == date(2024, 4, 15)
    assert session.viewport.min_date == date(2024, 4, 9)
    assert (node.start_date, node.due_date) == (date(2024, 4, 10), date(2024, 4, 14))
