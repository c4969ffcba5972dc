from datetime import date

import pytest

from gantt_planner.models import Project, TaskNode
from gantt_planner.state import PlannerState
from gantt_planner.undo import UndoEntry


def _state_with_parent() -> PlannerState:
    early = TaskNode(name="Early", start_date=date(2024, 3, 1), due_date=date(2024, 3, 3), completion=100)
    late = TaskNode(name="Late", start_date=date(2024, 3, 1), due_date=date(2024, 3, 10))
    parent = TaskNode(name="Parent", start_date=date(2024, 3, 1), due_date=date(2024, 3, 10), children=[early, late])
    return PlannerState([Project(id="1", name="Proj", children=[parent])])


def test_undo_task_delete_restores_pre_shrink_due() -> None:
    state = _state_with_parent()

    state.delete_task("1", (0, 1))
    parent = state.node("1", (0,))
    assert parent.due_date == date(2024, 3, 3)
    assert parent.completion == 100

    assert state.undo_last()
    assert parent.due_date == date(2024, 3, 10)
    assert [child.name for child in parent.children] == ["Early", "Late"]
    assert parent.completion == 50


def test_undo_project_delete_restores_position() -> None:
    state = PlannerState([Project(id="1", name="A"), Project(id="2", name="B"), Project(id="3", name="C")])

    state.delete_project("2")
    assert [p.id for p in state.projects] == ["1", "3"]

    state.undo_last()
    assert [p.id for p in state.projects] == ["1", "2", "3"]


def test_undo_is_last_in_first_out() -> None:
    state = _state_with_parent()

    state.delete_task("1", (0, 0))
    state.delete_task("1", (0,))
    assert len(state.undo) == 2

    state.undo_last()
    assert state.node("1", (0,)).name == "Parent"
    assert len(state.node("1", (0,)).children) == 1
    state.undo_last()
    assert state.node("1", (0, 0)).name == "Early"
    assert not state.undo.can_undo


def test_undo_with_empty_ledger_is_a_no_op() -> None:
    state = PlannerState()

    assert state.undo_last() is False


def test_undo_finds_parent_after_it_moved() -> None:
    state = _state_with_parent()
    state.add_task("1", (), "Other", date(2024, 2, 1), date(2024, 2, 2))

    state.delete_task("1", (0, 1))
    state.move_task("1", (0,), (1,))
    state.undo_last()

    parent = state.node("1", (0, 0))
    assert parent.name == "Parent"
    assert [child.name for child in parent.children] == ["Early", "Late"]
    assert parent.due_date == date(2024, 3, 10)
    assert state.node("1", (0,)).due_date == date(2024, 3, 10)


def test_undo_keeps_a_later_extension_of_the_parent() -> None:
    state = _state_with_parent()

    state.delete_task("1", (0, 1))
    state.reschedule("1", (0,), date(2024, 3, 1), date(2024, 3, 20))
    state.undo_last()

    assert state.node("1", (0,)).due_date == date(2024, 3, 20)


def test_undo_entry_requires_restore() -> None:
    with pytest.raises(TypeError):
        UndoEntry()

    class Incomplete(UndoEntry):
        pass

    with pytest.raises(TypeError):
        Incomplete()
