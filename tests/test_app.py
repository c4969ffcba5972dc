from datetime import date

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QApplication

from gantt_planner.app import (
    DueCalendarDialog,
    GanttChartWidget,
    ImportSelectionDialog,
    MainWindow,
    ProjectTreeWidget,
)
from gantt_planner.interaction import DragMode
from gantt_planner.interchange import summarize_csv
from gantt_planner.models import Project, TaskNode
from gantt_planner.state import PlannerState
from gantt_planner.structure import DropIntent


def test_tree_mirrors_state(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project])
    tree = ProjectTreeWidget(state)

    project_item = tree.topLevelItem(0)
    assert project_item.text(0) == "Launch"
    assert project_item.text(2) == "2024-04-14"
    assert project_item.child(0).child(0).text(0) == "Print flyers"

    state.add_task("1", (), "Ship", date(2024, 4, 15), date(2024, 4, 16))
    tree.refresh()
    assert tree.topLevelItem(0).childCount() == 3


def test_selection_survives_refresh(qapp: QApplication, nested_project: Project) -> None:
    tree = ProjectTreeWidget(PlannerState([nested_project]))

    tree.select_key(("1", (0, 0)))
    tree.refresh()

    assert tree.selected_key() == ("1", (0, 0))


def test_gantt_hit_test_finds_edges(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project])
    chart = GanttChartWidget(state)
    chart.resize(1500, 400)
    chart.set_project("1")

    rect = chart._bar_rect(chart._rows(nested_project)[2].geometry, 2)
    y = rect.center().y()

    assert chart.hit_test(rect.left(), y) == ((1,), DragMode.RESIZE_START)
    assert chart.hit_test(rect.right(), y) == ((1,), DragMode.RESIZE_END)
    assert chart.hit_test(rect.center().x(), y) == ((1,), DragMode.MOVE_BAR)
    assert chart.hit_test(rect.center().x(), 5) is None


def test_main_window_tracks_undo(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project])
    window = MainWindow(state)

    assert not window.undo_action.isEnabled()
    state.delete_task("1", (1,))
    assert window.undo_action.isEnabled()
    assert window.tree.topLevelItem(0).childCount() == 1


def test_archived_projects_hidden_until_requested(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project])
    tree = ProjectTreeWidget(state)

    state.set_archived("1", True)
    tree.refresh()
    assert tree.topLevelItemCount() == 0

    tree.show_archived = True
    tree.refresh()
    assert tree.topLevelItem(0).text(0) == "Launch (Archived)"


def test_project_rows_drag_to_reorder(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project, Project(id="2", name="Hiring")])
    window = MainWindow(state)
    tree = window.tree

    tree.handle_drop(("2", ()), ("1", ()), DropIntent.BEFORE)

    assert [p.id for p in state.projects] == ["2", "1"]
    assert tree.topLevelItem(0).text(0) == "Hiring"
    assert tree.selected_key() == ("2", ())

    tree.handle_drop(("2", ()), ("1", (0,)), DropIntent.ONTO)
    assert [p.id for p in state.projects] == ["2", "1"]


def test_tree_filters_by_pic_status_and_schedule(qapp: QApplication, nested_project: Project) -> None:
    nested_project.node_at((1,)).person_in_charge = "Bob"
    done = Project(id="2", name="Done", children=[
        TaskNode(name="Only", start_date=date(2030, 1, 1), due_date=date(2030, 1, 2), completion=100),
    ])
    state = PlannerState([nested_project, done])
    tree = ProjectTreeWidget(state)
    tree.today = date(2024, 5, 1)

    tree.pic_filter = "Bob"
    tree.refresh()
    assert [tree.topLevelItem(i).text(0) for i in range(tree.topLevelItemCount())] == ["Launch"]

    tree.pic_filter = None
    tree.completion_filter = "completed"
    tree.refresh()
    assert [tree.topLevelItem(i).text(0) for i in range(tree.topLevelItemCount())] == ["Done"]

    tree.completion_filter = None
    tree.overdue_filter = True
    tree.refresh()
    assert [tree.topLevelItem(i).text(0) for i in range(tree.topLevelItemCount())] == ["Launch"]
    assert tree.topLevelItem(0).foreground(2).color().name() == "#e53935"


def test_overlapping_assignments_are_flagged(qapp: QApplication, nested_project: Project) -> None:
    nested_project.node_at((0,)).person_in_charge = "Bob"
    nested_project.node_at((0, 0)).person_in_charge = "Bob"
    nested_project.node_at((1,)).person_in_charge = "Bob"
    tree = ProjectTreeWidget(PlannerState([nested_project]))

    project_item = tree.topLevelItem(0)

    assert "Bob" in project_item.child(0).toolTip(4)
    assert "Bob" in project_item.child(0).child(0).toolTip(4)
    assert project_item.child(1).toolTip(4) == ""


def test_main_window_filter_controls(qapp: QApplication, nested_project: Project) -> None:
    state = PlannerState([nested_project], pic_list=["Alice"])
    window = MainWindow(state)

    state.add_pic("Bob")
    assert window.pic_combo.findData("Bob") > 0

    window.pic_combo.setCurrentIndex(window.pic_combo.findData("Bob"))
    assert window.tree.pic_filter == "Bob"
    assert window.tree.topLevelItemCount() == 0

    window.completion_combo.setCurrentIndex(window.completion_combo.findData("incomplete"))
    assert window.tree.completion_filter == "incomplete"


def test_import_dialog_lists_projects_checked(qapp: QApplication, nested_project: Project) -> None:
    text = PlannerState([nested_project, Project(id="2", name="Hiring")]).export_csv()
    dialog = ImportSelectionDialog(summarize_csv(text))

    assert dialog.list_widget.count() == 2
    assert "Launch" in dialog.list_widget.item(0).text()
    assert dialog.selected_ids() == ["1", "2"]

    dialog.list_widget.item(0).setCheckState(Qt.CheckState.Unchecked)
    assert dialog.selected_ids() == ["2"]


def test_due_calendar_lists_tasks_for_day(qapp: QApplication, nested_project: Project) -> None:
    dialog = DueCalendarDialog(PlannerState([nested_project]))

    dialog.show_day(date(2024, 4, 12))

    labels = [dialog.due_list.item(i).text() for i in range(dialog.due_list.count())]
    assert labels == ["Launch: Design (0%)", "Launch: Print flyers (0%)"]

    dialog.show_day(date(2024, 4, 13))
    assert dialog.due_list.count() == 0
