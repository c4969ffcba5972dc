import os
from datetime import date

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication  # noqa: E402

from gantt_planner.models import DependencyMode, Project, TaskNode  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that instantiate widgets."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture
def nested_project() -> Project:
    """Launch plan with one bound sub-task under the first task."""
    child = TaskNode(
        name="Print flyers",
        start_date=date(2024, 4, 10),
        due_date=date(2024, 4, 12),
        dependency_mode=DependencyMode.BOUND_TO_PARENT_START,
    )
    parent = TaskNode(
        name="Design",
        start_date=date(2024, 4, 1),
        due_date=date(2024, 4, 12),
        children=[child],
    )
    review = TaskNode(name="Review", start_date=date(2024, 4, 13), due_date=date(2024, 4, 14))
    return Project(id="1", name="Launch", children=[parent, review])
