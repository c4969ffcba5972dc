import json
from datetime import date
from pathlib import Path

import pytest

from gantt_planner.errors import SnapshotError
from gantt_planner.models import DependencyMode, Project
from gantt_planner.storage import Snapshot, SnapshotStore, load_snapshot, save_snapshot


def test_save_and_load_roundtrip(tmp_path: Path, nested_project: Project) -> None:
    path = tmp_path / "snapshot.json"
    nested_project.archived = True
    nested_project.node_at((1,)).notes = "Check with legal"

    save_snapshot(path, Snapshot([nested_project], ["Alice"], 7))
    loaded = load_snapshot(path)

    assert loaded.projects == [nested_project]
    assert loaded.pic_list == ["Alice"]
    assert loaded.next_project_id == 7
    assert loaded.projects[0].node_at((0, 0)).dependency_mode is DependencyMode.BOUND_TO_PARENT_START


def test_next_id_skips_existing_projects(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"next_project_id": 1, "projects": [{"id": "5", "name": "Old"}]}))

    assert load_snapshot(path).next_project_id == 6


def test_missing_start_date_defaults_to_due(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    document = {
        "projects": [{"id": "1", "name": "P", "children": [{"name": "t", "due_date": "2024-02-03"}]}]
    }
    path.write_text(json.dumps(document))

    task = load_snapshot(path).projects[0].children[0]

    assert task.start_date == date(2024, 2, 3)
    assert task.dependency_mode is DependencyMode.FREE


@pytest.mark.parametrize("content", ["{not json", "[]", '{"projects": [{"name": "no id"}]}'])
def test_corrupt_snapshot_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(content)

    with pytest.raises(SnapshotError):
        load_snapshot(path)


def test_store_returns_none_when_nothing_saved(tmp_path: Path) -> None:
    assert SnapshotStore(tmp_path / "missing.json").load() is None
