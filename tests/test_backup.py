"""
tests/test_backup.py

JSON backup export and restore.
"""

import json

import pytest
from class_manager.backup import (
    export_backup, export_backup_file, import_backup, import_backup_file, collect_data
)
from class_manager.conduct import set_score, week_records
from class_manager.config import BACKUP_VERSION
from class_manager.repositories import RosterRepository, SettingsRepository
from class_manager.roster import add_student
from class_manager.seating import auto_arrange, load_seating


@pytest.fixture
def classroom():
    add_student("An", "female", "good", student_id="A")
    add_student("Binh", "male", "fair", is_talkative=True, student_id="B")
    set_score("A", 1, 88)
    auto_arrange(1, 4, seed=3)
    SettingsRepository().set_cloud_url("https://example.test/sync")


def test_export_contains_every_section(classroom):
    data = json.loads(export_backup())

    assert [s["id"] for s in data["students"]] == ["A", "B"]
    assert data["conduct"][0]["score"] == 88
    assert len(data["seating"]) == 4
    assert data["settings"]["default_score"] == 100
    assert data["cloud_url"] == "https://example.test/sync"
    assert data["version"] == BACKUP_VERSION
    assert "export_date" in data


def test_round_trip_through_file(classroom, tmp_path):
    path = tmp_path / "backup.json"
    export_backup_file(str(path))
    before = load_seating(1, 4)

    import_backup(json.dumps({"students": [], "settings": {}}))
    assert RosterRepository().ids() == set()

    counts = import_backup_file(str(path))

    assert counts == {"students": 2, "conduct": 1, "seating": 4}
    assert RosterRepository().ids() == {"A", "B"}
    assert week_records(1)[0]["score"] == 88
    assert [s.student_id for s in load_seating(1, 4)] == [s.student_id for s in before]


def test_import_keeps_sections_missing_from_the_backup(classroom):
    import_backup(json.dumps({
        "students": [{"id": "A", "name": "An", "gender": "female", "rank": "good"}],
        "settings": {"default_score": 90}
    }))

    assert RosterRepository().ids() == {"A"}
    assert week_records(1)[0]["student_id"] == "A"
    assert SettingsRepository().load_settings()["default_score"] == 90


@pytest.mark.parametrize("text", [
    "not json",
    "[]",
    json.dumps({"students": []}),
    json.dumps({"settings": {}}),
])
def test_invalid_backups_are_rejected(classroom, text):
    with pytest.raises(ValueError):
        import_backup(text)
    assert RosterRepository().ids() == {"A", "B"}


def test_collect_data_on_empty_store():
    data = collect_data()
    assert data["students"] == []
    assert data["conduct"] == []
    assert data["seating"] == []
    assert "thresholds" in data["settings"]


BROKEN_CONDUCT = json.dumps({
    "students": [{"id": "N1", "name": "New", "gender": "female", "rank": "good"}],
    "conduct": [{"student_id": "N1", "week": 1}],
    "settings": {}
})


def test_malformed_record_leaves_store_untouched(classroom):
    with pytest.raises(ValueError, match="score"):
        import_backup(BROKEN_CONDUCT)

    assert RosterRepository().ids() == {"A", "B"}
    assert week_records(1)[0]["score"] == 88
    assert [s.student_id for s in load_seating(1, 4) if s.student_id]


@pytest.mark.parametrize("document", [
    {"students": [{"id": "X", "name": "X", "gender": "robot", "rank": "good"}], "settings": {}},
    {"students": [{"id": "X", "name": "X", "gender": "male", "rank": "good"}] * 2, "settings": {}},
    {"students": [], "conduct": [{"student_id": "A", "week": "one", "score": 90}], "settings": {}},
    {"students": [], "seating": [{"row": 0}], "settings": {}},
    {"students": "everyone", "settings": {}},
    {"students": [], "settings": []},
])
def test_bad_sections_are_rejected_before_writing(classroom, document):
    with pytest.raises(ValueError):
        import_backup(json.dumps(document))
    assert RosterRepository().ids() == {"A", "B"}


def test_restore_normalizes_student_fields(classroom):
    import_backup(json.dumps({
        "students": [{"id": "M", "name": "Minh", "gender": "M", "rank": "GOOD"}],
        "settings": {}
    }))

    student = RosterRepository().get("M")
    assert student.gender == "male"
    assert student.rank == "good"
