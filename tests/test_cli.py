"""
tests/test_cli.py

Command-line entry points, driven through main(argv).
"""

import argparse
import json

import pytest
from class_manager.cli import main, parse_seat
from class_manager.repositories import RosterRepository
from class_manager.seating import load_seating


def run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


def test_parse_seat_is_one_based():
    assert parse_seat("1,1") == (0, 0)
    assert parse_seat("3,8") == (2, 7)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_seat("3")


def test_no_command_prints_help(capsys):
    assert "usage" in run(capsys).lower()


def test_student_add_list_remove(capsys):
    out = run(capsys, "student", "add", "--name", "An Nguyen", "--gender", "female",
              "--rank", "good", "--student-id", "A1")
    assert "Added student: An Nguyen (ID: A1)" in out

    out = run(capsys, "student", "add", "--name", "Copy", "--student-id", "A1")
    assert "Error:" in out

    out = run(capsys, "student", "list")
    assert "An Nguyen" in out
    assert "Total: 1 students" in out

    out = run(capsys, "student", "remove", "--student-id", "A1")
    assert "Removed student A1" in out
    assert RosterRepository().ids() == set()


def test_import_students(capsys, tmp_path):
    path = tmp_path / "roster.csv"
    path.write_text("name,gender,rank\nAn,female,good\nBinh,male,fair\n", encoding="utf-8")

    out = run(capsys, "import", "students", str(path))

    assert "Imported 2 students." in out


def test_seating_arrange_show_swap_reset(capsys):
    run(capsys, "seed", "--weeks", "1", "--seed", "3")

    out = run(capsys, "seating", "arrange", "--seed", "4")
    assert "|" in out
    assert len(out.strip().splitlines()) >= 6

    before = load_seating(6, 8)
    run(capsys, "seating", "swap", "--from", "1,1", "--to", "6,8")
    after = load_seating(6, 8)
    assert after[0].student_id == before[47].student_id
    assert after[47].student_id == before[0].student_id

    out = run(capsys, "seating", "reset")
    assert "cleared" in out
    assert all(s.student_id is None for s in load_seating(6, 8))


def test_seating_arrange_reports_errors(capsys):
    run(capsys, "seed", "--weeks", "1")

    out = run(capsys, "seating", "arrange", "--rows", "2", "--cols", "4")

    assert "Error:" in out
    assert "exceeds seating capacity" in out


def test_seating_swap_out_of_range(capsys):
    out = run(capsys, "seating", "swap", "--from", "1,1", "--to", "9,9")
    assert "Error:" in out


def test_conduct_commands(capsys):
    run(capsys, "student", "add", "--name", "An", "--student-id", "A1")

    out = run(capsys, "conduct", "score", "--student-id", "A1", "--week", "1", "--value", "85")
    assert "A1 week 1: 85" in out

    out = run(capsys, "conduct", "tag", "--student-id", "A1", "--week", "1", "--item", "v2")
    assert "A1 week 1: 80" in out

    out = run(capsys, "conduct", "bonus", "--week", "1", "--value", "3", "--reason", "Tidy room")
    assert "Added 3 points for 1 students." in out

    out = run(capsys, "conduct", "week", "--week", "1")
    assert "Week 1" in out
    assert "Homework not done" in out

    out = run(capsys, "conduct", "semester", "--student-id", "A1", "--start-week", "1", "--end-week", "4")
    assert "Semester rank: good" in out

    out = run(capsys, "conduct", "semester")
    assert "good: 1" in out


def test_conduct_errors_are_printed(capsys):
    out = run(capsys, "conduct", "score", "--student-id", "nobody", "--value", "50")
    assert "Error: Student nobody not found" in out


def test_backup_export_and_import(capsys, tmp_path):
    run(capsys, "student", "add", "--name", "An", "--student-id", "A1")
    path = tmp_path / "backup.json"

    run(capsys, "backup", "export", str(path))
    assert json.loads(path.read_text(encoding="utf-8"))["students"][0]["id"] == "A1"

    run(capsys, "student", "remove", "--student-id", "A1")
    out = run(capsys, "backup", "import", str(path))
    assert "Restored 1 students" in out
    assert RosterRepository().ids() == {"A1"}


def test_backup_import_missing_file(capsys, tmp_path):
    out = run(capsys, "backup", "import", str(tmp_path / "missing.json"))
    assert "Error:" in out


def test_sync_set_url_and_missing_url(capsys, monkeypatch):
    monkeypatch.setattr("class_manager.repositories.CLOUD_SYNC_URL", "")

    out = run(capsys, "sync", "push")
    assert "Upload failed." in out

    out = run(capsys, "sync", "set-url", "https://example.test/exec")
    assert "saved" in out


def test_log_show_and_clear(capsys):
    run(capsys, "student", "add", "--name", "An")

    out = run(capsys, "log", "show", "--limit", "5")
    assert "DATA: Added student An" in out

    out = run(capsys, "log", "clear")
    assert "Cleared" in out


def test_backup_import_with_bad_record_prints_error(capsys, tmp_path):
    run(capsys, "student", "add", "--name", "Keep", "--student-id", "K1")
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({
        "students": [{"id": "N1", "name": "New", "gender": "male", "rank": "pass"}],
        "conduct": [{"student_id": "N1", "week": 1}],
        "settings": {}
    }), encoding="utf-8")

    out = run(capsys, "backup", "import", str(path))

    assert "Error:" in out
    assert RosterRepository().ids() == {"K1"}


def test_student_update(capsys):
    run(capsys, "student", "add", "--name", "An", "--student-id", "A1", "--talkative")

    out = run(capsys, "student", "update", "--student-id", "A1", "--rank", "good", "--quiet")
    assert "Updated student: An (ID: A1)" in out

    student = RosterRepository().get("A1")
    assert student.rank == "good"
    assert student.gender == "male"
    assert student.is_talkative is False

    assert "Error: nothing to update" in run(capsys, "student", "update", "--student-id", "A1")
    out = run(capsys, "student", "update", "--student-id", "nobody", "--name", "X")
    assert "Error: Student nobody not found" in out


def test_settings_show_and_set(capsys):
    out = run(capsys, "settings", "show")
    assert json.loads(out)["default_score"] == 100

    out = run(capsys, "settings", "set", "thresholds.good", "85")
    assert "Set thresholds.good = 85" in out
    assert json.loads(run(capsys, "settings", "show", "thresholds"))["good"] == 85

    out = run(capsys, "settings", "set", "default_score", "150")
    assert "Error:" in out
    assert json.loads(run(capsys, "settings", "show", "default_score")) == 100

    assert "Error: Unknown setting" in run(capsys, "settings", "show", "nope")
    assert "Error: key and value required" in run(capsys, "settings", "set", "default_score")
