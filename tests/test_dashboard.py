"""
tests/test_dashboard.py

Flask dashboard pages and JSON API.
"""

import json

import pytest
from class_manager.dashboard import app
from class_manager.roster import add_student, seed_demo_data


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_pages_render(client):
    seed_demo_data(weeks=1, seed=1)

    response = client.get("/")
    assert response.status_code == 200
    assert b"Seating" in response.data

    response = client.get("/students")
    assert response.status_code == 200
    assert b"Student 1" in response.data


def test_arrange_form_redirects(client):
    add_student("An", student_id="A")
    response = client.post("/seating/arrange")
    assert response.status_code == 302

    seats = client.get("/api/seating").get_json()["seats"]
    assert [s["student_id"] for s in seats if s["student_id"]] == ["A"]


def test_student_api(client):
    response = client.post("/api/students", json={"name": "Binh", "gender": "male", "rank": "good"})
    assert response.status_code == 201
    student_id = response.get_json()["id"]

    students = client.get("/api/students").get_json()
    assert [s["name"] for s in students] == ["Binh"]

    assert client.post("/api/students", json={}).status_code == 400
    assert client.delete(f"/api/students/{student_id}").status_code == 200
    assert client.delete(f"/api/students/{student_id}").status_code == 404


def test_arrange_api_reports_unmet(client):
    for i in range(4):
        add_student(f"Boy {i}", "male", "pass", student_id=f"B{i}")

    data = client.post("/api/seating/arrange", json={"rows": 1, "cols": 4, "seed": 1}).get_json()

    assert data["rows"] == 1 and data["cols"] == 4
    assert len(data["seats"]) == 4
    kinds = {u["kind"] for u in data["unmet"]}
    assert kinds == {"top_student", "gender_balance"}


def test_arrange_api_errors(client):
    for i in range(5):
        add_student(f"S{i}", student_id=f"S{i}")

    response = client.post("/api/seating/arrange", json={"rows": 2, "cols": 2})
    assert response.status_code == 400
    assert response.get_json()["type"] == "CapacityExceededError"

    response = client.post("/api/seating/arrange", json={"rows": 0, "cols": 2})
    assert response.get_json()["type"] == "InvalidGridError"


def test_invalid_grid_query_is_a_client_error(client):
    response = client.get("/api/seating?rows=0")
    assert response.status_code == 400
    assert response.get_json()["type"] == "InvalidGridError"


def test_swap_and_reset_api(client):
    add_student("An", student_id="A")
    client.post("/api/seating/arrange", json={"rows": 1, "cols": 4, "seed": 2})
    before = client.get("/api/seating?rows=1&cols=4").get_json()["seats"]
    col = next(s["col"] for s in before if s["student_id"] == "A")
    target = (col + 1) % 4

    response = client.post("/api/seating/swap?rows=1&cols=4", json={"from": [0, col], "to": [0, target]})
    seats = response.get_json()["seats"]
    assert seats[target]["student_id"] == "A"
    assert seats[col]["student_id"] is None

    assert client.post("/api/seating/swap?rows=1&cols=4", json={"from": [0, 0]}).status_code == 400
    assert client.post("/api/seating/swap?rows=1&cols=4",
                       json={"from": [0, 0], "to": [3, 0]}).status_code == 400

    seats = client.post("/api/seating/reset?rows=1&cols=4").get_json()["seats"]
    assert all(s["student_id"] is None for s in seats)


def test_conduct_api(client):
    add_student("An", student_id="A")

    record = client.post("/api/conduct/1/A", json={"score": 90, "note": "Good week"}).get_json()
    assert record["score"] == 90
    assert record["note"] == "Good week"

    record = client.post("/api/conduct/1/A", json={"item": "v1"}).get_json()
    assert record["score"] == 88

    data = client.get("/api/conduct/1").get_json()
    assert data["label"].startswith("Week 1")
    assert data["records"][0]["rank"] == "good"

    assert client.post("/api/conduct/1/A", json={}).status_code == 400
    assert client.post("/api/conduct/1/nobody", json={"score": 50}).status_code == 400


def test_logs_api(client):
    add_student("An", student_id="A")
    logs = client.get("/api/logs?limit=1").get_json()
    assert len(logs) == 1
    assert logs[0]["action"] == "DATA"


def test_backup_api_round_trip(client):
    add_student("An", student_id="A")

    response = client.get("/api/backup")
    assert response.mimetype == "application/json"
    backup = response.get_data(as_text=True)
    assert json.loads(backup)["students"][0]["id"] == "A"

    client.delete("/api/students/A")
    counts = client.post("/api/backup", data=backup).get_json()
    assert counts["students"] == 1

    assert client.post("/api/backup", data="garbage").status_code == 400


def test_backup_api_rejects_bad_record(client):
    add_student("Keep", student_id="K1")
    document = {
        "students": [{"id": "N1", "name": "New", "gender": "male", "rank": "pass"}],
        "conduct": [{"student_id": "N1", "week": 1}],
        "settings": {}
    }

    response = client.post("/api/backup", data=json.dumps(document))

    assert response.status_code == 400
    assert [s["id"] for s in client.get("/api/students").get_json()] == ["K1"]


def test_update_student_api(client):
    add_student("An", student_id="A")

    response = client.put("/api/students/A", json={"rank": "good", "is_talkative": True})
    assert response.status_code == 200
    assert response.get_json() == {
        "id": "A", "name": "An", "gender": "male", "rank": "good", "is_talkative": True
    }

    assert client.put("/api/students/A", json={}).status_code == 400
    assert client.put("/api/students/A", json={"gender": "robot"}).status_code == 400
    assert client.put("/api/students/nobody", json={"name": "X"}).status_code == 404


def test_settings_api(client):
    assert client.get("/api/settings").get_json()["thresholds"]["good"] == 80

    response = client.post("/api/settings", json={"thresholds": {"good": 90}})
    assert response.status_code == 200
    assert response.get_json()["thresholds"]["good"] == 90
    assert client.get("/api/settings").get_json()["thresholds"]["good"] == 90

    assert client.post("/api/settings", json={"default_score": -1}).status_code == 400
    assert client.post("/api/settings", data="garbage").status_code == 400
    assert client.get("/api/settings").get_json()["default_score"] == 100
