"""
Flask dashboard for the classroom tools.

Provides:
- Seating chart view with an auto-arrange button
- Student list
- JSON API for the roster, seating chart, conduct scores and activity log
"""

import os
from flask import Flask, Response, jsonify, request, redirect, url_for
from jinja2 import Environment, DictLoader
from .activity_log import get_logs
from .backup import export_backup, import_backup
from .conduct import (
    set_score, set_note, apply_behavior, week_label, week_records
)
from .config import SEATING_ROWS, SEATING_COLS
from .errors import SeatingError
from .layout import SEATS_PER_TABLE
from .models import init_db
from .repositories import RosterRepository
from .roster import add_student, update_student, remove_student, list_students, student_to_dict
from .seating import auto_arrange, load_seating, swap_seats, reset_seating
from .settings import get_settings, update_settings

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "class-manager-dev-key")

# ============================================================================
# HTML Templates
# ============================================================================

BASE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{% block title %}Class Manager{% endblock %}</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-50 min-h-screen">
    <nav class="bg-indigo-700 text-white p-4 shadow-lg">
        <div class="max-w-7xl mx-auto flex justify-between items-center">
            <a href="/" class="text-xl font-bold">Class Manager</a>
            <div class="flex gap-6">
                <a href="/" class="hover:text-indigo-200 transition">Seating</a>
                <a href="/students" class="hover:text-indigo-200 transition">Students</a>
            </div>
        </div>
    </nav>
    <main class="max-w-7xl mx-auto p-6">
        {% block content %}{% endblock %}
    </main>
</body>
</html>
"""

SEATING_TEMPLATE = """
{% extends "base.html" %}
{% block title %}Seating chart - Class Manager{% endblock %}
{% block content %}
<div class="flex justify-between items-center mb-6">
    <h1 class="text-3xl font-bold text-gray-800">Seating chart</h1>
    <div class="flex gap-3">
        <form method="post" action="/seating/arrange">
            <button class="bg-indigo-600 text-white px-4 py-2 rounded-lg">Auto arrange</button>
        </form>
        <form method="post" action="/seating/reset">
            <button class="bg-gray-200 text-gray-700 px-4 py-2 rounded-lg">Clear</button>
        </form>
    </div>
</div>
<div class="text-center text-sm text-gray-500 mb-4">Board</div>
<div class="space-y-3">
    {% for row in grid %}
    <div class="flex gap-2 justify-center">
        {% for seat in row %}
        {% if loop.index0 and loop.index0 % seats_per_table == 0 %}<div class="w-8"></div>{% endif %}
        {% set student = students.get(seat.student_id) %}
        <div class="w-28 h-16 rounded-lg border text-xs p-2
            {% if not student %}bg-white border-dashed border-gray-300
            {% elif student.rank == 'good' %}bg-green-50 border-green-300
            {% elif student.is_talkative %}bg-orange-50 border-orange-300
            {% else %}bg-blue-50 border-blue-200{% endif %}">
            {% if student %}
            <div class="font-semibold text-gray-800 truncate">{{ student.name }}</div>
            <div class="text-gray-500">{{ student.gender }} / {{ student.rank }}</div>
            {% endif %}
        </div>
        {% endfor %}
    </div>
    {% endfor %}
</div>
{% endblock %}
"""

STUDENTS_TEMPLATE = """
{% extends "base.html" %}
{% block title %}Students - Class Manager{% endblock %}
{% block content %}
<h1 class="text-3xl font-bold text-gray-800 mb-6">Students ({{ students|length }})</h1>
<div class="bg-white rounded-xl shadow-sm border border-gray-100">
    <table class="w-full text-sm">
        <thead class="bg-gray-50 text-gray-600">
            <tr>
                <th class="text-left p-3">ID</th>
                <th class="text-left p-3">Name</th>
                <th class="text-left p-3">Gender</th>
                <th class="text-left p-3">Rank</th>
                <th class="text-left p-3">Talkative</th>
                <th class="text-left p-3">Conduct weeks</th>
            </tr>
        </thead>
        <tbody>
            {% for s in students %}
            <tr class="border-t">
                <td class="p-3 text-gray-500">{{ s.id }}</td>
                <td class="p-3 font-medium">{{ s.name }}</td>
                <td class="p-3">{{ s.gender }}</td>
                <td class="p-3">{{ s.rank }}</td>
                <td class="p-3">{{ "yes" if s.is_talkative else "" }}</td>
                <td class="p-3">{{ s.conduct_weeks }}</td>
            </tr>
            {% endfor %}
        </tbody>
    </table>
</div>
{% endblock %}
"""


# ============================================================================
# Template rendering helper
# ============================================================================

_templates = Environment(loader=DictLoader({
    "base.html": BASE_TEMPLATE,
    "seating.html": SEATING_TEMPLATE,
    "students.html": STUDENTS_TEMPLATE,
}), autoescape=True)


def render(template_name: str, **kwargs):
    """Render a template with base template."""
    return _templates.get_template(template_name).render(**kwargs)


def grid_size() -> tuple[int, int]:
    rows = request.args.get("rows", SEATING_ROWS, type=int)
    cols = request.args.get("cols", SEATING_COLS, type=int)
    return rows, cols


@app.errorhandler(SeatingError)
def handle_seating_error(error):
    return jsonify({"error": str(error), "type": type(error).__name__}), 400


# ============================================================================
# Routes
# ============================================================================

@app.route("/")
def seating_page():
    rows, cols = grid_size()
    seats = load_seating(rows, cols)
    students = {s["id"]: s for s in list_students()}
    grid = [seats[r * cols:(r + 1) * cols] for r in range(rows)]
    return render("seating.html", grid=grid, students=students,
                  seats_per_table=SEATS_PER_TABLE)


@app.route("/students")
def students_page():
    return render("students.html", students=list_students())


@app.route("/seating/arrange", methods=["POST"])
def seating_arrange_form():
    try:
        auto_arrange()
    except SeatingError as e:
        return Response(str(e), status=400)
    return redirect(url_for("seating_page"))


@app.route("/seating/reset", methods=["POST"])
def seating_reset_form():
    reset_seating()
    return redirect(url_for("seating_page"))


# ============================================================================
# API Routes
# ============================================================================

@app.route("/api/students")
def api_students():
    return jsonify(list_students(request.args.get("search")))


@app.route("/api/students", methods=["POST"])
def api_add_student():
    data = request.get_json(silent=True) or {}
    try:
        student = add_student(
            data.get("name"),
            data.get("gender", "male"),
            data.get("rank", "pass"),
            is_talkative=bool(data.get("is_talkative", False)),
            student_id=data.get("id")
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"id": student.id, "name": student.name}), 201


@app.route("/api/students/<student_id>", methods=["PUT"])
def api_update_student(student_id: str):
    if RosterRepository().get(student_id) is None:
        return jsonify({"error": f"Student {student_id} not found"}), 404

    data = request.get_json(silent=True) or {}
    fields = {k: data[k] for k in ("name", "gender", "rank", "is_talkative") if k in data}
    if not fields:
        return jsonify({"error": "Nothing to update"}), 400
    try:
        student = update_student(student_id, **fields)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(student_to_dict(student))


@app.route("/api/students/<student_id>", methods=["DELETE"])
def api_remove_student(student_id: str):
    if not remove_student(student_id):
        return jsonify({"error": f"Student {student_id} not found"}), 404
    return jsonify({"removed": student_id})


@app.route("/api/seating")
def api_seating():
    rows, cols = grid_size()
    seats = load_seating(rows, cols)
    return jsonify({"rows": rows, "cols": cols, "seats": [s.to_dict() for s in seats]})


@app.route("/api/seating/arrange", methods=["POST"])
def api_seating_arrange():
    data = request.get_json(silent=True) or {}
    try:
        result = auto_arrange(
            rows=data.get("rows"),
            cols=data.get("cols"),
            seed=data.get("seed")
        )
    except SeatingError as e:
        return jsonify({"error": str(e), "type": type(e).__name__}), 400

    return jsonify({
        "rows": result.rows,
        "cols": result.cols,
        "seats": [s.to_dict() for s in result.seats],
        "unmet": [
            {"kind": u.kind, "scope": u.scope, "index": u.index, "detail": u.detail}
            for u in result.unmet
        ]
    })


@app.route("/api/seating/swap", methods=["POST"])
def api_seating_swap():
    data = request.get_json(silent=True) or {}
    rows, cols = grid_size()
    try:
        first = tuple(int(v) for v in data["from"])
        second = tuple(int(v) for v in data["to"])
        seats = swap_seats(first, second, rows, cols)
    except (KeyError, TypeError) as e:
        return jsonify({"error": f"Expected 'from' and 'to' as [row, col]: {e}"}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"rows": rows, "cols": cols, "seats": [s.to_dict() for s in seats]})


@app.route("/api/seating/reset", methods=["POST"])
def api_seating_reset():
    rows, cols = grid_size()
    seats = reset_seating(rows, cols)
    return jsonify({"rows": rows, "cols": cols, "seats": [s.to_dict() for s in seats]})


@app.route("/api/conduct/<int:week>")
def api_conduct_week(week: int):
    return jsonify({"week": week, "label": week_label(week), "records": week_records(week)})


@app.route("/api/conduct/<int:week>/<student_id>", methods=["POST"])
def api_conduct_update(week: int, student_id: str):
    """
    Update one student's week. Accepts any of:
        {"score": 90}
        {"note": "..."}
        {"item": "v1", "remove": false}
    """
    data = request.get_json(silent=True) or {}
    record = None
    try:
        if "score" in data:
            record = set_score(student_id, week, int(data["score"]))
        if "item" in data:
            record = apply_behavior(student_id, week, data["item"], add=not data.get("remove", False))
        if "note" in data:
            record = set_note(student_id, week, data["note"])
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if record is None:
        return jsonify({"error": "Nothing to update"}), 400
    return jsonify(record)


@app.route("/api/settings")
def api_settings():
    return jsonify(get_settings())


@app.route("/api/settings", methods=["POST"])
def api_update_settings():
    try:
        settings = update_settings(request.get_json(silent=True))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(settings)


@app.route("/api/logs")
def api_logs():
    return jsonify(get_logs(request.args.get("limit", 100, type=int)))


@app.route("/api/backup")
def api_backup_export():
    return Response(
        export_backup(),
        mimetype="application/json",
        headers={"Content-Disposition": "attachment;filename=class_backup.json"}
    )


@app.route("/api/backup", methods=["POST"])
def api_backup_import():
    try:
        counts = import_backup(request.get_data(as_text=True))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(counts)


def run_dashboard(host: str = "127.0.0.1", port: int = 5000, debug: bool = False):
    """Run the dashboard server."""
    init_db()
    print(f"Starting Class Manager dashboard at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_dashboard(debug=True)
