"""
Configuration for the classroom tools.

Process-level options come from environment variables (optionally loaded
from .env, see __init__). Classroom settings that the teacher edits at
runtime live in the database and are merged over DEFAULT_SETTINGS on read.
"""

import copy
import os
from datetime import date
from typing import Optional

# Database
DB_PATH = os.environ.get("CLASS_MANAGER_DB", "class_manager.db")

# Seating grid topology
SEATING_ROWS = int(os.environ.get("SEATING_ROWS", "6"))
SEATING_COLS = int(os.environ.get("SEATING_COLS", "8"))

# Cloud sync endpoint (a Google Apps Script web app or similar)
CLOUD_SYNC_URL = os.environ.get("CLOUD_SYNC_URL", "")
CLOUD_SYNC_TIMEOUT = float(os.environ.get("CLOUD_SYNC_TIMEOUT", "30"))

# Activity log retention
MAX_LOG_ENTRIES = 100

# Backup document format
BACKUP_VERSION = "1.5"

DEFAULT_SETTINGS = {
    "semester_start_date": None,  # filled with today's date on read
    "thresholds": {"good": 80, "fair": 65, "pass": 50},
    "default_score": 100,
    "rank_scores": {"good": 10, "fair": 8, "pass": 6, "fail": 4},
    "semester_thresholds": {"good": 9, "fair": 7, "pass": 5},
    "behavior_config": {
        "violations": [
            {"id": "v1", "label": "Talking in class", "points": -2},
            {"id": "v2", "label": "Homework not done", "points": -5},
            {"id": "v3", "label": "Late to class", "points": -2},
            {"id": "v4", "label": "Lesson not prepared", "points": -5},
            {"id": "v5", "label": "Disruptive", "points": -2},
            {"id": "v6", "label": "Uniform violation", "points": -2},
            {"id": "v7", "label": "Fighting", "points": -20},
            {"id": "v8", "label": "Disrespect to teacher", "points": -20},
        ],
        "positives": [
            {"id": "p1", "label": "Contributed to the lesson", "points": 1},
            {"id": "p2", "label": "Good classwork", "points": 2},
            {"id": "p3", "label": "Improved on last week", "points": 5},
            {"id": "p4", "label": "Good duty rota work", "points": 2},
            {"id": "p5", "label": "Helped classmates", "points": 2},
        ],
    },
}


def default_settings() -> dict:
    """Return a fresh copy of the default settings."""
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings["semester_start_date"] = date.today().isoformat()
    return settings


def merge_settings(stored: Optional[dict], base: Optional[dict] = None) -> dict:
    """
    Merge stored settings over base (the defaults when omitted).

    Nested score tables are merged key by key so documents saved by older
    versions pick up new fields. Behavior lists are replaced wholesale.
    """
    settings = copy.deepcopy(base) if base else default_settings()
    if not stored:
        return settings

    for key, value in stored.items():
        if key in ("thresholds", "rank_scores", "semester_thresholds"):
            settings[key].update(value or {})
        elif key == "behavior_config":
            value = value or {}
            for kind in ("violations", "positives"):
                if value.get(kind):
                    settings["behavior_config"][kind] = value[kind]
        elif value is not None:
            settings[key] = value

    return settings
