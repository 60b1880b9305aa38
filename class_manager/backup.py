"""
JSON backup and restore of everything the tools store.

Document format:
    {
        "students": [...],
        "conduct": [...],
        "seating": [...],
        "settings": {...},
        "cloud_url": "...",
        "export_date": "2026-01-29T08:00:00",
        "version": "1.5"
    }

Restores check the whole document first and then replace every section in
a single transaction, so a bad document leaves the store untouched.
"""

import json
from datetime import datetime
from typing import Optional
from .activity_log import add_log
from .config import BACKUP_VERSION
from .conduct import record_to_dict
from .models import get_session
from .placement import Seat
from .repositories import (
    RosterRepository, ConductRepository, SeatingRepository, SettingsRepository
)
from .roster import parse_gender, parse_rank, student_to_dict


def collect_data() -> dict:
    """Everything that gets backed up or synced, as plain data."""
    return {
        "students": [student_to_dict(s) for s in RosterRepository().all()],
        "conduct": [record_to_dict(r) for r in ConductRepository().all()],
        "seating": [s.to_dict() for s in SeatingRepository().load_seats()],
        "settings": SettingsRepository().load_settings()
    }


# ============================================================================
# Validation
# ============================================================================

def _require(entry, keys: tuple, section: str, position: int) -> dict:
    if not isinstance(entry, dict):
        raise ValueError(f"{section}[{position}] is not an object")
    missing = [k for k in keys if entry.get(k) is None]
    if missing:
        raise ValueError(f"{section}[{position}] is missing {', '.join(missing)}")
    return entry


def _require_int(entry: dict, key: str, section: str, position: int, minimum: int = 0) -> int:
    value = entry[key]
    if type(value) is not int or value < minimum:
        raise ValueError(f"{section}[{position}].{key} must be an integer >= {minimum}")
    return value


def _require_list(data: dict, section: str) -> Optional[list]:
    value = data.get(section)
    if value is not None and not isinstance(value, list):
        raise ValueError(f"Section '{section}' must be a list")
    return value


def validate_data(data: dict) -> dict:
    """
    Check a backup or sync payload and return it with normalized records.

    Raises ValueError naming the first bad record. Sections that are absent
    stay absent.
    """
    if not isinstance(data, dict):
        raise ValueError("Backup must be a JSON object")

    clean = {}

    students = _require_list(data, "students")
    if students is not None:
        clean["students"] = []
        seen = set()
        for i, entry in enumerate(students):
            _require(entry, ("id", "name", "gender", "rank"), "students", i)
            student_id = str(entry["id"])
            if student_id in seen:
                raise ValueError(f"students[{i}] repeats id {student_id}")
            seen.add(student_id)
            clean["students"].append({
                "id": student_id,
                "name": str(entry["name"]),
                "gender": parse_gender(entry["gender"]).value,
                "rank": parse_rank(entry["rank"]).value,
                "is_talkative": bool(entry.get("is_talkative", False))
            })

    conduct = _require_list(data, "conduct")
    if conduct is not None:
        clean["conduct"] = []
        seen = set()
        for i, entry in enumerate(conduct):
            _require(entry, ("student_id", "week", "score"), "conduct", i)
            week = _require_int(entry, "week", "conduct", i, minimum=1)
            score = _require_int(entry, "score", "conduct", i)
            key = (str(entry["student_id"]), week)
            if key in seen:
                raise ValueError(f"conduct[{i}] repeats week {week} for {key[0]}")
            seen.add(key)
            clean["conduct"].append({
                "student_id": key[0],
                "week": week,
                "score": score,
                "violations": list(entry.get("violations") or []),
                "positive_behaviors": list(entry.get("positive_behaviors") or []),
                "note": entry.get("note")
            })

    seating = _require_list(data, "seating")
    if seating is not None:
        clean["seating"] = []
        seen = set()
        for i, entry in enumerate(seating):
            _require(entry, ("row", "col"), "seating", i)
            position = (_require_int(entry, "row", "seating", i), _require_int(entry, "col", "seating", i))
            if position in seen:
                raise ValueError(f"seating[{i}] repeats seat {position}")
            seen.add(position)
            clean["seating"].append(
                Seat(row=position[0], col=position[1], student_id=entry.get("student_id"))
            )

    settings = data.get("settings")
    if settings is not None:
        if not isinstance(settings, dict):
            raise ValueError("Section 'settings' must be an object")
        clean["settings"] = settings

    return clean


# ============================================================================
# Restore
# ============================================================================

def restore_data(data: dict, cloud_url: Optional[str] = None):
    """
    Write a backup or sync payload into the store.

    Missing sections are left alone. Raises ValueError before anything is
    written when a record is malformed; database errors roll back the whole
    restore.
    """
    clean = validate_data(data)

    with get_session() as session, session.begin():
        if "students" in clean:
            RosterRepository.write_roster(session, clean["students"])
        if "conduct" in clean:
            ConductRepository.write_records(session, clean["conduct"])
        if "seating" in clean:
            SeatingRepository.write_seats(session, clean["seating"])
        if "settings" in clean:
            SettingsRepository.write_value(
                session, SettingsRepository.SETTINGS_KEY, json.dumps(clean["settings"])
            )
        if cloud_url:
            SettingsRepository.write_value(session, SettingsRepository.CLOUD_URL_KEY, cloud_url)


def export_backup() -> str:
    """Full backup as a JSON string."""
    data = collect_data()
    data["cloud_url"] = SettingsRepository().get_cloud_url()
    data["export_date"] = datetime.utcnow().isoformat()
    data["version"] = BACKUP_VERSION
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_backup_file(filepath: str) -> str:
    text = export_backup()
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(text)
    print(f"Exported backup to {filepath}")
    return filepath


def import_backup(text: str) -> dict:
    """
    Restore from a backup string.

    Raises ValueError (and writes nothing) when the text is not JSON, has
    no students or settings section, or holds a malformed record.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("students") is None or data.get("settings") is None:
        raise ValueError("Backup is missing the students or settings section")

    restore_data(data, cloud_url=data.get("cloud_url"))

    add_log("SYSTEM", f"Restored backup with {len(data['students'])} students")
    return {
        "students": len(data["students"]),
        "conduct": len(data.get("conduct") or []),
        "seating": len(data.get("seating") or [])
    }


def import_backup_file(filepath: str) -> dict:
    with open(filepath, "r", encoding="utf-8") as f:
        return import_backup(f.read())
