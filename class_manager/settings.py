"""
Editing the classroom settings stored in the database.

Changes are merged over the current settings, checked as a whole and only
then saved, so a bad value never reaches the store.
"""

import json
from datetime import date
from .activity_log import add_log
from .config import DEFAULT_SETTINGS, merge_settings
from .repositories import SettingsRepository

RANKED_TABLES = ("thresholds", "semester_thresholds")
NESTED_KEYS = ("thresholds", "rank_scores", "semester_thresholds", "behavior_config")


def get_settings(settings_repo=None) -> dict:
    return (settings_repo or SettingsRepository()).load_settings()


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_settings(settings: dict) -> dict:
    """
    Check a complete settings document.

    Raises ValueError naming the first bad value.
    """
    try:
        date.fromisoformat(str(settings["semester_start_date"]))
    except ValueError:
        raise ValueError(
            f"semester_start_date must be YYYY-MM-DD: {settings['semester_start_date']!r}"
        )

    for table in RANKED_TABLES:
        values = settings[table]
        for rank in ("good", "fair", "pass"):
            if not _is_number(values.get(rank)):
                raise ValueError(f"{table}.{rank} must be a number")
        if not values["good"] >= values["fair"] >= values["pass"]:
            raise ValueError(f"{table} must satisfy good >= fair >= pass")

    for rank, points in settings["rank_scores"].items():
        if not _is_number(points):
            raise ValueError(f"rank_scores.{rank} must be a number")

    score = settings["default_score"]
    if type(score) is not int or not 0 <= score <= 100:
        raise ValueError("default_score must be an integer from 0 to 100")

    seen = set()
    for kind in ("violations", "positives"):
        for i, item in enumerate(settings["behavior_config"][kind]):
            if not isinstance(item, dict):
                raise ValueError(f"behavior_config.{kind}[{i}] is not an object")
            if not isinstance(item.get("id"), str) or not item["id"]:
                raise ValueError(f"behavior_config.{kind}[{i}].id must be a string")
            if not isinstance(item.get("label"), str):
                raise ValueError(f"behavior_config.{kind}[{i}].label must be a string")
            if type(item.get("points")) is not int:
                raise ValueError(f"behavior_config.{kind}[{i}].points must be an integer")
            if item["id"] in seen:
                raise ValueError(f"Behavior id {item['id']} is used twice")
            seen.add(item["id"])

    return settings


def update_settings(changes: dict, settings_repo=None) -> dict:
    """
    Merge changes over the current settings, validate and save.

    Only keys known to the defaults may be changed. Returns the saved settings.
    """
    if not isinstance(changes, dict):
        raise ValueError("Settings changes must be an object")

    unknown = set(changes) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    for key in NESTED_KEYS:
        if key in changes and not isinstance(changes[key], dict):
            raise ValueError(f"{key} must be an object")

    repo = settings_repo or SettingsRepository()
    settings = validate_settings(merge_settings(changes, base=repo.load_settings()))
    repo.save_settings(settings)

    add_log("CONFIG", f"Updated settings: {', '.join(sorted(changes))}")
    return settings


def parse_setting_value(text: str):
    """JSON when it parses (numbers, lists, objects), otherwise the raw string."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def set_setting(path: str, value, settings_repo=None) -> dict:
    """
    Set one setting by dotted path, e.g. 'thresholds.good' or 'default_score'.

    The path must name a key that exists in the defaults.
    """
    parts = path.split(".")
    node = DEFAULT_SETTINGS
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            raise ValueError(f"Unknown setting: {path}")
        node = node[part]

    changes = value
    for part in reversed(parts):
        changes = {part: changes}
    return update_settings(changes, settings_repo=settings_repo)
