"""
Weekly conduct scoring.

Provides:
- Score and note entry per student per week
- Behavior tags (violations and positives) that move the score
- Class-wide default fill and bonus
- Weekly ranks, semester summaries and rank distribution
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Optional
from .activity_log import add_log
from .models import get_session, Student, ConductRecord, AcademicRank
from .repositories import ConductRepository, SettingsRepository

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def rank_from_score(score: float, thresholds: dict) -> AcademicRank:
    """Map a score to a rank using {good, fair, pass} lower bounds."""
    if score >= thresholds["good"]:
        return AcademicRank.GOOD
    if score >= thresholds["fair"]:
        return AcademicRank.FAIR
    if score >= thresholds["pass"]:
        return AcademicRank.PASS
    return AcademicRank.FAIL


def record_to_dict(record: ConductRecord) -> dict:
    return {
        "student_id": record.student_id,
        "week": record.week,
        "score": record.score,
        "violations": list(record.violations or []),
        "positive_behaviors": list(record.positive_behaviors or []),
        "note": record.note
    }


def _get_or_create(session, student_id: str, week: int, default_score: int) -> ConductRecord:
    if week < 1:
        raise ValueError(f"Week must be 1 or later, got {week}")

    student = session.get(Student, student_id)
    if not student:
        raise ValueError(f"Student {student_id} not found")

    record = session.query(ConductRecord).filter_by(student_id=student_id, week=week).first()
    if record is None:
        record = ConductRecord(
            student_id=student_id,
            week=week,
            score=default_score,
            violations=[],
            positive_behaviors=[],
            note=""
        )
        session.add(record)
    return record


# ============================================================================
# Entry
# ============================================================================

def set_score(student_id: str, week: int, score: int) -> dict:
    """Set a student's score for a week (clamped to 0-100)."""
    settings = SettingsRepository().load_settings()
    session = get_session()
    try:
        record = _get_or_create(session, student_id, week, settings["default_score"])
        record.score = clamp_score(int(score))
        session.commit()
        result = record_to_dict(record)
    finally:
        session.close()

    add_log("CONDUCT", f"Set week {week} score for {student_id} to {result['score']}")
    return result


def set_note(student_id: str, week: int, note: str) -> dict:
    """Attach the teacher's note to a student's week."""
    settings = SettingsRepository().load_settings()
    session = get_session()
    try:
        record = _get_or_create(session, student_id, week, settings["default_score"])
        record.note = note
        session.commit()
        result = record_to_dict(record)
    finally:
        session.close()

    return result


def find_behavior(settings: dict, item_id: str) -> tuple[dict, bool]:
    """Look up a behavior item by id. Returns (item, is_positive)."""
    config = settings["behavior_config"]
    for item in config["violations"]:
        if item["id"] == item_id:
            return item, False
    for item in config["positives"]:
        if item["id"] == item_id:
            return item, True
    raise ValueError(f"Unknown behavior item: {item_id}")


def apply_behavior(student_id: str, week: int, item_id: str, add: bool = True) -> dict:
    """
    Add or remove a behavior tag on a student's week.

    Adding appends the item's label and adds its points. Removing drops the
    first matching label and reverses its points; removing a label that is
    not there changes nothing. The score stays within 0-100.
    """
    settings = SettingsRepository().load_settings()
    item, is_positive = find_behavior(settings, item_id)

    session = get_session()
    try:
        record = _get_or_create(session, student_id, week, settings["default_score"])
        attr = "positive_behaviors" if is_positive else "violations"
        labels = list(getattr(record, attr) or [])
        score = record.score

        if add:
            labels.append(item["label"])
            score += item["points"]
        elif item["label"] in labels:
            labels.remove(item["label"])
            score -= item["points"]

        setattr(record, attr, labels)
        record.score = clamp_score(score)
        session.commit()
        result = record_to_dict(record)
    finally:
        session.close()

    verb = "Added" if add else "Removed"
    add_log("CONDUCT", f"{verb} '{item['label']}' for {student_id} in week {week}")
    return result


def fill_default_scores(week: int) -> int:
    """Give every student without a record this week the default score."""
    if week < 1:
        raise ValueError(f"Week must be 1 or later, got {week}")

    settings = SettingsRepository().load_settings()
    session = get_session()

    existing = {
        sid for (sid,) in session.query(ConductRecord.student_id).filter_by(week=week).all()
    }
    count = 0
    for student in session.query(Student).order_by(Student.id).all():
        if student.id in existing:
            continue
        session.add(ConductRecord(
            student_id=student.id,
            week=week,
            score=settings["default_score"],
            violations=[],
            positive_behaviors=[],
            note=""
        ))
        count += 1

    session.commit()
    session.close()

    add_log("CONDUCT", f"Filled default score for {count} students in week {week}")
    return count


def apply_class_bonus(week: int, bonus: int, reason: str) -> int:
    """Add bonus points (kept within 0-100) and a positive entry for every student."""
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("A reason is required for a class bonus")

    settings = SettingsRepository().load_settings()
    session = get_session()
    count = 0

    for student in session.query(Student).order_by(Student.id).all():
        record = _get_or_create(session, student.id, week, settings["default_score"])
        record.score = clamp_score(record.score + bonus)
        record.positive_behaviors = list(record.positive_behaviors or []) + [f"{reason} (+{bonus})"]
        count += 1

    session.commit()
    session.close()

    add_log("CONDUCT", f"Added {bonus} points for {count} students in week {week}. Reason: {reason}")
    return count


# ============================================================================
# Reporting helpers
# ============================================================================

def week_label(week: int, settings: Optional[dict] = None) -> str:
    """'Week N (dd/mm - dd/mm)' counted from the semester start date."""
    settings = settings or SettingsRepository().load_settings()
    start_text = settings.get("semester_start_date")
    if not start_text:
        return f"Week {week}"

    start = date.fromisoformat(start_text) + timedelta(days=(week - 1) * 7)
    end = start + timedelta(days=6)
    return f"Week {week} ({start:%d/%m} - {end:%d/%m})"


def week_records(week: int) -> list[dict]:
    """Every record for a week with its rank."""
    settings = SettingsRepository().load_settings()
    results = []
    for record in ConductRepository().for_week(week):
        data = record_to_dict(record)
        data["rank"] = rank_from_score(record.score, settings["thresholds"]).value
        results.append(data)
    return results


def semester_summary(student_id: str, start_week: int, end_week: int) -> dict:
    """
    Semester result for one student.

    Each week's score is ranked with the weekly thresholds, the rank is
    converted to rank_scores points, and the average of those points is
    ranked with the semester thresholds.
    """
    settings = SettingsRepository().load_settings()
    records = ConductRepository().for_student(student_id, start_week, end_week)
    if not records:
        return {
            "student_id": student_id,
            "weeks": 0,
            "average_score": None,
            "average_points": None,
            "rank": None
        }

    total_raw = 0
    total_points = 0
    for record in records:
        total_raw += record.score
        weekly_rank = rank_from_score(record.score, settings["thresholds"])
        total_points += settings["rank_scores"][weekly_rank.value]

    average_points = total_points / len(records)
    return {
        "student_id": student_id,
        "weeks": len(records),
        "average_score": round(total_raw / len(records), 1),
        "average_points": round(average_points, 2),
        "rank": rank_from_score(average_points, settings["semester_thresholds"]).value
    }


def rank_distribution(start_week: int, end_week: int) -> dict:
    """Count students per rank by their average raw score over the weeks."""
    settings = SettingsRepository().load_settings()

    totals = defaultdict(lambda: [0, 0])
    for record in ConductRepository().in_range(start_week, end_week):
        totals[record.student_id][0] += record.score
        totals[record.student_id][1] += 1

    counts = {rank.value: 0 for rank in AcademicRank}
    for total, weeks in totals.values():
        counts[rank_from_score(total / weeks, settings["thresholds"]).value] += 1
    return counts
