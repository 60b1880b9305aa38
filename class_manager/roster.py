"""
Roster management for the classroom tools.

Supports:
- Manual student entry and editing
- CSV import for bulk data
- Demo data seeding
"""

import os
import csv
import random
from typing import Optional
from .activity_log import add_log
from .models import (
    get_session, Student, ConductRecord, SeatAssignment, Gender, AcademicRank
)


def parse_gender(value) -> Gender:
    """Accept a Gender, its name or its value (case-insensitive)."""
    if isinstance(value, Gender):
        return value
    text = str(value).strip().lower()
    for gender in Gender:
        if text in (gender.value, gender.name.lower()):
            return gender
    if text in ("m", "boy"):
        return Gender.MALE
    if text in ("f", "girl"):
        return Gender.FEMALE
    raise ValueError(f"Unknown gender: {value!r}")


def parse_rank(value) -> AcademicRank:
    """Accept an AcademicRank, its name or its value (case-insensitive)."""
    if isinstance(value, AcademicRank):
        return value
    text = str(value).strip().lower()
    for rank in AcademicRank:
        if text in (rank.value, rank.name.lower()):
            return rank
    if text == "average":
        return AcademicRank.PASS
    raise ValueError(f"Unknown academic rank: {value!r}")


def parse_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "y", "x")


def next_student_id(session) -> str:
    """Next free id of the form STU-<n>."""
    highest = 0
    for (sid,) in session.query(Student.id).all():
        if sid.startswith("STU-") and sid[4:].isdigit():
            highest = max(highest, int(sid[4:]))
    return f"STU-{highest + 1}"


def student_to_dict(student: Student) -> dict:
    return {
        "id": student.id,
        "name": student.name,
        "gender": student.gender,
        "rank": student.rank,
        "is_talkative": bool(student.is_talkative)
    }


# ============================================================================
# Student management
# ============================================================================

def add_student(
    name: str,
    gender="male",
    rank="pass",
    is_talkative: bool = False,
    student_id: Optional[str] = None
) -> Student:
    """Add a student manually."""
    name = (name or "").strip()
    if not name:
        raise ValueError("Student name is required")

    gender = parse_gender(gender)
    rank = parse_rank(rank)

    session = get_session()

    if student_id:
        existing = session.get(Student, student_id)
        if existing:
            session.close()
            raise ValueError(f"Student {student_id} already exists: {existing.name}")
    else:
        student_id = next_student_id(session)

    student = Student(
        id=student_id,
        name=name,
        gender=gender.value,
        rank=rank.value,
        is_talkative=bool(is_talkative)
    )
    session.add(student)
    session.commit()
    session.close()

    add_log("DATA", f"Added student {name} ({student_id})")
    return student


def update_student(student_id: str, **fields) -> Student:
    """
    Update a student's name, gender, rank or talkative flag.

    Unknown field names raise ValueError.
    """
    allowed = {"name", "gender", "rank", "is_talkative"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    session = get_session()
    try:
        student = session.get(Student, student_id)
        if not student:
            raise ValueError(f"Student {student_id} not found")

        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise ValueError("Student name is required")
            student.name = name
        if "gender" in fields:
            student.gender = parse_gender(fields["gender"]).value
        if "rank" in fields:
            student.rank = parse_rank(fields["rank"]).value
        if "is_talkative" in fields:
            student.is_talkative = parse_flag(fields["is_talkative"])

        session.commit()
    finally:
        session.close()

    add_log("DATA", f"Updated student {student.name} ({student_id})")
    return student


def remove_student(student_id: str) -> bool:
    """Remove a student, their conduct records and their seat."""
    session = get_session()

    student = session.get(Student, student_id)
    if not student:
        print(f"Student {student_id} not found")
        session.close()
        return False

    name = student.name
    session.query(SeatAssignment).filter_by(student_id=student_id).update({"student_id": None})
    session.delete(student)
    session.commit()
    session.close()

    add_log("DATA", f"Removed student {name} ({student_id})")
    return True


def list_students(search: Optional[str] = None) -> list[dict]:
    """List all students, optionally filtered by search term."""
    session = get_session()

    query = session.query(Student)
    if search:
        query = query.filter(Student.name.ilike(f"%{search}%"))

    students = query.order_by(Student.name).all()

    result = []
    for s in students:
        data = student_to_dict(s)
        data["conduct_weeks"] = len(s.conduct_records)
        result.append(data)

    session.close()
    return result


def import_students_csv(filepath: str) -> int:
    """
    Import students from CSV file.

    Expected columns: name, gender, rank
    Optional columns: id, talkative
    """
    if not os.path.exists(filepath):
        print(f"File not found: {filepath}")
        return 0

    session = get_session()
    imported = 0
    errors = []

    with open(filepath, "r", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)

        for row_num, row in enumerate(reader, start=2):
            name = (row.get("name") or "").strip()
            if not name:
                continue

            try:
                gender = parse_gender(row.get("gender", ""))
                rank = parse_rank(row.get("rank", "pass") or "pass")
            except ValueError as e:
                errors.append(f"Row {row_num}: {e}")
                continue

            student_id = (row.get("id") or "").strip()
            if student_id:
                # Check for duplicates
                if session.get(Student, student_id):
                    errors.append(f"Row {row_num}: Student {student_id} already exists")
                    continue
            else:
                session.flush()
                student_id = next_student_id(session)

            session.add(Student(
                id=student_id,
                name=name,
                gender=gender.value,
                rank=rank.value,
                is_talkative=parse_flag(row.get("talkative"))
            ))
            session.flush()
            imported += 1

    session.commit()
    session.close()

    print(f"Imported {imported} students from {filepath}")
    if errors:
        print(f"Errors ({len(errors)}):")
        for err in errors[:10]:
            print(f"  - {err}")

    add_log("DATA", f"Imported {imported} students from {os.path.basename(filepath)}")
    return imported


# ============================================================================
# Demo data
# ============================================================================

def seed_demo_data(weeks: int = 4, seed: Optional[int] = None) -> int:
    """
    Replace the roster with 40 demo students and a few weeks of conduct.

    The first 10 students are GOOD, the next 15 FAIR, the next 10 PASS and
    the rest FAIL. Genders alternate and every fifth student is talkative.
    """
    rng = random.Random(seed)
    session = get_session()

    session.query(ConductRecord).delete()
    session.query(SeatAssignment).delete()
    session.query(Student).delete()

    for i in range(40):
        if i < 10:
            rank = AcademicRank.GOOD
        elif i < 25:
            rank = AcademicRank.FAIR
        elif i < 35:
            rank = AcademicRank.PASS
        else:
            rank = AcademicRank.FAIL

        student_id = f"STU-{i + 1}"
        session.add(Student(
            id=student_id,
            name=f"Student {i + 1}",
            gender=(Gender.MALE if i % 2 == 0 else Gender.FEMALE).value,
            rank=rank.value,
            is_talkative=(i % 5 == 0)
        ))

        for week in range(1, weeks + 1):
            good_week = rng.random() > 0.3
            score = rng.randint(80, 99) if good_week else rng.randint(40, 79)
            session.add(ConductRecord(
                student_id=student_id,
                week=week,
                score=score,
                violations=["Talking in class", "Homework not done"] if score < 80 else [],
                positive_behaviors=["Contributed to the lesson"] if score >= 90 else []
            ))

    session.commit()
    session.close()

    add_log("SYSTEM", f"Seeded demo data: 40 students, {weeks} weeks of conduct")
    return 40
