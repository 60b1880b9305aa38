"""Shared fixtures: every test gets its own SQLite file."""

import pytest
from class_manager import models
from class_manager.models import AcademicRank, Gender
from class_manager.placement import StudentProfile


@pytest.fixture(autouse=True)
def database(tmp_path):
    engine = models.use_database(f"sqlite:///{tmp_path / 'test.db'}")
    yield engine
    engine.dispose()


def make_student(student_id, gender=Gender.MALE, rank=AcademicRank.PASS, talkative=False):
    return StudentProfile(
        id=student_id,
        name=f"Student {student_id}",
        gender=gender,
        rank=rank,
        is_talkative=talkative
    )


def make_roster(count, good=0, fair=0, talkative=0, start=1):
    """
    count students with alternating genders. The first `good` are GOOD, the
    next `fair` FAIR, the rest PASS; the last `talkative` are talkative.
    """
    roster = []
    for i in range(count):
        if i < good:
            rank = AcademicRank.GOOD
        elif i < good + fair:
            rank = AcademicRank.FAIR
        else:
            rank = AcademicRank.PASS
        roster.append(make_student(
            f"S{start + i}",
            gender=Gender.MALE if i % 2 == 0 else Gender.FEMALE,
            rank=rank,
            talkative=i >= count - talkative
        ))
    return roster
