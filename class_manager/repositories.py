"""
Repositories over the SQLite store.

Each repository takes an optional session factory so callers (and tests)
can inject their own. The placement engine never touches these; the
seating service loads a roster snapshot, runs the engine and hands the
result back to SeatingRepository.

The static write_* helpers stage changes in a caller-owned session so a
full restore can replace every table in one transaction.
"""

import json
from typing import Callable, Optional
from .config import merge_settings, CLOUD_SYNC_URL
from .models import (
    get_session, Student, ConductRecord, SeatAssignment, SystemConfig
)
from .placement import Seat, StudentProfile


class RosterRepository:
    """Students on the class roster."""

    def __init__(self, session_factory: Callable = get_session):
        self.session_factory = session_factory

    def load_roster(self) -> list[StudentProfile]:
        """Snapshot of the roster for the placement engine."""
        session = self.session_factory()
        students = session.query(Student).order_by(Student.id).all()
        result = [StudentProfile.from_record(s) for s in students]
        session.close()
        return result

    def get(self, student_id: str) -> Optional[Student]:
        session = self.session_factory()
        student = session.get(Student, student_id)
        session.close()
        return student

    def all(self) -> list[Student]:
        session = self.session_factory()
        students = session.query(Student).order_by(Student.id).all()
        session.close()
        return students

    def ids(self) -> set[str]:
        session = self.session_factory()
        result = {sid for (sid,) in session.query(Student.id).all()}
        session.close()
        return result

    @staticmethod
    def write_roster(session, students: list[dict]):
        """Stage a roster replacement in session; the caller commits."""
        keep_ids = [data["id"] for data in students]
        session.query(ConductRecord).filter(
            ConductRecord.student_id.notin_(keep_ids)
        ).delete(synchronize_session=False)
        session.query(Student).delete()
        for data in students:
            session.add(Student(
                id=data["id"],
                name=data["name"],
                gender=data["gender"],
                rank=data["rank"],
                is_talkative=bool(data.get("is_talkative", False))
            ))


class ConductRepository:
    """Weekly conduct records."""

    def __init__(self, session_factory: Callable = get_session):
        self.session_factory = session_factory

    def for_week(self, week: int) -> list[ConductRecord]:
        session = self.session_factory()
        records = session.query(ConductRecord).filter_by(week=week).order_by(
            ConductRecord.student_id
        ).all()
        session.close()
        return records

    def for_student(
        self,
        student_id: str,
        start_week: Optional[int] = None,
        end_week: Optional[int] = None
    ) -> list[ConductRecord]:
        session = self.session_factory()
        query = session.query(ConductRecord).filter_by(student_id=student_id)
        if start_week is not None:
            query = query.filter(ConductRecord.week >= start_week)
        if end_week is not None:
            query = query.filter(ConductRecord.week <= end_week)
        records = query.order_by(ConductRecord.week).all()
        session.close()
        return records

    def in_range(self, start_week: int, end_week: int) -> list[ConductRecord]:
        session = self.session_factory()
        records = session.query(ConductRecord).filter(
            ConductRecord.week >= start_week,
            ConductRecord.week <= end_week
        ).order_by(ConductRecord.week, ConductRecord.student_id).all()
        session.close()
        return records

    def all(self) -> list[ConductRecord]:
        session = self.session_factory()
        records = session.query(ConductRecord).order_by(
            ConductRecord.week, ConductRecord.student_id
        ).all()
        session.close()
        return records

    @staticmethod
    def write_records(session, records: list[dict]):
        session.query(ConductRecord).delete()
        for data in records:
            session.add(ConductRecord(
                student_id=data["student_id"],
                week=data["week"],
                score=data["score"],
                violations=list(data.get("violations") or []),
                positive_behaviors=list(data.get("positive_behaviors") or []),
                note=data.get("note")
            ))


class SeatingRepository:
    """The stored seating chart."""

    def __init__(self, session_factory: Callable = get_session):
        self.session_factory = session_factory

    def load_seats(self) -> list[Seat]:
        """Stored seats in row-major order (empty list when nothing is stored)."""
        session = self.session_factory()
        rows = session.query(SeatAssignment).order_by(
            SeatAssignment.row, SeatAssignment.col
        ).all()
        result = [Seat(row=s.row, col=s.col, student_id=s.student_id) for s in rows]
        session.close()
        return result

    def persist_seats(self, seats: list[Seat]):
        """Replace the stored chart with seats."""
        session = self.session_factory()
        self.write_seats(session, seats)
        session.commit()
        session.close()

    @staticmethod
    def write_seats(session, seats: list[Seat]):
        session.query(SeatAssignment).delete()
        for seat in seats:
            session.add(SeatAssignment(row=seat.row, col=seat.col, student_id=seat.student_id))

    def clear_student(self, student_id: str) -> int:
        """Empty any seat held by student_id."""
        session = self.session_factory()
        count = session.query(SeatAssignment).filter_by(student_id=student_id).update(
            {"student_id": None}
        )
        session.commit()
        session.close()
        return count


class SettingsRepository:
    """Key/value settings in the system_config table."""

    SETTINGS_KEY = "settings"
    CLOUD_URL_KEY = "cloud_sync_url"

    def __init__(self, session_factory: Callable = get_session):
        self.session_factory = session_factory

    def _get_value(self, key: str) -> Optional[str]:
        session = self.session_factory()
        row = session.query(SystemConfig).filter_by(key=key).first()
        value = row.value if row else None
        session.close()
        return value

    def _set_value(self, key: str, value: Optional[str]):
        session = self.session_factory()
        self.write_value(session, key, value)
        session.commit()
        session.close()

    @staticmethod
    def write_value(session, key: str, value: Optional[str]):
        row = session.query(SystemConfig).filter_by(key=key).first()
        if row:
            row.value = value
        else:
            session.add(SystemConfig(key=key, value=value))

    def load_settings(self) -> dict:
        """Stored settings merged over the defaults."""
        stored = self._get_value(self.SETTINGS_KEY)
        return merge_settings(json.loads(stored) if stored else None)

    def save_settings(self, settings: dict):
        self._set_value(self.SETTINGS_KEY, json.dumps(settings))

    def get_cloud_url(self) -> str:
        return self._get_value(self.CLOUD_URL_KEY) or CLOUD_SYNC_URL

    def set_cloud_url(self, url: str):
        self._set_value(self.CLOUD_URL_KEY, url)
