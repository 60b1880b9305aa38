"""
Database models for the classroom tools.

Uses SQLAlchemy with SQLite for simple, file-based persistence.
"""

import enum
from datetime import datetime
from sqlalchemy import (
    create_engine, Column, Integer, String, Text, DateTime, Boolean,
    ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from .config import DB_PATH

# Database setup
engine = create_engine(f"sqlite:///{DB_PATH}", echo=False)
Session = sessionmaker(bind=engine, expire_on_commit=False)
Base = declarative_base()


class Gender(enum.Enum):
    """Student gender as recorded on the roster."""
    MALE = "male"
    FEMALE = "female"


class AcademicRank(enum.Enum):
    """Academic performance rank, best first."""
    GOOD = "good"
    FAIR = "fair"
    PASS = "pass"
    FAIL = "fail"


class Student(Base):
    """Student record."""
    __tablename__ = "students"

    id = Column(String(50), primary_key=True)
    name = Column(String(200), nullable=False)
    gender = Column(String(10), nullable=False, default=Gender.MALE.value)
    rank = Column(String(10), nullable=False, default=AcademicRank.PASS.value)
    is_talkative = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    conduct_records = relationship(
        "ConductRecord", back_populates="student", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Student(id='{self.id}', name='{self.name}')>"


class ConductRecord(Base):
    """One week of conduct scoring for a student."""
    __tablename__ = "conduct_records"
    __table_args__ = (UniqueConstraint("student_id", "week"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(50), ForeignKey("students.id"), nullable=False)
    week = Column(Integer, nullable=False)

    score = Column(Integer, nullable=False, default=100)  # 0-100
    violations = Column(JSON, default=list)  # List of violation labels
    positive_behaviors = Column(JSON, default=list)  # List of positive behavior labels
    note = Column(Text, nullable=True)  # Teacher's custom note

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    student = relationship("Student", back_populates="conduct_records")

    def __repr__(self):
        return f"<ConductRecord(student_id='{self.student_id}', week={self.week}, score={self.score})>"


class SeatAssignment(Base):
    """A seat on the stored seating chart. student_id is null for an empty seat."""
    __tablename__ = "seat_assignments"

    row = Column(Integer, primary_key=True)
    col = Column(Integer, primary_key=True)
    student_id = Column(String(50), nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SeatAssignment(row={self.row}, col={self.col}, student_id={self.student_id!r})>"


class SystemConfig(Base):
    """System configuration and settings."""
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SystemConfig(key='{self.key}')>"


class ActivityLog(Base):
    """Work log entry (data changes, seating runs, sync attempts)."""
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
    action = Column(String(30), nullable=False)  # DATA, SEATING, CONDUCT, CONFIG, SYSTEM, CLOUD...
    details = Column(Text, nullable=True)

    def __repr__(self):
        return f"<ActivityLog(action='{self.action}', timestamp='{self.timestamp}')>"


def init_db():
    """Initialize the database, creating all tables."""
    Base.metadata.create_all(engine)
    print(f"Database initialized at: {engine.url.database}")


def use_database(url: str):
    """Point the session factory at another database and create its tables."""
    global engine
    engine = create_engine(url, echo=False)
    Session.configure(bind=engine)
    Base.metadata.create_all(engine)
    return engine


def get_session():
    """Get a new database session."""
    return Session()


if __name__ == "__main__":
    init_db()
