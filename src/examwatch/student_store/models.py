"""SQLAlchemy models for the Student Store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from examwatch.risk.models import StudentStatus

INITIAL_TIME_ELAPSED = "00:00:00"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form SQLite stores."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Student(Base):
    """Student model - one record per registered exam taker."""

    __tablename__ = "students"

    student_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    exam: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    time_elapsed: Mapped[str] = mapped_column(String(20), nullable=False)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __init__(
        self,
        name: str,
        exam: str,
        password_hash: str,
        student_id: str | None = None,
        status: str | None = None,
        time_elapsed: str = INITIAL_TIME_ELAPSED,
        risk_score: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.student_id = student_id if student_id is not None else generate_uuid()
        self.name = name
        self.exam = exam
        self.password_hash = password_hash
        self.status = status if status is not None else StudentStatus.OFFLINE.value
        self.time_elapsed = time_elapsed
        self.risk_score = risk_score

    @property
    def student_status(self) -> StudentStatus:
        """Get status as StudentStatus enum."""
        return StudentStatus(self.status)

    @student_status.setter
    def student_status(self, value: StudentStatus) -> None:
        """Set status from StudentStatus enum."""
        self.status = value.value

    def __repr__(self) -> str:
        return (
            f"<Student(student_id={self.student_id!r}, name={self.name!r}, "
            f"status={self.status!r})>"
        )


class ActivityEvent(Base):
    """Activity event model - append-only log of suspicious activity.

    student_id is a logical reference only; events outlive deleted students.
    """

    __tablename__ = "activity_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __init__(
        self,
        student_id: str,
        type: str,
        timestamp: datetime | None = None,
        id: str | None = None,
        details: str | None = None,
        risk_score: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.type = type
        self.timestamp = timestamp if timestamp is not None else utcnow()
        self.details = details
        self.risk_score = risk_score

    def __repr__(self) -> str:
        return (
            f"<ActivityEvent(id={self.id!r}, student_id={self.student_id!r}, type={self.type!r})>"
        )


@dataclass
class CredentialCheck:
    """Outcome of a name/password verification."""

    valid: bool
    student_id: str | None = None


@dataclass
class ActivityEventView:
    """An activity event together with the owning student's details.

    student_name and exam are None when the student no longer exists.
    """

    id: str
    student_id: str
    timestamp: datetime
    type: str
    details: str | None
    risk_score: int
    created_at: datetime
    student_name: str | None
    exam: str | None
