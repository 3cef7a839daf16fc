"""StudentStore - Main API for student and activity event operations."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select

from examwatch.risk import (
    StudentStatus,
    escalate_status,
    is_suppressed_downgrade,
    reconcile_status,
)
from examwatch.student_store.database import Database
from examwatch.student_store.exceptions import StudentNotFoundError
from examwatch.student_store.models import (
    ActivityEvent,
    ActivityEventView,
    CredentialCheck,
    Student,
)
from examwatch.student_store.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


def _to_naive_utc(value: datetime) -> datetime:
    """Normalize a timestamp to the naive UTC form used for storage."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class StudentStore:
    """Main API for Student Store operations.

    Provides CRUD operations for Students and the append-only Activity Event log.
    Every call uses its own session; concurrent updates are last-write-wins.
    """

    def __init__(self, db_path: str = "examwatch.db") -> None:
        """Initialize Student Store with SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- Student Operations ---

    def create_student(self, name: str, exam: str, password: str | None = None) -> Student:
        """Register a new student.

        Args:
            name: Student's display name
            exam: Name of the exam being taken
            password: Login password. The name is used when omitted or empty.

        Returns:
            Created Student, offline with zero risk and no elapsed time
        """
        session = self._db.get_session()
        try:
            student = Student(
                name=name,
                exam=exam,
                password_hash=hash_password(password or name),
            )
            session.add(student)
            session.commit()
            session.refresh(student)
            logger.info("Registered student %s for exam %r", student.student_id, exam)
            return student
        finally:
            session.close()

    def get_student(self, student_id: str) -> Student:
        """Get student by ID.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")
            return student
        finally:
            session.close()

    def list_students(self) -> list[Student]:
        """List all students, most recently registered first."""
        session = self._db.get_session()
        try:
            stmt = select(Student).order_by(Student.created_at.desc())
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def update_status(self, student_id: str, status: StudentStatus) -> Student:
        """Apply a status update, keeping an elevated status over "active".

        Args:
            student_id: The student's unique ID
            status: Requested status

        Returns:
            The updated Student. Its status is unchanged when the request
            would have downgraded flagged/high-risk to active.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            current = student.student_status
            if is_suppressed_downgrade(status, current):
                logger.info(
                    "Ignoring status change to '%s' for %s student %s (%s)",
                    status.value,
                    current.value,
                    student.student_id,
                    student.name,
                )
            student.student_status = reconcile_status(status, current)

            session.commit()
            session.refresh(student)
            return student
        finally:
            session.close()

    def update_risk_score(self, student_id: str, risk_score: int) -> Student:
        """Store a new risk score and escalate the status if it crosses a threshold.

        Args:
            student_id: The student's unique ID
            risk_score: Newly reported score, stored as-is

        Returns:
            The updated Student

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            current = student.student_status
            new_status = escalate_status(risk_score, current)
            if new_status != current:
                logger.info(
                    "Risk score %d escalates student %s from '%s' to '%s'",
                    risk_score,
                    student.student_id,
                    current.value,
                    new_status.value,
                )

            student.risk_score = risk_score
            student.student_status = new_status

            session.commit()
            session.refresh(student)
            return student
        finally:
            session.close()

    def update_time_elapsed(self, student_id: str, time_elapsed: str) -> Student:
        """Store the client-reported elapsed exam time.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            student.time_elapsed = time_elapsed

            session.commit()
            session.refresh(student)
            return student
        finally:
            session.close()

    def verify_credentials(self, name: str, password: str) -> CredentialCheck:
        """Check a name/password pair.

        Names are not unique; candidates are tried newest first and the first
        one whose password matches wins.

        Returns:
            CredentialCheck with valid=True and the student's ID on success
        """
        session = self._db.get_session()
        try:
            stmt = select(Student).where(Student.name == name).order_by(Student.created_at.desc())
            for student in session.execute(stmt).scalars():
                if verify_password(password, student.password_hash):
                    logger.info("Credentials verified for student %s", student.student_id)
                    return CredentialCheck(valid=True, student_id=student.student_id)
            logger.info("Credential verification failed for name %r", name)
            return CredentialCheck(valid=False)
        finally:
            session.close()

    def delete_student(self, student_id: str) -> None:
        """Delete a student. Their activity events are kept.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            session.delete(student)
            session.commit()
        finally:
            session.close()

    def reset_students(self) -> int:
        """Delete every student.

        Returns:
            Number of students deleted
        """
        session = self._db.get_session()
        try:
            result = session.execute(delete(Student))
            session.commit()
            deleted = result.rowcount or 0
            logger.info("Reset student store: deleted %d students", deleted)
            return deleted
        finally:
            session.close()

    # --- Activity Event Operations ---

    def create_event(
        self,
        student_id: str,
        type: str,
        timestamp: datetime | None = None,
        details: str | None = None,
        risk_score: int = 0,
    ) -> ActivityEvent:
        """Append an activity event.

        The student is not required to exist.

        Args:
            student_id: ID of the student the event belongs to
            type: Event category, e.g. "focus-loss" or "copy-attempt"
            timestamp: When the event happened. Defaults to now (UTC).
            details: Optional free-text details
            risk_score: Client-side risk score snapshot at the time of the event

        Returns:
            Created ActivityEvent
        """
        session = self._db.get_session()
        try:
            activity = ActivityEvent(
                student_id=student_id,
                type=type,
                timestamp=_to_naive_utc(timestamp) if timestamp is not None else None,
                details=details,
                risk_score=risk_score,
            )
            session.add(activity)
            session.commit()
            session.refresh(activity)
            logger.debug("Recorded %s event for student %s", type, student_id)
            return activity
        finally:
            session.close()

    def list_events(self, student_id: str | None = None) -> list[ActivityEvent]:
        """List activity events, newest first.

        Args:
            student_id: Filter by student (None = all)
        """
        session = self._db.get_session()
        try:
            stmt = select(ActivityEvent)
            if student_id is not None:
                stmt = stmt.where(ActivityEvent.student_id == student_id)
            stmt = stmt.order_by(ActivityEvent.timestamp.desc(), ActivityEvent.created_at.desc())
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def list_events_with_students(self) -> list[ActivityEventView]:
        """List all activity events with the owning student's name and exam.

        Returns:
            Events newest first; student fields are None for unknown students
        """
        session = self._db.get_session()
        try:
            stmt = (
                select(ActivityEvent, Student.name, Student.exam)
                .outerjoin(Student, Student.student_id == ActivityEvent.student_id)
                .order_by(ActivityEvent.timestamp.desc(), ActivityEvent.created_at.desc())
            )
            return [
                ActivityEventView(
                    id=activity.id,
                    student_id=activity.student_id,
                    timestamp=activity.timestamp,
                    type=activity.type,
                    details=activity.details,
                    risk_score=activity.risk_score,
                    created_at=activity.created_at,
                    student_name=name,
                    exam=exam,
                )
                for activity, name, exam in session.execute(stmt).all()
            ]
        finally:
            session.close()

    def reset_events(self) -> int:
        """Delete every activity event.

        Returns:
            Number of events deleted
        """
        session = self._db.get_session()
        try:
            result = session.execute(delete(ActivityEvent))
            session.commit()
            deleted = result.rowcount or 0
            logger.info("Reset activity log: deleted %d events", deleted)
            return deleted
        finally:
            session.close()
