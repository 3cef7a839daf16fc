"""Student and admin sides of the polling client.

StudentSync keeps the server up to date with one student's exam session.
AdminMonitor keeps a local snapshot of every student and event.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from examwatch.client.exceptions import ClientError, NotLoggedInError
from examwatch.client.poller import PullScheduler
from examwatch.client.session import INITIAL_TIME_ELAPSED, ExamSession, RecordedEvent
from examwatch.risk import ELEVATED_STATUSES, StudentStatus

if TYPE_CHECKING:
    from examwatch.client.client import ProctorClient
    from examwatch.client.models import ActivityRecord, StudentRecord

logger = logging.getLogger(__name__)

SYNC_JOB = "student-sync"
STUDENTS_JOB = "admin-students"
EVENTS_JOB = "admin-events"

# Risk distribution bucket bounds for active students
LOW_RISK_LIMIT = 30
MEDIUM_RISK_LIMIT = 70


class StudentSync:
    """Drives a student's exam session against the API.

    Writes made on behalf of the student (status changes, event logging,
    periodic sync) are best effort: failures are logged and the exam goes on.
    """

    def __init__(self, client: ProctorClient, scheduler: PullScheduler | None = None) -> None:
        """Initialize the sync.

        Args:
            client: API client.
            scheduler: Scheduler for the periodic sync job. A default one
                (5s interval, 10% jitter) is created when omitted.
        """
        self.client = client
        self.scheduler = scheduler if scheduler is not None else PullScheduler()
        self.session: ExamSession | None = None
        self._sync_job = self.scheduler.add_job(SYNC_JOB, self.sync)

    def _require_session(self) -> ExamSession:
        if self.session is None:
            raise NotLoggedInError("No exam session; call login() first")
        return self.session

    def login(self, name: str, password: str) -> ExamSession | None:
        """Verify credentials and open an exam session.

        Returns:
            The new session, or None if the credentials are wrong.
        """
        result = self.client.verify_credentials(name, password)
        if not result.valid or result.student_id is None:
            logger.info("Login rejected for %r", name)
            return None
        self.session = ExamSession(student_id=result.student_id, name=name)
        try:
            self.session.exam = self.client.get_student(result.student_id).exam
        except ClientError as e:
            logger.warning("Could not load exam for student %s: %s", result.student_id, e)
        logger.info("Logged in as student %s", result.student_id)
        return self.session

    def start_exam(self) -> None:
        """Mark the student active and start periodic sync."""
        session = self._require_session()
        session.started = True
        try:
            self.client.update_status(session.student_id, StudentStatus.ACTIVE)
        except ClientError as e:
            logger.error("Failed to update start status for %s: %s", session.student_id, e)
        self.scheduler.start(run_immediately=False)

    def end_exam(self) -> None:
        """Stop periodic sync and mark the student offline."""
        session = self._require_session()
        session.started = False
        self.scheduler.stop()
        try:
            self.client.update_status(session.student_id, StudentStatus.OFFLINE)
        except ClientError as e:
            logger.error("Failed to update end status for %s: %s", session.student_id, e)

    def record_time(self, time_elapsed: str) -> None:
        """Buffer the exam timer value for the next sync."""
        self._require_session().record_time(time_elapsed)

    def record_event(self, type: str, risk: int = 0, details: str | None = None) -> RecordedEvent:
        """Record a detected event locally and forward it to the API.

        Returns:
            The recorded event, even if forwarding failed
        """
        session = self._require_session()
        event = session.record_event(type, risk=risk, details=details)
        try:
            self.client.create_activity_event(
                student_id=session.student_id,
                type=event.type,
                timestamp=event.timestamp,
                details=event.details,
                risk_score=event.risk_score,
            )
        except ClientError as e:
            logger.error("Failed to log %s event to API: %s", type, e)
        return event

    def sync(self) -> bool:
        """Push risk score and elapsed time, once the timer has reported.

        Runs on the scheduler thread; exceptions propagate to the scheduler,
        which logs and counts them.

        Returns:
            True if anything was sent
        """
        session = self.session
        if session is None or not session.started:
            return False
        time_elapsed, risk_score = session.snapshot()
        if time_elapsed is None:
            return False

        self.client.update_risk_score(session.student_id, risk_score)
        self.client.update_time_elapsed(session.student_id, time_elapsed)
        session.mark_synced()
        logger.debug(
            "Synced student %s: risk=%d time=%s", session.student_id, risk_score, time_elapsed
        )
        return True

    def force_sync(self) -> bool:
        """Push elapsed time and risk score now.

        Time defaults to 00:00:00 if the timer has not reported yet. Shares the
        periodic sync job's in-flight lock, so it never overlaps a running sync.

        Returns:
            True if sent, False if a periodic sync was already in flight

        Raises:
            ClientError: If a request fails
        """
        session = self._require_session()
        with self._sync_job.exclusive() as acquired:
            if not acquired:
                logger.info("Sync already in flight for %s, skipping", session.student_id)
                return False
            time_elapsed, risk_score = session.snapshot()
            self.client.update_time_elapsed(
                session.student_id, time_elapsed or INITIAL_TIME_ELAPSED
            )
            self.client.update_risk_score(session.student_id, risk_score)
            session.mark_synced()
        return True


@dataclass
class DashboardStats:
    """Figures shown on the admin dashboard.

    Attributes:
        active_students: Students whose status is active.
        average_risk_score: Mean risk over students with a positive score.
        flagged_sessions: Students that are flagged or high-risk.
        total_sessions: All students.
    """

    active_students: int = 0
    average_risk_score: float = 0.0
    flagged_sessions: int = 0
    total_sessions: int = 0

    @classmethod
    def from_students(cls, students: list[StudentRecord]) -> DashboardStats:
        """Compute stats from a student list."""
        at_risk = [s.risk_score for s in students if s.risk_score > 0]
        return cls(
            active_students=sum(1 for s in students if s.status == StudentStatus.ACTIVE),
            average_risk_score=sum(at_risk) / len(at_risk) if at_risk else 0.0,
            flagged_sessions=sum(1 for s in students if s.status in ELEVATED_STATUSES),
            total_sessions=len(students),
        )


@dataclass
class RiskDistribution:
    """Students bucketed by risk for the admin dashboard chart.

    Attributes:
        low: Active students scoring under 30.
        medium: Active students scoring 30 to 69.
        high: Students that are flagged or high-risk, whatever their score.
    """

    low: int = 0
    medium: int = 0
    high: int = 0

    @classmethod
    def from_students(cls, students: list[StudentRecord]) -> RiskDistribution:
        """Bucket a student list. Offline students with a normal status are not counted."""
        active = [s.risk_score for s in students if s.status == StudentStatus.ACTIVE]
        return cls(
            low=sum(1 for score in active if score < LOW_RISK_LIMIT),
            medium=sum(1 for score in active if LOW_RISK_LIMIT <= score < MEDIUM_RISK_LIMIT),
            high=sum(1 for s in students if s.status in ELEVATED_STATUSES),
        )


@dataclass
class MonitorSnapshot:
    """Latest data pulled by the admin monitor.

    Attributes:
        students: Last successfully fetched student list.
        events: Last successfully fetched event list.
        updated_at: When the student list was last refreshed.
        students_error: Error from the last student poll, None once it succeeds.
        events_error: Error from the last event poll, None once it succeeds.
    """

    students: list[StudentRecord] = field(default_factory=list)
    events: list[ActivityRecord] = field(default_factory=list)
    updated_at: datetime | None = None
    students_error: str | None = None
    events_error: str | None = None

    @property
    def last_error(self) -> str | None:
        """Outstanding poll errors, None only when every poll last succeeded."""
        errors = [e for e in (self.students_error, self.events_error) if e is not None]
        return "; ".join(errors) if errors else None

    @property
    def stats(self) -> DashboardStats:
        """Dashboard stats for the current student list."""
        return DashboardStats.from_students(self.students)

    @property
    def risk_distribution(self) -> RiskDistribution:
        """Risk buckets for the current student list."""
        return RiskDistribution.from_students(self.students)


class AdminMonitor:
    """Polls students and activity events for the admin dashboard.

    A failed poll keeps the previous data and records the error on the
    snapshot; no placeholder data is ever substituted.
    """

    def __init__(self, client: ProctorClient, scheduler: PullScheduler | None = None) -> None:
        """Initialize the monitor.

        Args:
            client: API client.
            scheduler: Scheduler for the poll jobs. A default one is created when omitted.
        """
        self.client = client
        self.scheduler = scheduler if scheduler is not None else PullScheduler()
        self.snapshot = MonitorSnapshot()
        self._lock = threading.Lock()
        self.scheduler.add_job(STUDENTS_JOB, self.refresh_students)
        self.scheduler.add_job(EVENTS_JOB, self.refresh_events)

    def start(self) -> None:
        """Poll immediately, then on every interval."""
        self.scheduler.start(run_immediately=True)

    def stop(self) -> None:
        """Stop polling."""
        self.scheduler.stop()

    def refresh_students(self) -> None:
        """Fetch the student list into the snapshot.

        Raises:
            ClientError: If the fetch fails (after recording it in the snapshot)
        """
        try:
            students = self.client.list_students()
        except ClientError as e:
            with self._lock:
                self.snapshot.students_error = str(e)
            raise
        with self._lock:
            self.snapshot.students = students
            self.snapshot.updated_at = datetime.now(UTC)
            self.snapshot.students_error = None

    def refresh_events(self) -> None:
        """Fetch all activity events into the snapshot.

        Raises:
            ClientError: If the fetch fails (after recording it in the snapshot)
        """
        try:
            events = self.client.list_activity_events()
        except ClientError as e:
            with self._lock:
                self.snapshot.events_error = str(e)
            raise
        with self._lock:
            self.snapshot.events = events
            self.snapshot.events_error = None

    def stats(self) -> DashboardStats:
        """Dashboard stats for the latest student list."""
        with self._lock:
            return self.snapshot.stats

    def risk_distribution(self) -> RiskDistribution:
        """Risk buckets for the latest student list."""
        with self._lock:
            return self.snapshot.risk_distribution
