"""Exam session state held by a student's client."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime

_ELAPSED_RE = re.compile(r"^(\d{2,}):([0-5]\d):([0-5]\d)$")

INITIAL_TIME_ELAPSED = "00:00:00"


def format_elapsed(seconds: int) -> str:
    """Format a duration in seconds as HH:MM:SS."""
    if seconds < 0:
        raise ValueError("Elapsed time cannot be negative")
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_elapsed(value: str) -> int:
    """Parse HH:MM:SS into seconds.

    Raises:
        ValueError: If the value is not in HH:MM:SS form
    """
    match = _ELAPSED_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid elapsed time: {value!r}")
    hours, minutes, secs = (int(part) for part in match.groups())
    return hours * 3600 + minutes * 60 + secs


@dataclass
class RecordedEvent:
    """An activity event as seen by the client that detected it."""

    type: str
    timestamp: datetime
    risk_score: int
    details: str | None = None


@dataclass
class ExamSession:
    """Everything a student's client knows about the running exam.

    Passed explicitly to the sync code. Mutators are guarded by a lock because
    the detection code and the sync thread touch the session concurrently.

    Attributes:
        student_id: ID returned by credential verification.
        name: Student name used to log in.
        exam: Exam name, when known.
        started: Whether the exam is in progress.
        time_elapsed: Latest HH:MM:SS value from the exam timer, None until
            the timer first reports.
        risk_score: Risk accumulated from recorded events.
        events: Recorded events, newest first.
        last_sync: When the last successful sync finished.
    """

    student_id: str
    name: str
    exam: str | None = None
    started: bool = False
    time_elapsed: str | None = None
    risk_score: int = 0
    events: list[RecordedEvent] = field(default_factory=list)
    last_sync: datetime | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_time(self, time_elapsed: str) -> None:
        """Buffer the latest timer value; it is sent on the next sync."""
        parse_elapsed(time_elapsed)
        with self._lock:
            self.time_elapsed = time_elapsed

    def record_event(
        self,
        type: str,
        risk: int = 0,
        details: str | None = None,
        timestamp: datetime | None = None,
    ) -> RecordedEvent:
        """Record a detected event and add its risk to the session total.

        Args:
            type: Event category, e.g. "focus-loss"
            risk: Risk points the event adds
            details: Optional free-text details
            timestamp: Detection time. Defaults to now (UTC).

        Returns:
            The event, carrying the session risk score after it was added
        """
        if risk < 0:
            raise ValueError("Event risk cannot be negative")
        with self._lock:
            self.risk_score += risk
            event = RecordedEvent(
                type=type,
                timestamp=timestamp if timestamp is not None else datetime.now(UTC),
                risk_score=self.risk_score,
                details=details,
            )
            self.events.insert(0, event)
            return event

    def snapshot(self) -> tuple[str | None, int]:
        """Consistent (time_elapsed, risk_score) pair for a sync."""
        with self._lock:
            return self.time_elapsed, self.risk_score

    def mark_synced(self, when: datetime | None = None) -> None:
        """Remember when the last successful sync finished."""
        with self._lock:
            self.last_sync = when if when is not None else datetime.now(UTC)

    def clear_events(self) -> None:
        """Forget recorded events. The accumulated risk score is kept."""
        with self._lock:
            self.events.clear()
