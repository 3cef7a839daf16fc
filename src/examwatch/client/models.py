"""Data models for the examwatch client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass
class StudentRecord:
    """A student as returned by the API."""

    id: str
    name: str
    exam: str
    status: str
    time_elapsed: str
    risk_score: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StudentRecord:
        """Build from a camelCase API payload."""
        return cls(
            id=data["id"],
            name=data["name"],
            exam=data["exam"],
            status=data["status"],
            time_elapsed=data["timeElapsed"],
            risk_score=data["riskScore"],
            created_at=_parse_datetime(data.get("createdAt")),
            updated_at=_parse_datetime(data.get("updatedAt")),
        )


@dataclass
class ActivityRecord:
    """An activity event as returned by the API.

    student_name and exam are only filled by the all-events listing.
    """

    id: str
    student_id: str
    timestamp: datetime
    type: str
    details: str | None
    risk_score: int
    student_name: str | None = None
    exam: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ActivityRecord:
        """Build from a camelCase API payload."""
        return cls(
            id=data["id"],
            student_id=data["studentId"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            type=data["type"],
            details=data.get("details"),
            risk_score=data["riskScore"],
            student_name=data.get("studentName"),
            exam=data.get("exam"),
        )


@dataclass
class Verification:
    """Outcome of a credential check."""

    valid: bool
    student_id: str | None = None
