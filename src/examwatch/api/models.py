"""Pydantic models for REST API.

Request and response bodies use camelCase field names on the wire.
"""

from datetime import UTC, datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from examwatch.risk import StudentStatus

T = TypeVar("T")

# HH:MM:SS, hours may exceed two digits
TIME_ELAPSED_PATTERN = r"^\d{2,}:[0-5]\d:[0-5]\d$"

# Largest value a SQLite INTEGER column holds
MAX_RISK_SCORE = 2**63 - 1


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to the naive timestamps the store keeps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# Serialized with an explicit "Z" offset
UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Student models


class StudentCreate(CamelModel):
    """Request model for registering a student."""

    name: str = Field(..., min_length=1, max_length=255)
    exam: str = Field(..., min_length=1, max_length=255)
    password: str | None = Field(default=None, max_length=255)


class StudentResponse(CamelModel):
    """Response model for a student. The password hash is never exposed."""

    id: str = Field(validation_alias="student_id")
    name: str
    exam: str
    status: StudentStatus
    time_elapsed: str
    risk_score: int
    created_at: UTCDateTime
    updated_at: UTCDateTime


def student_to_response(student: Any) -> StudentResponse:
    """Convert a Student model to StudentResponse."""
    return StudentResponse.model_validate(student)


class StatusUpdate(CamelModel):
    """Request model for PATCH /students/{id}/status."""

    status: StudentStatus


class RiskScoreUpdate(CamelModel):
    """Request model for PATCH /students/{id}/risk-score."""

    risk_score: int = Field(..., ge=0, le=MAX_RISK_SCORE)


class TimeElapsedUpdate(CamelModel):
    """Request model for PATCH /students/{id}/time-elapsed."""

    time_elapsed: str = Field(..., pattern=TIME_ELAPSED_PATTERN)


class VerifyRequest(CamelModel):
    """Request model for credential verification."""

    name: str
    password: str


class VerifyResponse(CamelModel):
    """Result of credential verification."""

    valid: bool
    student_id: str | None = None


class ResetResponse(CamelModel):
    """Result of a bulk reset."""

    deleted: int


# Activity event models


class ActivityEventCreate(CamelModel):
    """Request model for logging an activity event."""

    student_id: str = Field(..., min_length=1, max_length=36)
    type: str = Field(..., min_length=1, max_length=50)
    timestamp: datetime | None = None
    details: str | None = None
    risk_score: int = Field(default=0, ge=0, le=MAX_RISK_SCORE)


class ActivityEventResponse(CamelModel):
    """Response model for an activity event."""

    id: str
    student_id: str
    timestamp: UTCDateTime
    type: str
    details: str | None
    risk_score: int
    created_at: UTCDateTime


def activity_event_to_response(activity: Any) -> ActivityEventResponse:
    """Convert an ActivityEvent model to ActivityEventResponse."""
    return ActivityEventResponse.model_validate(activity)


class ActivityEventWithStudentResponse(ActivityEventResponse):
    """Activity event with the owning student's name and exam."""

    student_name: str | None
    exam: str | None


def activity_event_view_to_response(view: Any) -> ActivityEventWithStudentResponse:
    """Convert an ActivityEventView to ActivityEventWithStudentResponse."""
    return ActivityEventWithStudentResponse.model_validate(view)
