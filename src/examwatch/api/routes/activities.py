"""Activity event endpoints."""

from fastapi import APIRouter, status

from examwatch.api.dependencies import StudentStoreDep
from examwatch.api.models import (
    ActivityEventCreate,
    ActivityEventResponse,
    ActivityEventWithStudentResponse,
    APIResponse,
    ResetResponse,
    activity_event_to_response,
    activity_event_view_to_response,
)

router = APIRouter(prefix="/activities", tags=["activities"])


@router.post(
    "",
    response_model=APIResponse[ActivityEventResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_activity_event(
    activity: ActivityEventCreate, store: StudentStoreDep
) -> APIResponse[ActivityEventResponse]:
    """Log an activity event for a student."""
    created = store.create_event(
        student_id=activity.student_id,
        type=activity.type,
        timestamp=activity.timestamp,
        details=activity.details,
        risk_score=activity.risk_score,
    )
    return APIResponse(data=activity_event_to_response(created))


@router.get("", response_model=APIResponse[list[ActivityEventWithStudentResponse]])
def list_activity_events(
    store: StudentStoreDep,
) -> APIResponse[list[ActivityEventWithStudentResponse]]:
    """List every activity event with the student's name and exam, newest first."""
    views = store.list_events_with_students()
    return APIResponse(data=[activity_event_view_to_response(v) for v in views])


@router.delete("/reset/all", response_model=APIResponse[ResetResponse])
def reset_activity_events(store: StudentStoreDep) -> APIResponse[ResetResponse]:
    """Delete every activity event."""
    deleted = store.reset_events()
    return APIResponse(data=ResetResponse(deleted=deleted))


@router.get("/student/{student_id}", response_model=APIResponse[list[ActivityEventResponse]])
def list_student_activity_events(
    student_id: str, store: StudentStoreDep
) -> APIResponse[list[ActivityEventResponse]]:
    """List one student's activity events, newest first."""
    events = store.list_events(student_id=student_id)
    return APIResponse(data=[activity_event_to_response(e) for e in events])
