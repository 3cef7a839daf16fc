"""Student endpoints: registration, status/risk/time updates, verification, reset."""

from fastapi import APIRouter, status

from examwatch.api.dependencies import StudentStoreDep
from examwatch.api.models import (
    APIResponse,
    ResetResponse,
    RiskScoreUpdate,
    StatusUpdate,
    StudentCreate,
    StudentResponse,
    TimeElapsedUpdate,
    VerifyRequest,
    VerifyResponse,
    student_to_response,
)

router = APIRouter(prefix="/students", tags=["students"])


@router.post(
    "",
    response_model=APIResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_student(student: StudentCreate, store: StudentStoreDep) -> APIResponse[StudentResponse]:
    """Register a new student."""
    created = store.create_student(
        name=student.name,
        exam=student.exam,
        password=student.password,
    )
    return APIResponse(data=student_to_response(created))


@router.get("", response_model=APIResponse[list[StudentResponse]])
def list_students(store: StudentStoreDep) -> APIResponse[list[StudentResponse]]:
    """List all students, newest first."""
    students = store.list_students()
    return APIResponse(data=[student_to_response(s) for s in students])


@router.post("/verify", response_model=APIResponse[VerifyResponse])
def verify_credentials(
    credentials: VerifyRequest, store: StudentStoreDep
) -> APIResponse[VerifyResponse]:
    """Check a name/password pair. A mismatch is a normal, valid=false response."""
    result = store.verify_credentials(credentials.name, credentials.password)
    return APIResponse(data=VerifyResponse(valid=result.valid, student_id=result.student_id))


# Registered before DELETE /{student_id} so "reset" is not taken for an ID
@router.delete("/reset/all", response_model=APIResponse[ResetResponse])
def reset_students(store: StudentStoreDep) -> APIResponse[ResetResponse]:
    """Delete every student."""
    deleted = store.reset_students()
    return APIResponse(data=ResetResponse(deleted=deleted))


@router.get("/{student_id}", response_model=APIResponse[StudentResponse])
def get_student(student_id: str, store: StudentStoreDep) -> APIResponse[StudentResponse]:
    """Get a student by ID."""
    student = store.get_student(student_id)
    return APIResponse(data=student_to_response(student))


@router.patch("/{student_id}/status", response_model=APIResponse[StudentResponse])
def update_status(
    student_id: str, update: StatusUpdate, store: StudentStoreDep
) -> APIResponse[StudentResponse]:
    """Update a student's status. flagged/high-risk students stay so on "active"."""
    student = store.update_status(student_id, update.status)
    return APIResponse(data=student_to_response(student))


@router.patch("/{student_id}/risk-score", response_model=APIResponse[StudentResponse])
def update_risk_score(
    student_id: str, update: RiskScoreUpdate, store: StudentStoreDep
) -> APIResponse[StudentResponse]:
    """Update a student's risk score, escalating status at 50 and 80."""
    student = store.update_risk_score(student_id, update.risk_score)
    return APIResponse(data=student_to_response(student))


@router.patch("/{student_id}/time-elapsed", response_model=APIResponse[StudentResponse])
def update_time_elapsed(
    student_id: str, update: TimeElapsedUpdate, store: StudentStoreDep
) -> APIResponse[StudentResponse]:
    """Update the elapsed exam time reported by the student's client."""
    student = store.update_time_elapsed(student_id, update.time_elapsed)
    return APIResponse(data=student_to_response(student))


@router.delete("/{student_id}", response_model=APIResponse[None])
def delete_student(student_id: str, store: StudentStoreDep) -> APIResponse[None]:
    """Delete a student."""
    store.delete_student(student_id)
    return APIResponse(data=None)
