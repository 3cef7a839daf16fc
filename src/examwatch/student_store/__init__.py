"""Student Store - Persistent storage for students and their activity events."""

from examwatch.risk import StudentStatus
from examwatch.student_store.exceptions import StudentNotFoundError, StudentStoreError
from examwatch.student_store.models import (
    ActivityEvent,
    ActivityEventView,
    CredentialCheck,
    Student,
)
from examwatch.student_store.store import StudentStore

__all__ = [
    "ActivityEvent",
    "ActivityEventView",
    "CredentialCheck",
    "Student",
    "StudentNotFoundError",
    "StudentStatus",
    "StudentStore",
    "StudentStoreError",
]
