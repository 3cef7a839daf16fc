"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from examwatch.student_store import StudentStore

# Global StudentStore instance (initialized on app startup)
_student_store: StudentStore | None = None


def init_student_store(db_path: str = "examwatch.db") -> StudentStore:
    """Initialize the global StudentStore instance."""
    global _student_store  # noqa: PLW0603
    if _student_store is not None:
        _student_store.close()
    _student_store = StudentStore(db_path)
    return _student_store


def close_student_store() -> None:
    """Close the global StudentStore instance."""
    global _student_store  # noqa: PLW0603
    if _student_store is not None:
        _student_store.close()
        _student_store = None


def get_student_store() -> Generator[StudentStore, None, None]:
    """Dependency that provides the StudentStore instance."""
    if _student_store is None:
        raise RuntimeError("StudentStore not initialized. Call init_student_store() first.")
    yield _student_store


# Type alias for dependency injection
StudentStoreDep = Annotated[StudentStore, Depends(get_student_store)]
