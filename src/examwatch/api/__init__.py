"""REST API for examwatch."""

from examwatch.api.app import app, create_app
from examwatch.api.models import (
    APIResponse,
    StudentCreate,
    StudentResponse,
)

__all__ = [
    "APIResponse",
    "StudentCreate",
    "StudentResponse",
    "app",
    "create_app",
]
