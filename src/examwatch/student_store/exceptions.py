"""Custom exceptions for the Student Store."""


class StudentStoreError(Exception):
    """Base exception for Student Store errors."""


class StudentNotFoundError(StudentStoreError):
    """Student with given ID does not exist."""
