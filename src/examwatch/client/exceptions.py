"""Custom exceptions for the examwatch client."""


class ClientError(Exception):
    """Base exception for client errors."""


class APIError(ClientError):
    """Request failed: transport error or unexpected HTTP status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(APIError):
    """The requested student does not exist."""


class NotLoggedInError(ClientError):
    """Operation needs a verified exam session."""
