"""ProctorClient - HTTP client for the examwatch REST API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx

from examwatch.client.exceptions import APIError, NotFoundError
from examwatch.client.models import ActivityRecord, StudentRecord, Verification
from examwatch.logging import sanitize_for_log

if TYPE_CHECKING:
    from examwatch.config import ClientConfig

logger = logging.getLogger(__name__)


class ProctorClient:
    """Client for the examwatch REST API.

    One method per endpoint. Responses are unwrapped from the
    {"data": ..., "error": ...} envelope.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000/api",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the API, including the /api prefix
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (e.g. a TestClient). When given,
                paths are resolved against base_url but the client is not owned.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: ClientConfig) -> ProctorClient:
        """Create a client for the API configured under `client.base_url`."""
        return cls(base_url=config.base_url)

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> ProctorClient:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Send a request and return the unwrapped data.

        Raises:
            NotFoundError: On HTTP 404
            APIError: On any other non-2xx status, a transport failure or a body
                that is not the JSON envelope
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.client.request(method, url, json=json)
        except httpx.HTTPError as e:
            raise APIError(f"{method} {path} failed: {e}") from e

        logger.debug("%s %s -> %d", method, path, response.status_code)

        if response.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found", status_code=404)
        if response.status_code >= 400:
            detail = sanitize_for_log(response.text)
            raise APIError(
                f"{method} {path} failed: {response.status_code} - {detail}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise APIError(
                f"{method} {path}: response is not JSON", status_code=response.status_code
            ) from e
        if not isinstance(body, dict) or "data" not in body:
            raise APIError(f"{method} {path}: unexpected response body")
        return body["data"]

    # --- Students ---

    def create_student(self, name: str, exam: str, password: str | None = None) -> StudentRecord:
        """Register a student."""
        payload: dict[str, Any] = {"name": name, "exam": exam}
        if password is not None:
            payload["password"] = password
        return StudentRecord.from_api(self._request("POST", "/students", json=payload))

    def list_students(self) -> list[StudentRecord]:
        """List all students, newest first."""
        return [StudentRecord.from_api(s) for s in self._request("GET", "/students")]

    def get_student(self, student_id: str) -> StudentRecord:
        """Get one student."""
        return StudentRecord.from_api(self._request("GET", f"/students/{student_id}"))

    def update_status(self, student_id: str, status: str) -> StudentRecord:
        """Request a status change. The server may keep an elevated status."""
        data = self._request("PATCH", f"/students/{student_id}/status", json={"status": status})
        return StudentRecord.from_api(data)

    def update_risk_score(self, student_id: str, risk_score: int) -> StudentRecord:
        """Report the current risk score."""
        data = self._request(
            "PATCH", f"/students/{student_id}/risk-score", json={"riskScore": risk_score}
        )
        return StudentRecord.from_api(data)

    def update_time_elapsed(self, student_id: str, time_elapsed: str) -> StudentRecord:
        """Report elapsed exam time as HH:MM:SS."""
        data = self._request(
            "PATCH",
            f"/students/{student_id}/time-elapsed",
            json={"timeElapsed": time_elapsed},
        )
        return StudentRecord.from_api(data)

    def verify_credentials(self, name: str, password: str) -> Verification:
        """Check a name/password pair."""
        data = self._request(
            "POST", "/students/verify", json={"name": name, "password": password}
        )
        return Verification(valid=data["valid"], student_id=data.get("studentId"))

    def delete_student(self, student_id: str) -> None:
        """Delete one student."""
        self._request("DELETE", f"/students/{student_id}")

    def reset_students(self) -> int:
        """Delete all students. Returns the number deleted."""
        return int(self._request("DELETE", "/students/reset/all")["deleted"])

    # --- Activity events ---

    def create_activity_event(
        self,
        student_id: str,
        type: str,
        timestamp: datetime | None = None,
        details: str | None = None,
        risk_score: int = 0,
    ) -> ActivityRecord:
        """Log an activity event."""
        payload: dict[str, Any] = {
            "studentId": student_id,
            "type": type,
            "riskScore": risk_score,
        }
        if timestamp is not None:
            payload["timestamp"] = timestamp.isoformat()
        if details is not None:
            payload["details"] = details
        return ActivityRecord.from_api(self._request("POST", "/activities", json=payload))

    def list_student_activity_events(self, student_id: str) -> list[ActivityRecord]:
        """List one student's events, newest first."""
        data = self._request("GET", f"/activities/student/{student_id}")
        return [ActivityRecord.from_api(e) for e in data]

    def list_activity_events(self) -> list[ActivityRecord]:
        """List all events with student name and exam, newest first."""
        return [ActivityRecord.from_api(e) for e in self._request("GET", "/activities")]

    def reset_activity_events(self) -> int:
        """Delete all activity events. Returns the number deleted."""
        return int(self._request("DELETE", "/activities/reset/all")["deleted"])
