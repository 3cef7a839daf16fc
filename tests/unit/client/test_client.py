"""Unit tests for ProctorClient."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import httpx
import pytest

from examwatch.client import APIError, NotFoundError, ProctorClient
from examwatch.config import ClientConfig

STUDENT_PAYLOAD = {
    "id": "s-1",
    "name": "Ada",
    "exam": "Algebra",
    "status": "active",
    "timeElapsed": "00:10:00",
    "riskScore": 20,
    "createdAt": "2026-05-01T09:00:00",
    "updatedAt": "2026-05-01T09:10:00",
}

EVENT_PAYLOAD = {
    "id": "e-1",
    "studentId": "s-1",
    "timestamp": "2026-05-01T09:05:00",
    "type": "focus-loss",
    "details": None,
    "riskScore": 5,
    "createdAt": "2026-05-01T09:05:01",
}


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock HTTP client."""
    return MagicMock()


@pytest.fixture
def proctor(mock_client: MagicMock) -> ProctorClient:
    """Create a ProctorClient with a mocked HTTP client."""
    client = ProctorClient(base_url="http://proctor.test/api/")
    client._client = mock_client
    return client


def _mock_response(data: object, status_code: int = 200) -> MagicMock:
    """Create a mock envelope response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {"data": data, "error": None}
    response.text = ""
    return response


def _error_response(status_code: int, text: str) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


@pytest.mark.unit
class TestRequests:
    """Tests for URL building and payloads."""

    def test_create_student(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """POSTs to /students and parses the student."""
        mock_client.request.return_value = _mock_response(STUDENT_PAYLOAD, 201)

        student = proctor.create_student("Ada", "Algebra", password="secret")

        mock_client.request.assert_called_once_with(
            "POST",
            "http://proctor.test/api/students",
            json={"name": "Ada", "exam": "Algebra", "password": "secret"},
        )
        assert student.id == "s-1"
        assert student.time_elapsed == "00:10:00"
        assert student.risk_score == 20
        assert student.created_at == datetime(2026, 5, 1, 9, 0)

    def test_create_student_without_password(
        self, proctor: ProctorClient, mock_client: MagicMock
    ) -> None:
        """password is left out of the body when not given."""
        mock_client.request.return_value = _mock_response(STUDENT_PAYLOAD, 201)

        proctor.create_student("Ada", "Algebra")

        _, kwargs = mock_client.request.call_args
        assert kwargs["json"] == {"name": "Ada", "exam": "Algebra"}

    def test_update_risk_score_uses_camel_case(
        self, proctor: ProctorClient, mock_client: MagicMock
    ) -> None:
        """Body keys are camelCase."""
        mock_client.request.return_value = _mock_response(STUDENT_PAYLOAD)

        proctor.update_risk_score("s-1", 55)

        mock_client.request.assert_called_once_with(
            "PATCH", "http://proctor.test/api/students/s-1/risk-score", json={"riskScore": 55}
        )

    def test_update_time_elapsed(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """PATCHes timeElapsed."""
        mock_client.request.return_value = _mock_response(STUDENT_PAYLOAD)

        proctor.update_time_elapsed("s-1", "00:10:00")

        mock_client.request.assert_called_once_with(
            "PATCH",
            "http://proctor.test/api/students/s-1/time-elapsed",
            json={"timeElapsed": "00:10:00"},
        )

    def test_verify_credentials(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Returns a Verification."""
        mock_client.request.return_value = _mock_response({"valid": True, "studentId": "s-1"})

        result = proctor.verify_credentials("Ada", "secret")

        assert result.valid
        assert result.student_id == "s-1"

    def test_reset_students(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Returns the deleted count."""
        mock_client.request.return_value = _mock_response({"deleted": 3})

        assert proctor.reset_students() == 3
        mock_client.request.assert_called_once_with(
            "DELETE", "http://proctor.test/api/students/reset/all", json=None
        )

    def test_create_activity_event(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Timestamps are sent as ISO 8601."""
        mock_client.request.return_value = _mock_response(EVENT_PAYLOAD, 201)
        when = datetime(2026, 5, 1, 9, 5, tzinfo=UTC)

        event = proctor.create_activity_event("s-1", "focus-loss", timestamp=when, risk_score=5)

        _, kwargs = mock_client.request.call_args
        assert kwargs["json"] == {
            "studentId": "s-1",
            "type": "focus-loss",
            "riskScore": 5,
            "timestamp": "2026-05-01T09:05:00+00:00",
        }
        assert event.student_id == "s-1"
        assert event.student_name is None

    def test_list_activity_events(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Joined listing fills student_name and exam."""
        mock_client.request.return_value = _mock_response(
            [{**EVENT_PAYLOAD, "studentName": "Ada", "exam": "Algebra"}]
        )

        [event] = proctor.list_activity_events()

        assert event.student_name == "Ada"
        assert event.exam == "Algebra"


@pytest.mark.unit
class TestErrors:
    """Tests for error mapping."""

    def test_404_raises_not_found(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """404 maps to NotFoundError."""
        mock_client.request.return_value = _error_response(404, '{"error":"Student not found"}')

        with pytest.raises(NotFoundError) as exc_info:
            proctor.get_student("missing")

        assert exc_info.value.status_code == 404

    def test_other_errors_raise_api_error(
        self, proctor: ProctorClient, mock_client: MagicMock
    ) -> None:
        """Other 4xx/5xx map to APIError with the status code."""
        mock_client.request.return_value = _error_response(500, "boom")

        with pytest.raises(APIError) as exc_info:
            proctor.list_students()

        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)

    def test_error_text_is_sanitized(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Passwords echoed back in an error body do not reach the message."""
        mock_client.request.return_value = _error_response(
            422, '{"input": {"name": "Ada", "password": "secret"}}'
        )

        with pytest.raises(APIError) as exc_info:
            proctor.verify_credentials("Ada", "secret")

        assert "secret" not in str(exc_info.value)

    def test_transport_error_raises_api_error(
        self, proctor: ProctorClient, mock_client: MagicMock
    ) -> None:
        """Connection failures map to APIError."""
        mock_client.request.side_effect = httpx.ConnectError("refused")

        with pytest.raises(APIError, match="refused"):
            proctor.list_students()

    def test_missing_envelope_raises(self, proctor: ProctorClient, mock_client: MagicMock) -> None:
        """Bodies without a data key are rejected."""
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = ["not", "an", "envelope"]
        mock_client.request.return_value = response

        with pytest.raises(APIError, match="unexpected response body"):
            proctor.list_students()

    def test_non_json_body_raises_api_error(self) -> None:
        """A 2xx HTML page (e.g. from a proxy) is an APIError, not a decode error."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, text="<html>proxy</html>")
        )
        proctor = ProctorClient(
            base_url="http://proctor.test/api", client=httpx.Client(transport=transport)
        )

        with pytest.raises(APIError, match="not JSON") as exc_info:
            proctor.list_students()

        assert exc_info.value.status_code == 200


@pytest.mark.unit
class TestLifecycle:
    """Tests for client ownership."""

    def test_close_owned_client(self) -> None:
        """A lazily created client is closed."""
        proctor = ProctorClient()
        inner = proctor.client

        proctor.close()

        assert inner.is_closed
        assert proctor._client is None

    def test_injected_client_not_closed(self, mock_client: MagicMock) -> None:
        """An injected client belongs to the caller."""
        with ProctorClient(client=mock_client):
            pass

        mock_client.close.assert_not_called()

    def test_from_config_uses_base_url(self) -> None:
        """from_config points the client at client.base_url."""
        proctor = ProctorClient.from_config(ClientConfig(base_url="http://exam.example/api/"))

        assert proctor.base_url == "http://exam.example/api"
