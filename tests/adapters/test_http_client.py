"""Tests for the HTTP client and transport."""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from fieldsync.adapters.http import HttpTransport, RemoteApiClient
from fieldsync.core.domain.entities import QueuedOperation
from fieldsync.core.exceptions import (
    MalformedResponseError,
    RequestTimeoutError,
    TerminalClientError,
    TransientNetworkError,
    TransientServerError,
)
from fieldsync.core.ports.config_provider import TransportConfig


def make_response(status_code=200, body=None, content=b"{}", text=""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.text = text
    response.ok = 200 <= status_code < 300
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body if body is not None else {}
    return response


class TestRemoteApiClient:
    """Tests for RemoteApiClient."""

    @pytest.fixture
    def session(self):
        session = MagicMock()
        session.headers = {}
        return session

    @pytest.fixture
    def client(self, session):
        return RemoteApiClient(
            base_url="https://exams.example.org/",
            api_token="secret",
            timeout=5.0,
            session=session,
        )

    def test_url_for_relative(self, client):
        assert client.url_for("/api/attendance/sync") == "https://exams.example.org/api/attendance/sync"
        assert client.url_for("api/x") == "https://exams.example.org/api/x"

    def test_url_for_absolute(self, client):
        assert client.url_for("https://other.example.org/x") == "https://other.example.org/x"

    def test_request_sends_bearer_and_timeout(self, client, session):
        session.request.return_value = make_response(body={"ok": True})

        result = client.post("/api/attendance/sync", json={"candidate_id": "C-1"})

        assert result == {"ok": True}
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "POST"
        assert url == "https://exams.example.org/api/attendance/sync"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 5.0
        assert kwargs["json"] == {"candidate_id": "C-1"}

    def test_token_provider_wins(self, session):
        client = RemoteApiClient(
            "https://x", api_token="static", token_provider=lambda: "fresh", session=session
        )
        session.request.return_value = make_response()

        client.get("/a")

        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer fresh"

    def test_no_token_no_header(self, session):
        client = RemoteApiClient("https://x", session=session)
        session.request.return_value = make_response()

        client.get("/a")

        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_empty_body(self, client, session):
        session.request.return_value = make_response(status_code=204, content=b"")
        assert client.post("/a") == {}

    def test_list_body_is_wrapped(self, client, session):
        session.request.return_value = make_response(body=[1, 2])
        assert client.get("/a") == {"data": [1, 2]}

    def test_malformed_json(self, client, session):
        session.request.return_value = make_response(body=ValueError("bad json"))

        with pytest.raises(MalformedResponseError) as exc_info:
            client.get("/a")

        assert exc_info.value.status_code == 200

    @pytest.mark.parametrize("status", [500, 502, 503, 429])
    def test_transient_statuses(self, client, session, status):
        session.request.return_value = make_response(status_code=status, text="busy")

        with pytest.raises(TransientServerError) as exc_info:
            client.post("/a")

        assert exc_info.value.status_code == status
        assert exc_info.value.endpoint == "/a"

    @pytest.mark.parametrize("status", [400, 401, 404, 409, 422])
    def test_terminal_statuses(self, client, session, status):
        session.request.return_value = make_response(status_code=status)

        with pytest.raises(TerminalClientError) as exc_info:
            client.post("/a")

        assert exc_info.value.status_code == status

    def test_timeout(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(RequestTimeoutError) as exc_info:
            client.post("/a")

        assert isinstance(exc_info.value, TimeoutError)

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransientNetworkError):
            client.post("/a")

    def test_head(self, client, session):
        session.head.return_value = make_response(status_code=200)
        assert client.head("/api/health") is True

        session.head.return_value = make_response(status_code=503)
        assert client.head("/api/health") is False

        session.head.side_effect = requests.exceptions.ConnectionError("down")
        assert client.head("/api/health") is False


class TestHttpTransport:
    """Tests for HttpTransport."""

    @pytest.fixture
    def client(self):
        return Mock(spec=RemoteApiClient)

    @pytest.fixture
    def transport(self, client):
        return HttpTransport(TransportConfig(api_url="https://x"), client=client)

    def test_deliver_sends_payload_as_json(self, transport, client):
        client.request.return_value = {"ok": True}
        op = QueuedOperation(
            id="op-1", kind="attendance-sync", endpoint="/api/attendance/sync",
            payload={"candidate_id": "C-1"},
        )

        assert transport.deliver(op) == {"ok": True}
        client.request.assert_called_once_with(
            "POST", "/api/attendance/sync", json={"candidate_id": "C-1"}
        )

    def test_deliver_get_uses_query_params(self, transport, client):
        op = QueuedOperation(id="op-1", kind="k", endpoint="/e", method="get", payload={"a": 1})

        transport.deliver(op)

        client.request.assert_called_once_with("GET", "/e", params={"a": 1})

    def test_check_health_uses_configured_endpoint(self, transport, client):
        client.head.return_value = True

        assert transport.check_health()
        client.head.assert_called_once_with("/api/health")

    def test_close(self, transport, client):
        transport.close()
        client.close.assert_called_once()
