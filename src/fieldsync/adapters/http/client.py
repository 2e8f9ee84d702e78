"""
Remote API Client - Low-level HTTP client for the remote authority.

This handles the raw HTTP communication. HttpTransport uses it to
implement the TransportPort. All failures leave here already typed as
transient or terminal.
"""

import logging
from typing import Any, Callable, Optional

import requests

from ...core.exceptions import (
    MalformedResponseError,
    RequestTimeoutError,
    TerminalClientError,
    TransientNetworkError,
    TransientServerError,
)


class RemoteApiClient:
    """
    Low-level REST client for the attendance server.

    Handles bearer authentication, request/response, and error mapping.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 15.0,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server URL (e.g., https://exams.example.org)
            api_token: Static bearer token
            timeout: Per-request timeout in seconds
            token_provider: Called before each request for a fresh token;
                takes precedence over api_token
            session: Pre-configured requests session (mostly for tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.token_provider = token_provider
        self.logger = logging.getLogger("RemoteApiClient")

        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        self._session = session or requests.Session()
        self._session.headers.update(self.headers)

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def url_for(self, endpoint: str) -> str:
        """Resolve an endpoint against the base URL. Absolute URLs pass through."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> dict[str, Any]:
        """
        Make an authenticated request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Path relative to base_url, or absolute URL
            **kwargs: Additional arguments for requests

        Returns:
            JSON response as dict

        Raises:
            DeliveryError subclass on any failure
        """
        url = self.url_for(endpoint)
        kwargs.setdefault("timeout", self.timeout)
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self._auth_header())

        try:
            response = self._session.request(method.upper(), url, headers=headers, **kwargs)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(
                f"Request timed out: {method} {endpoint}", endpoint=endpoint, cause=e
            )
        except requests.exceptions.ConnectionError as e:
            raise TransientNetworkError(
                f"Connection failed: {e}", endpoint=endpoint, cause=e
            )

        return self._handle_response(response, endpoint)

    def get(self, endpoint: str, **kwargs) -> dict[str, Any]:
        """GET request."""
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, json: Optional[dict] = None, **kwargs) -> dict[str, Any]:
        """POST request."""
        return self.request("POST", endpoint, json=json, **kwargs)

    def head(self, endpoint: str, **kwargs) -> bool:
        """HEAD request. Returns True on any 2xx, False on any failure."""
        url = self.url_for(endpoint)
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session.head(url, headers=self._auth_header(), **kwargs)
        except requests.exceptions.RequestException as e:
            self.logger.debug(f"HEAD {endpoint} failed: {e}")
            return False
        return response.ok

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _handle_response(
        self,
        response: requests.Response,
        endpoint: str
    ) -> dict[str, Any]:
        """Handle API response and errors."""
        status = response.status_code

        if 200 <= status < 300:
            if not response.content:
                return {}
            try:
                body = response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    f"Invalid JSON from {endpoint}",
                    status_code=status,
                    endpoint=endpoint,
                    cause=e,
                )
            return body if isinstance(body, dict) else {"data": body}

        error_body = response.text[:500] if response.text else ""

        if status == 429 or 500 <= status < 600:
            raise TransientServerError(
                f"Server error {status} from {endpoint}: {error_body}",
                status_code=status,
                endpoint=endpoint,
            )

        raise TerminalClientError(
            f"Request rejected {status} by {endpoint}: {error_body}",
            status_code=status,
            endpoint=endpoint,
        )

    def _auth_header(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else self.api_token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}
