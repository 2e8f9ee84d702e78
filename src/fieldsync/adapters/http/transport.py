"""
HTTP Transport - Implements TransportPort over the remote REST API.
"""

import logging
from typing import Any, Optional

from ...core.domain.entities import QueuedOperation
from ...core.ports.config_provider import TransportConfig
from ...core.ports.transport import TransportPort
from .client import RemoteApiClient


class HttpTransport(TransportPort):
    """
    Replays each queued operation as an HTTP request.

    The payload is sent as the JSON body with the operation's method.
    """

    BODYLESS_METHODS = ("GET", "HEAD", "DELETE")

    def __init__(
        self,
        config: TransportConfig,
        client: Optional[RemoteApiClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Transport configuration
            client: Optional pre-built client
        """
        self.config = config
        self.logger = logging.getLogger("HttpTransport")
        self._client = client or RemoteApiClient(
            base_url=config.api_url,
            api_token=config.api_token,
            timeout=config.request_timeout,
        )

    @property
    def name(self) -> str:
        return "HTTP"

    @property
    def client(self) -> RemoteApiClient:
        return self._client

    def deliver(self, operation: QueuedOperation) -> dict[str, Any]:
        method = operation.method.upper()
        self.logger.debug(f"Replaying {operation.describe()}")

        if method in self.BODYLESS_METHODS:
            return self._client.request(method, operation.endpoint, params=operation.payload or None)
        return self._client.request(method, operation.endpoint, json=operation.payload)

    def check_health(self) -> bool:
        return self._client.head(self.config.health_endpoint)

    def close(self) -> None:
        self._client.close()
