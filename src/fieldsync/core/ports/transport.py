"""
Transport Port - Abstract interface for delivering queued operations.

Implementations replay a QueuedOperation against the remote authority and
translate every failure into the DeliveryError hierarchy, so callers can
classify errors by type and status code alone.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.entities import QueuedOperation


class TransportPort(ABC):
    """
    Abstract interface for the remote authority.

    Raises:
        TransientNetworkError: host unreachable, refused, DNS failure
        RequestTimeoutError: no answer in time
        TransientServerError: 5xx or 429
        TerminalClientError: any other 4xx
        MalformedResponseError: 2xx with an undecodable body
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the transport name."""
        ...

    @abstractmethod
    def deliver(self, operation: QueuedOperation) -> dict[str, Any]:
        """
        Replay an operation.

        Returns:
            Decoded response body (empty dict when the server sent none)
        """
        ...

    @abstractmethod
    def check_health(self) -> bool:
        """Return True if the remote authority is reachable."""
        ...

    def close(self) -> None:
        """Release connections. Optional."""
        pass
