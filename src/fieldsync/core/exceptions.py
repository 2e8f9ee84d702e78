"""
Exceptions - Centralized exception hierarchy.

Delivery failures are split into transient (retry later) and terminal
(drop the operation). The transport boundary is responsible for raising
the right subclass; nothing downstream inspects error messages.
"""

from typing import Optional

__all__ = [
    "FieldSyncError",
    "ConfigurationError",
    "PersistenceError",
    "DeliveryError",
    "TransientError",
    "TransientNetworkError",
    "TransientServerError",
    "RequestTimeoutError",
    "TerminalError",
    "TerminalClientError",
    "MalformedResponseError",
    "BiometricBridgeError",
]


class FieldSyncError(Exception):
    """Base class for all fieldsync errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(FieldSyncError):
    """Configuration is missing or invalid."""


class PersistenceError(FieldSyncError):
    """Reading or writing the backing store failed."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.key = key


# -------------------------------------------------------------------------
# Delivery Errors
# -------------------------------------------------------------------------

class DeliveryError(FieldSyncError):
    """A queued operation could not be delivered to the remote authority."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.endpoint = endpoint


class TransientError(DeliveryError):
    """Failure expected to clear up on its own."""


class TransientNetworkError(TransientError):
    """Network unreachable, connection refused or DNS failure."""


class TransientServerError(TransientError):
    """Server-side failure (5xx) or rate limiting (429)."""


class RequestTimeoutError(TransientError, TimeoutError):
    """The operation did not complete within its time budget."""


class TerminalError(DeliveryError):
    """Failure that will not succeed on retry."""


class TerminalClientError(TerminalError):
    """Request rejected by the server (4xx other than 429)."""


class MalformedResponseError(TerminalError):
    """Server answered 2xx with a body that could not be decoded."""


# -------------------------------------------------------------------------
# Device Bridge Errors
# -------------------------------------------------------------------------

class BiometricBridgeError(FieldSyncError):
    """Capture or match on the biometric device failed."""

    def __init__(
        self,
        message: str,
        timed_out: bool = False,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.timed_out = timed_out
