"""
Error Classifier - Decide whether a failure is worth retrying.

Classification is the logical OR of independent predicates. Each
predicate looks at exception types and status codes only.
"""

import concurrent.futures
import logging
import socket
from typing import Callable, Optional

from ...core.exceptions import (
    BiometricBridgeError,
    TransientError,
    TransientNetworkError,
)


RetryPredicate = Callable[[BaseException], bool]


def _status_code(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def is_network_error(error: BaseException) -> bool:
    """Network unreachable, connection refused or DNS failure."""
    return isinstance(error, (TransientNetworkError, ConnectionError, socket.gaierror))


def is_timeout(error: BaseException) -> bool:
    """Request or operation timed out."""
    if isinstance(error, (TimeoutError, concurrent.futures.TimeoutError)):
        return True
    return isinstance(error, BiometricBridgeError) and error.timed_out


def is_server_error(error: BaseException) -> bool:
    """HTTP 5xx."""
    status = _status_code(error)
    return status is not None and 500 <= status <= 599


def is_rate_limited(error: BaseException) -> bool:
    """HTTP 429 Too Many Requests."""
    return _status_code(error) == 429


def is_marked_transient(error: BaseException) -> bool:
    """Anything the transport already typed as transient."""
    return isinstance(error, TransientError)


DEFAULT_PREDICATES: tuple[RetryPredicate, ...] = (
    is_network_error,
    is_timeout,
    is_server_error,
    is_rate_limited,
    is_marked_transient,
)


class ErrorClassifier:
    """
    Composable retryable/terminal classifier.

    Usage:
        classifier = ErrorClassifier()
        classifier.add_predicate(lambda e: isinstance(e, MyFlakyError))
        classifier.is_retryable(error)
    """

    def __init__(self, predicates: Optional[list[RetryPredicate]] = None):
        self._predicates: list[RetryPredicate] = list(
            DEFAULT_PREDICATES if predicates is None else predicates
        )
        self.logger = logging.getLogger("ErrorClassifier")

    def add_predicate(self, predicate: RetryPredicate) -> None:
        """Register an additional retry predicate."""
        self._predicates.append(predicate)

    def remove_predicate(self, predicate: RetryPredicate) -> bool:
        """Unregister a predicate. Returns False if it was not registered."""
        if predicate in self._predicates:
            self._predicates.remove(predicate)
            return True
        return False

    @property
    def predicates(self) -> list[RetryPredicate]:
        return list(self._predicates)

    def is_retryable(self, error: BaseException) -> bool:
        """
        Check if an error is transient.

        A predicate that raises counts as "does not match".
        """
        for predicate in self._predicates:
            try:
                if predicate(error):
                    return True
            except Exception as e:
                name = getattr(predicate, "__name__", repr(predicate))
                self.logger.debug(f"Retry predicate {name} raised {e!r}; treating as no match")
        return False

    def is_terminal(self, error: BaseException) -> bool:
        return not self.is_retryable(error)
