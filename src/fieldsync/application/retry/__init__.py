"""
Retry Module - Error classification and retry/backoff execution.
"""

from .classifier import (
    ErrorClassifier,
    RetryPredicate,
    DEFAULT_PREDICATES,
    is_network_error,
    is_timeout,
    is_server_error,
    is_rate_limited,
)
from .executor import RetryExecutor, FailureContext, FailureObserver

__all__ = [
    "ErrorClassifier",
    "RetryPredicate",
    "DEFAULT_PREDICATES",
    "is_network_error",
    "is_timeout",
    "is_server_error",
    "is_rate_limited",
    "RetryExecutor",
    "FailureContext",
    "FailureObserver",
]
