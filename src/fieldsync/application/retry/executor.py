"""
Retry Executor - Retry, backoff and timeout around any callable.

The executor knows nothing about queues. It attempts an operation up to
``max_retries + 1`` times, sleeping between attempts with capped
exponential backoff, and gives up as soon as the classifier calls an
error terminal.
"""

import concurrent.futures
import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ...core.exceptions import RequestTimeoutError
from ...core.ports.config_provider import RetryPolicy
from .classifier import ErrorClassifier


T = TypeVar("T")


@dataclass(frozen=True)
class FailureContext:
    """What a failure observer is told about a failed attempt."""

    error: BaseException
    attempt: int  # zero-based
    total_attempts: int
    context: Optional[str] = None
    will_retry: bool = False


FailureObserver = Callable[[FailureContext], None]


class RetryExecutor:
    """
    Executes callables with retry and timeout.

    The RetryPolicy is process-wide and may be replaced at any time with
    set_retry_policy(); each attempt reads the policy current at that
    moment, so a change applies from the next attempt on.
    """

    def __init__(
        self,
        classifier: Optional[ErrorClassifier] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = 4,
    ):
        """
        Initialize the executor.

        Args:
            classifier: Error classifier (default predicates if omitted)
            policy: Initial retry policy
            sleep: Backoff sleep function, injectable for tests
            max_workers: Threads available for timed operations
        """
        self.classifier = classifier or ErrorClassifier()
        self.sleep = sleep
        self.logger = logging.getLogger("RetryExecutor")

        self._policy = policy or RetryPolicy()
        self._policy_lock = threading.Lock()
        self._observers: dict[str, FailureObserver] = {}
        self._observers_lock = threading.Lock()
        self._max_workers = max_workers
        self._pool: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------

    @property
    def policy(self) -> RetryPolicy:
        with self._policy_lock:
            return self._policy

    def set_retry_policy(self, policy: Optional[RetryPolicy] = None, **changes) -> RetryPolicy:
        """
        Replace the retry policy.

        Either pass a full RetryPolicy or individual fields to change,
        e.g. ``set_retry_policy(max_retries=5)``.
        """
        with self._policy_lock:
            base = policy or self._policy
            self._policy = dataclasses.replace(base, **changes) if changes else base
            updated = self._policy
        self.logger.info(f"Retry policy updated: {updated}")
        return updated

    # -------------------------------------------------------------------------
    # Failure Observers
    # -------------------------------------------------------------------------

    def register_failure_observer(self, context: str, observer: FailureObserver) -> None:
        """Call observer on every failed attempt made under this context."""
        with self._observers_lock:
            self._observers[context] = observer

    def remove_failure_observer(self, context: str) -> None:
        with self._observers_lock:
            self._observers.pop(context, None)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute_with_retry(
        self,
        operation: Callable[[], T],
        context: Optional[str] = None,
    ) -> T:
        """
        Run operation, retrying transient failures.

        Args:
            operation: Zero-argument callable
            context: Label for logs and failure observers

        Returns:
            Whatever operation returns

        Raises:
            The last error, once it is terminal or attempts are used up
        """
        label = f" - {context}" if context else ""
        attempt = 0

        while True:
            policy = self.policy
            total = policy.total_attempts
            self.logger.debug(f"Attempt {attempt + 1}/{total}{label}")

            try:
                return operation()
            except Exception as error:
                retryable = self.classifier.is_retryable(error)
                will_retry = retryable and attempt < policy.max_retries

                self._notify(FailureContext(
                    error=error,
                    attempt=attempt,
                    total_attempts=total,
                    context=context,
                    will_retry=will_retry,
                ))

                if not will_retry:
                    reason = "max retries reached" if retryable else "non-retryable error"
                    self.logger.error(
                        f"Giving up after attempt {attempt + 1}/{total}{label} ({reason}): {error}"
                    )
                    raise

                delay = policy.delay_for(attempt)
                self.logger.warning(
                    f"Retryable error on attempt {attempt + 1}/{total}{label}: {error}"
                )
                self.logger.debug(f"Waiting {delay:.2f}s before retry")
                self.sleep(delay)
                attempt += 1

    def execute_with_timeout(
        self,
        operation: Callable[[], T],
        timeout: float,
        context: Optional[str] = None,
    ) -> T:
        """
        Run operation on a worker thread and wait at most timeout seconds.

        On timeout the operation is abandoned: it may keep running, but
        its eventual result or error is discarded. The pool it occupies is
        retired so later calls start on fresh workers.

        Raises:
            RequestTimeoutError: if the timer fires first
        """
        pool, future = self._submit(operation)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            future.add_done_callback(self._discard_late_result(context))
            self._retire_pool(pool)
            label = f" - {context}" if context else ""
            raise RequestTimeoutError(f"Request timeout after {timeout:.1f}s{label}")

    def execute_with_retry_and_timeout(
        self,
        operation: Callable[[], T],
        timeout: float,
        context: Optional[str] = None,
    ) -> T:
        """Retry an operation where every single attempt is time-boxed."""
        return self.execute_with_retry(
            lambda: self.execute_with_timeout(operation, timeout, context),
            context,
        )

    def shutdown(self, wait: bool = False) -> None:
        """Release worker threads. Abandoned operations are not waited for by default."""
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=wait)
                self._pool = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _submit(self, operation: Callable[[], T]) -> tuple:
        with self._pool_lock:
            if self._pool is None:
                self._pool = concurrent.futures.ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="fieldsync-op",
                )
            return self._pool, self._pool.submit(operation)

    def _retire_pool(self, pool: concurrent.futures.ThreadPoolExecutor) -> None:
        with self._pool_lock:
            if self._pool is pool:
                self._pool = None
                pool.shutdown(wait=False)

    def _notify(self, failure: FailureContext) -> None:
        if not failure.context:
            return
        with self._observers_lock:
            observer = self._observers.get(failure.context)
        if observer is None:
            return
        try:
            observer(failure)
        except Exception as e:
            self.logger.error(f"Failure observer for {failure.context} raised: {e}")

    def _discard_late_result(self, context: Optional[str]) -> Callable:
        def callback(future: concurrent.futures.Future) -> None:
            if future.cancelled():
                return
            outcome = "error" if future.exception() is not None else "result"
            self.logger.debug(f"Discarding late {outcome} of timed-out operation {context or ''}")
        return callback
