"""
Sync Orchestrator - Drains the durable queue into the remote authority.

This is the main entry point for sync operations.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

from ...core.domain.entities import (
    DrainTrigger,
    DroppedOperation,
    QueuedOperation,
    SyncLogEntry,
    utcnow,
)
from ...core.domain.events import (
    DrainCompleted,
    DrainStarted,
    EventBus,
    OperationDeferred,
    OperationDelivered,
    OperationDropped,
)
from ...core.ports.config_provider import SyncConfig
from ...core.ports.transport import TransportPort
from ..queue.store import DurableQueueStore
from ..retry.executor import RetryExecutor
from .history import SyncHistory
from .monitor import ConnectivityMonitor
from .status import StatusAggregator


class DrainState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class DrainResult:
    """Result of one drain."""

    trigger: str = DrainTrigger.MANUAL.value
    skipped: bool = False

    # Counts
    synced: int = 0
    failed: int = 0  # dropped as terminal
    deferred: int = 0  # still queued for the next run

    # Details
    dropped: list[DroppedOperation] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def processed(self) -> int:
        return self.synced + self.failed + self.deferred

    @property
    def success(self) -> bool:
        return not self.skipped and self.failed == 0 and self.deferred == 0

    @property
    def status(self) -> str:
        if self.skipped:
            return "skipped"
        if self.success:
            return "success"
        if self.synced:
            return "partial"
        return "failed"

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "synced": self.synced,
            "failed": self.failed,
            "deferred": self.deferred,
            "skipped": self.skipped,
        }


class SyncOrchestrator:
    """
    Drains queue snapshots, one drain at a time.

    States: IDLE -> DRAINING -> IDLE. A trigger that arrives while a drain
    is running is coalesced: background triggers become no-ops, manual
    callers wait for the running drain and get its result.

    Per operation:
    1. success -> removed
    2. terminal failure -> removed and recorded as dropped
    3. transient failure after the executor gave up -> retry_count + 1,
       left for the next drain (or dropped past max_queue_retries)
    """

    DROPPED_LOG_SIZE = 200

    def __init__(
        self,
        queue: DurableQueueStore,
        transport: TransportPort,
        executor: RetryExecutor,
        config: Optional[SyncConfig] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        status: Optional[StatusAggregator] = None,
        history: Optional[SyncHistory] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the orchestrator.

        Args:
            queue: Durable queue to drain
            transport: Delivers each operation
            executor: Retry/timeout wrapper used per operation
            config: Sync configuration
            monitor: Consulted to skip drains while offline
            status: Recomputed after every drain
            history: Receives one entry per drain
            event_bus: Optional event bus
            clock: Time source
        """
        self.queue = queue
        self.transport = transport
        self.executor = executor
        self.config = config or SyncConfig()
        self.monitor = monitor
        self.status = status
        self.history = history
        self.event_bus = event_bus or EventBus()
        self.clock = clock
        self.logger = logging.getLogger("SyncOrchestrator")

        self._cond = threading.Condition()
        self._draining = False
        self._generation = 0
        self._last_result: Optional[DrainResult] = None
        self._last_error: Optional[BaseException] = None
        self._dropped: deque = deque(maxlen=self.DROPPED_LOG_SIZE)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DrainState:
        with self._cond:
            return DrainState.DRAINING if self._draining else DrainState.IDLE

    @property
    def is_draining(self) -> bool:
        return self.state == DrainState.DRAINING

    @property
    def last_result(self) -> Optional[DrainResult]:
        with self._cond:
            return self._last_result

    @property
    def dropped_operations(self) -> list[DroppedOperation]:
        with self._cond:
            return list(self._dropped)

    # -------------------------------------------------------------------------
    # Main Entry Points
    # -------------------------------------------------------------------------

    def run_drain(
        self,
        trigger: DrainTrigger = DrainTrigger.MANUAL,
        wait: bool = False,
    ) -> Optional[DrainResult]:
        """
        Drain the queue once, unless a drain is already running.

        Args:
            trigger: What asked for this drain
            wait: If a drain is running, wait for it and return its result
                instead of returning None

        Returns:
            DrainResult, or None when coalesced without waiting

        Raises:
            PersistenceError: the queue could not be written; waiting
                callers get the same error as the drain itself
        """
        trigger = DrainTrigger(trigger)

        with self._cond:
            if self._draining:
                if not wait:
                    self.logger.debug(f"Drain in progress, ignoring {trigger.value} trigger")
                    return None
                self.logger.debug(f"Drain in progress, {trigger.value} trigger waits for it")
                generation = self._generation
                self._cond.wait_for(lambda: self._generation != generation)
                if self._last_error is not None:
                    raise self._last_error
                return self._last_result
            self._draining = True

        result = None
        error = None
        try:
            result = self._drain(trigger)
            return result
        except BaseException as e:
            error = e
            raise
        finally:
            with self._cond:
                self._draining = False
                self._generation += 1
                self._last_error = error
                if result is not None:
                    self._last_result = result
                self._cond.notify_all()

    def sync_now(self) -> DrainResult:
        """Manual trigger. Always returns the result of a complete drain."""
        return self.run_drain(DrainTrigger.MANUAL, wait=True)

    def trigger_in_background(self, trigger: DrainTrigger) -> threading.Thread:
        """Start a drain on a daemon thread (coalesced if one is running)."""
        thread = threading.Thread(
            target=self._run_logged,
            args=(trigger,),
            name=f"fieldsync-drain-{DrainTrigger(trigger).value}",
            daemon=True,
        )
        thread.start()
        return thread

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no drain is running. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._draining, timeout=timeout)

    # -------------------------------------------------------------------------
    # Drain
    # -------------------------------------------------------------------------

    def _drain(self, trigger: DrainTrigger) -> DrainResult:
        result = DrainResult(trigger=trigger.value, started_at=self.clock())

        if self.monitor is not None and not self.monitor.is_online:
            self.logger.info(f"Offline, skipping {trigger.value} drain")
            result.skipped = True
            return self._finish(result)

        snapshot = self.queue.drain_snapshot()
        self.event_bus.publish(DrainStarted(trigger=trigger.value, snapshot_size=len(snapshot)))
        self.logger.info(f"Syncing {len(snapshot)} queued operations ({trigger.value})")

        for operation in snapshot:
            self._process(operation, result)

        self.logger.info(
            f"Sync completed: {result.synced} synced, {result.failed} dropped, "
            f"{result.deferred} deferred"
        )
        return self._finish(result)

    def _process(self, operation: QueuedOperation, result: DrainResult) -> None:
        """Deliver one operation and record the outcome."""
        self.logger.debug(f"Processing {operation.describe()}")

        try:
            self.executor.execute_with_retry_and_timeout(
                lambda: self.transport.deliver(operation),
                self.config.operation_timeout,
                context=operation.kind,
            )
        except Exception as error:
            if self.executor.classifier.is_retryable(error):
                self._defer(operation, error, result)
            else:
                self._drop(operation, str(error) or type(error).__name__, result)
            return

        self.queue.remove(operation.id)
        result.synced += 1
        self.logger.debug(f"Delivered {operation.id}")
        self.event_bus.publish(OperationDelivered(
            operation_id=operation.id,
            kind=operation.kind,
            candidate_id=operation.candidate_id,
        ))

    def _defer(self, operation: QueuedOperation, error: Exception, result: DrainResult) -> None:
        limit = self.config.max_queue_retries
        if limit is not None and operation.retry_count + 1 > limit:
            self._drop(operation, f"Queue retry limit ({limit}) exceeded: {error}", result)
            return

        retry_count = self.queue.increment_retry(operation.id)
        if retry_count is None:
            # Removed by someone else while we were delivering
            return

        result.deferred += 1
        result.add_error(f"{operation.id}: {error}")
        self.logger.warning(
            f"Will retry {operation.describe()} on next sync (retry {retry_count}): {error}"
        )
        self.event_bus.publish(OperationDeferred(
            operation_id=operation.id,
            retry_count=retry_count,
            error=str(error),
        ))

    def _drop(self, operation: QueuedOperation, reason: str, result: DrainResult) -> None:
        self.queue.remove(operation.id)

        dropped = DroppedOperation(operation=operation, reason=reason, dropped_at=self.clock())
        result.dropped.append(dropped)
        result.failed += 1
        result.add_error(f"{operation.id}: {reason}")
        with self._cond:
            self._dropped.append(dropped)

        self.logger.warning(f"Dropped {operation.describe()}: {reason}")
        self.event_bus.publish(OperationDropped(
            operation_id=operation.id,
            kind=operation.kind,
            reason=reason,
        ))

    def _finish(self, result: DrainResult) -> DrainResult:
        result.finished_at = self.clock()

        if self.status is not None:
            if not result.skipped:
                self.status.record_sync(result.finished_at)
            self.status.refresh()

        if self.history is not None:
            self.history.append(SyncLogEntry(
                sync_id=f"sync_{uuid4().hex[:12]}",
                timestamp=result.finished_at,
                trigger=result.trigger,
                status=result.status,
                synced=result.synced,
                failed=result.failed,
                deferred=result.deferred,
                error=result.errors[-1] if result.errors else None,
            ))

        self.event_bus.publish(DrainCompleted(
            trigger=result.trigger,
            synced=result.synced,
            failed=result.failed,
            deferred=result.deferred,
            skipped=result.skipped,
        ))
        return result

    def _run_logged(self, trigger: DrainTrigger) -> None:
        try:
            self.run_drain(trigger)
        except Exception as e:
            self.logger.error(f"Background {DrainTrigger(trigger).value} drain failed: {e}")
