"""
Sync Service - The engine as one object with an explicit lifecycle.

Wires the queue, executor, monitor, timer and orchestrator together and
exposes the API used by the app: enqueue, status, manual sync and the
connectivity/lifecycle callbacks.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Optional

from ..core.domain.entities import (
    CandidateRecord,
    DrainTrigger,
    DroppedOperation,
    OperationKind,
    QueuedOperation,
    SyncLogEntry,
    SyncStatus,
    utcnow,
)
from ..core.domain.events import (
    EnteredBackground,
    EnteredForeground,
    EventBus,
    OperationDelivered,
    OperationEnqueued,
    WentOnline,
)
from ..core.exceptions import ConfigurationError
from ..core.ports.biometric import BiometricBridgePort
from ..core.ports.candidate_store import CandidateStorePort
from ..core.ports.config_provider import AppConfig, RetryPolicy
from ..core.ports.storage import StoragePort
from ..core.ports.transport import TransportPort
from .queue.store import DurableQueueStore
from .retry.executor import RetryExecutor
from .sync.history import SyncHistory
from .sync.monitor import AppState, ConnectivityMonitor
from .sync.orchestrator import DrainResult, SyncOrchestrator
from .sync.scheduler import PeriodicTask
from .sync.status import StatusAggregator
from .verification import VerificationOutcome, VerificationRecorder


ATTENDANCE_ENDPOINT = "/api/attendance/sync"


class SyncService:
    """
    Offline-first sync engine.

    Typical use:
        service = SyncService.from_config(config)
        service.init()
        service.record_attendance("C-1001", name="Ada")
        result = service.sync_now()
        service.shutdown()
    """

    def __init__(
        self,
        storage: StoragePort,
        transport: TransportPort,
        config: Optional[AppConfig] = None,
        candidates: Optional[CandidateStorePort] = None,
        bridge: Optional[BiometricBridgePort] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the service. Nothing is loaded or started until init().

        Args:
            storage: Backing storage for queue, history, candidates, status cache
            transport: Delivers queued operations
            config: Application configuration
            candidates: Candidate store (defaults to one over ``storage``)
            bridge: Optional biometric capture/match bridge
            event_bus: Event bus (a private one if omitted)
            clock: Time source
            sleep: Backoff sleep for the retry executor
        """
        from ..adapters.storage.candidate_store import StorageCandidateStore

        self.config = config or AppConfig()
        self.storage = storage
        self.transport = transport
        self.event_bus = event_bus or EventBus()
        self.clock = clock
        self.logger = logging.getLogger("SyncService")

        self.queue = DurableQueueStore(storage, clock=clock)
        self.candidates = candidates or StorageCandidateStore(storage, clock=clock)
        self.history = SyncHistory(storage, limit=self.config.sync.history_limit)
        self.executor = RetryExecutor(policy=self.config.retry, sleep=sleep)
        self.monitor = ConnectivityMonitor(self.event_bus)
        self.timer = PeriodicTask(self._on_timer, self.config.sync.sync_interval)
        self.status = StatusAggregator(
            self.queue,
            self.candidates,
            storage=storage,
            timer=self.timer,
            clock=clock,
        )
        self.orchestrator = SyncOrchestrator(
            self.queue,
            transport,
            self.executor,
            config=self.config.sync,
            monitor=self.monitor,
            status=self.status,
            history=self.history,
            event_bus=self.event_bus,
            clock=clock,
        )
        self.verification = VerificationRecorder(
            bridge,
            self.executor,
            self.candidates,
            self.enqueue,
        )

        self._lifecycle_lock = threading.Lock()
        self._initialized = False
        self._subscriptions = [
            (WentOnline, self._on_online),
            (EnteredForeground, self._on_foreground),
            (EnteredBackground, self._on_background),
            (OperationDelivered, self._on_delivered),
        ]

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        bridge: Optional[BiometricBridgePort] = None,
        **kwargs: Any,
    ) -> "SyncService":
        """
        Build a service with JSON file storage and HTTP transport.

        Raises:
            ConfigurationError: if no API URL is configured
        """
        from ..adapters.http.transport import HttpTransport
        from ..adapters.storage.json_file import JsonFileStorage

        if not config.transport.api_url:
            raise ConfigurationError("Missing API URL (set FIELDSYNC_API_URL or use --api-url)")

        return cls(
            storage=JsonFileStorage(config.data_dir),
            transport=HttpTransport(config.transport),
            config=config,
            bridge=bridge,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        """
        Load persisted state, hook up lifecycle events, start the timer.

        Calling init() on an initialized service does nothing.

        Raises:
            PersistenceError: if the persisted queue cannot be read
        """
        with self._lifecycle_lock:
            if self._initialized:
                return

            self.queue.load()
            self.history.load()
            self.status.load_cached()

            for event_type, handler in self._subscriptions:
                self.event_bus.subscribe(event_type, handler)

            if self.monitor.is_foreground:
                self.timer.start()

            self._initialized = True

        self.logger.info(f"Sync service started with {self.queue.size()} queued operations")

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Stop the timer and wait for any in-flight drain to finish.

        Args:
            timeout: Longest time to wait for a running drain (None: no limit)
        """
        with self._lifecycle_lock:
            if not self._initialized:
                return
            self._initialized = False

            for event_type, handler in self._subscriptions:
                self.event_bus.unsubscribe(event_type, handler)
            self.timer.stop()

        if not self.orchestrator.wait_until_idle(timeout):
            self.logger.warning("Shutting down while a drain is still running")
        self.executor.shutdown()
        self.transport.close()
        self.logger.info("Sync service stopped")

    # -------------------------------------------------------------------------
    # Enqueue API
    # -------------------------------------------------------------------------

    def enqueue(
        self,
        kind: str,
        endpoint: str,
        method: str = "POST",
        payload: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Durably queue an operation for delivery.

        Returns:
            The operation id

        Raises:
            PersistenceError: the action was not recorded
        """
        op_id = self.queue.enqueue(kind, endpoint, method, payload)
        self.event_bus.publish(OperationEnqueued(
            operation_id=op_id,
            kind=str(getattr(kind, "value", kind)),
            queue_size=self.queue.size(),
        ))
        return op_id

    def record_attendance(
        self,
        candidate_id: str,
        name: str = "",
        present: bool = True,
    ) -> str:
        """Record attendance locally and queue it. Returns the operation id."""
        record = self.candidates.record_attendance(candidate_id, name=name, present=present)
        return self.enqueue(
            OperationKind.ATTENDANCE_SYNC,
            ATTENDANCE_ENDPOINT,
            "POST",
            {
                "candidate_id": record.candidate_id,
                "name": record.name,
                "present": record.present,
                "timestamp": record.last_updated.isoformat(),
            },
        )

    def record_verification(
        self,
        candidate_id: str,
        matched: bool,
        score: int = 0,
        quality: int = 0,
        nfiq: int = 5,
    ) -> VerificationOutcome:
        """Record an already computed verification result and queue it."""
        return self.verification.record(
            candidate_id, matched, score=score, quality=quality, nfiq=nfiq
        )

    def verify_candidate(
        self,
        candidate_id: str,
        reference_template: str,
        threshold: Optional[int] = None,
    ) -> VerificationOutcome:
        """Capture and match through the biometric bridge, then record the result."""
        return self.verification.verify(candidate_id, reference_template, threshold)

    # -------------------------------------------------------------------------
    # Status API
    # -------------------------------------------------------------------------

    def get_sync_status(self) -> SyncStatus:
        return self.status.compute_status()

    def get_queue_size(self) -> int:
        return self.queue.size()

    def get_queued_operations(self) -> list[QueuedOperation]:
        return self.queue.drain_snapshot()

    def get_candidates(self) -> list[CandidateRecord]:
        return self.candidates.list_candidates()

    def get_sync_history(self, limit: Optional[int] = None) -> list[SyncLogEntry]:
        """Drain log, newest last."""
        entries = self.history.entries()
        return entries[-limit:] if limit else entries

    def get_dropped_operations(self) -> list[DroppedOperation]:
        return self.orchestrator.dropped_operations

    def clear_queue(self) -> int:
        """Discard every queued operation. Returns how many were removed."""
        count = self.queue.clear()
        self.status.refresh()
        return count

    # -------------------------------------------------------------------------
    # Sync Controls
    # -------------------------------------------------------------------------

    def sync_now(self) -> DrainResult:
        """Run one full drain (or wait for the running one) and return its result."""
        return self.orchestrator.sync_now()

    def set_retry_policy(self, policy: Optional[RetryPolicy] = None, **changes: Any) -> RetryPolicy:
        return self.executor.set_retry_policy(policy, **changes)

    def check_connectivity(self) -> bool:
        """Probe the API health endpoint and report the outcome to the monitor."""
        online = self.transport.check_health()
        self.monitor.report_connectivity(online)
        return online

    def report_connectivity(self, online: bool) -> bool:
        return self.monitor.report_connectivity(online)

    def report_app_state(self, state: AppState) -> bool:
        return self.monitor.report_app_state(state)

    # -------------------------------------------------------------------------
    # Event Handlers
    # -------------------------------------------------------------------------

    def _on_timer(self) -> None:
        self.orchestrator.run_drain(DrainTrigger.TIMER)

    def _on_online(self, event: WentOnline) -> None:
        self.orchestrator.trigger_in_background(DrainTrigger.ONLINE)

    def _on_foreground(self, event: EnteredForeground) -> None:
        self.timer.start()

    def _on_background(self, event: EnteredBackground) -> None:
        self.timer.stop()

    def _on_delivered(self, event: OperationDelivered) -> None:
        if not event.candidate_id:
            return
        if self.queue.has_candidate(event.candidate_id):
            self.logger.debug(f"{event.candidate_id} still has queued operations")
        else:
            self.candidates.mark_synced(event.candidate_id)
