"""
Domain Events - Things that happened in the sync engine.

Events are immutable records of something that occurred.
They decouple the engine from whoever watches it (UI, metrics, logs).
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__


# -------------------------------------------------------------------------
# Queue Events
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class OperationEnqueued(DomainEvent):
    """Event: An operation was durably added to the queue."""

    operation_id: str = ""
    kind: str = ""
    queue_size: int = 0


@dataclass(frozen=True)
class OperationDelivered(DomainEvent):
    """Event: The remote authority accepted an operation."""

    operation_id: str = ""
    kind: str = ""
    candidate_id: Optional[str] = None


@dataclass(frozen=True)
class OperationDeferred(DomainEvent):
    """Event: Delivery failed transiently; the operation stays queued."""

    operation_id: str = ""
    retry_count: int = 0
    error: str = ""


@dataclass(frozen=True)
class OperationDropped(DomainEvent):
    """Event: An operation was removed without being delivered."""

    operation_id: str = ""
    kind: str = ""
    reason: str = ""


# -------------------------------------------------------------------------
# Drain Events
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class DrainStarted(DomainEvent):
    """Event: The orchestrator began draining a queue snapshot."""

    trigger: str = ""
    snapshot_size: int = 0


@dataclass(frozen=True)
class DrainCompleted(DomainEvent):
    """Event: A drain processed its whole snapshot."""

    trigger: str = ""
    synced: int = 0
    failed: int = 0
    deferred: int = 0
    skipped: bool = False


# -------------------------------------------------------------------------
# Connectivity & Lifecycle Events
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class WentOnline(DomainEvent):
    """Event: Network connectivity was regained."""


@dataclass(frozen=True)
class WentOffline(DomainEvent):
    """Event: Network connectivity was lost."""


@dataclass(frozen=True)
class EnteredForeground(DomainEvent):
    """Event: The app became active."""


@dataclass(frozen=True)
class EnteredBackground(DomainEvent):
    """Event: The app was sent to the background."""


class EventBus:
    """
    Simple event bus for publishing and subscribing to domain events.

    Publishing may happen from timer and worker threads, so the handler
    table and history are guarded by a lock. Handlers run outside the lock.
    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self, history_limit: int = 500):
        self._handlers: dict[type, list] = {}
        self._history: deque = deque(maxlen=history_limit)
        self._lock = threading.Lock()
        self.logger = logging.getLogger("EventBus")

    def subscribe(self, event_type: type, handler: Callable) -> None:
        """Subscribe a handler to an event type."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
        return False

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        with self._lock:
            self._history.append(event)
            # Specific handlers first, then catch-all handlers
            handlers = list(self._handlers.get(type(event), []))
            handlers += self._handlers.get(DomainEvent, [])

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Handler for {event.event_type} failed: {e}")

    def get_history(self) -> list[DomainEvent]:
        """Get all retained published events."""
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        """Clear event history."""
        with self._lock:
            self._history.clear()
