"""
Connectivity & Lifecycle Monitor - Edge-triggered network and app state.

Platform callbacks report what they observe; the monitor compares with
the last observation and publishes an event only on a change.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from ...core.domain.events import (
    DomainEvent,
    EnteredBackground,
    EnteredForeground,
    EventBus,
    WentOffline,
    WentOnline,
)


class AppState(str, Enum):
    """App lifecycle state."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"


class ConnectivityMonitor:
    """
    Tracks online/offline and foreground/background transitions.

    Not persisted: every process starts online and in the foreground
    until told otherwise.
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger("ConnectivityMonitor")

        self._lock = threading.Lock()
        self._online = True
        self._app_state = AppState.FOREGROUND

    @property
    def is_online(self) -> bool:
        with self._lock:
            return self._online

    @property
    def app_state(self) -> AppState:
        with self._lock:
            return self._app_state

    @property
    def is_foreground(self) -> bool:
        return self.app_state == AppState.FOREGROUND

    def report_connectivity(self, online: bool) -> bool:
        """
        Report the observed network state.

        Returns:
            True if this was a transition (an event was published)
        """
        with self._lock:
            if self._online == online:
                return False
            self._online = online

        self.logger.info(f"Network status: {'online' if online else 'offline'}")
        self._publish(WentOnline() if online else WentOffline())
        return True

    def report_app_state(self, state: AppState) -> bool:
        """
        Report the observed lifecycle state.

        Returns:
            True if this was a transition (an event was published)
        """
        state = AppState(state)
        with self._lock:
            if self._app_state == state:
                return False
            self._app_state = state

        self.logger.info(f"App entered {state.value}")
        if state == AppState.FOREGROUND:
            self._publish(EnteredForeground())
        else:
            self._publish(EnteredBackground())
        return True

    def _publish(self, event: DomainEvent) -> None:
        self.event_bus.publish(event)
