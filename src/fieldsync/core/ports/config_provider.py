"""
Config Provider Port - Abstract interface for configuration loading.

Also defines the configuration dataclasses shared by every layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff settings for the retry executor. Delays are in seconds.

    The delay before attempt n+1 is
    ``min(initial_delay * backoff_multiplier ** n, max_delay)``.
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given zero-based attempt failed."""
        return min(self.initial_delay * self.backoff_multiplier ** attempt, self.max_delay)

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


@dataclass
class TransportConfig:
    """Remote authority connection settings."""

    api_url: str = ""
    api_token: str = ""
    request_timeout: float = 15.0
    health_endpoint: str = "/api/health"


@dataclass
class SyncConfig:
    """Orchestrator behavior."""

    sync_interval: float = 60.0
    operation_timeout: float = 15.0
    max_queue_retries: Optional[int] = None  # None: retry across drains forever
    history_limit: int = 100


@dataclass
class AppConfig:
    """Complete application configuration."""

    transport: TransportConfig = field(default_factory=TransportConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".fieldsync")
    verbose: bool = False


class ConfigProviderPort(ABC):
    """Abstract interface for configuration sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """Load complete configuration."""
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        ...
