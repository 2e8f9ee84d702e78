"""
Environment Config Provider - Load configuration from environment variables.

Supports:
- .env files
- Environment variables (FIELDSYNC_API_URL, FIELDSYNC_API_TOKEN, ...)
- Command line argument overrides
"""

import os
from pathlib import Path
from typing import Any, Optional

from ...core.ports.config_provider import (
    ConfigProviderPort,
    AppConfig,
    RetryPolicy,
    SyncConfig,
    TransportConfig,
)


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider that loads from environment variables and .env files.
    """

    ENV_PREFIX = "FIELDSYNC_"

    # config key -> type used for coercion
    NUMERIC_KEYS = {
        "sync_interval": float,
        "operation_timeout": float,
        "request_timeout": float,
        "initial_delay": float,
        "max_delay": float,
        "backoff_multiplier": float,
        "max_retries": int,
        "max_queue_retries": int,
        "history_limit": int,
    }

    # numeric keys where zero is meaningless
    POSITIVE_KEYS = ("sync_interval", "operation_timeout", "request_timeout", "history_limit")

    def __init__(
        self,
        env_file: Optional[Path] = None,
        cli_overrides: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize the config provider.

        Args:
            env_file: Path to .env file (auto-detected if not specified)
            cli_overrides: Command line argument overrides
        """
        self._values: dict[str, Any] = {}
        self._env_file = env_file
        self._cli_overrides = cli_overrides or {}

        # Load configuration
        self._load_env_file()
        self._load_environment()
        self._apply_cli_overrides()

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Environment"

    def load(self) -> AppConfig:
        """Load complete configuration."""
        defaults = AppConfig()

        transport = TransportConfig(
            api_url=self.get("api_url", ""),
            api_token=self.get("api_token", ""),
            request_timeout=self._number("request_timeout", defaults.transport.request_timeout),
            health_endpoint=self.get("health_endpoint", defaults.transport.health_endpoint),
        )

        sync = SyncConfig(
            sync_interval=self._number("sync_interval", defaults.sync.sync_interval),
            operation_timeout=self._number("operation_timeout", defaults.sync.operation_timeout),
            max_queue_retries=self._number("max_queue_retries", None),
            history_limit=self._number("history_limit", defaults.sync.history_limit),
        )

        retry = RetryPolicy(
            max_retries=self._number("max_retries", defaults.retry.max_retries),
            initial_delay=self._number("initial_delay", defaults.retry.initial_delay),
            max_delay=self._number("max_delay", defaults.retry.max_delay),
            backoff_multiplier=self._number("backoff_multiplier", defaults.retry.backoff_multiplier),
        )

        data_dir = self.get("data_dir")

        return AppConfig(
            transport=transport,
            sync=sync,
            retry=retry,
            data_dir=Path(data_dir).expanduser() if data_dir else defaults.data_dir,
            verbose=self._flag("verbose"),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        # Normalize key
        key = key.lower().replace("-", "_")

        # Check CLI overrides first
        if key in self._cli_overrides and self._cli_overrides[key] is not None:
            return self._cli_overrides[key]

        # Check loaded values
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        key = key.lower().replace("-", "_")
        self._values[key] = value

    def validate(self) -> list[str]:
        """Validate configuration."""
        errors = []

        if not self.get("api_url"):
            errors.append("Missing FIELDSYNC_API_URL - set in environment or .env file")

        for key, kind in self.NUMERIC_KEYS.items():
            raw = self.get(key)
            if raw is None:
                continue
            try:
                value = kind(raw)
            except (TypeError, ValueError):
                errors.append(f"Invalid {self.ENV_PREFIX}{key.upper()}: {raw!r}")
                continue
            if key in self.POSITIVE_KEYS and value <= 0:
                errors.append(f"{self.ENV_PREFIX}{key.upper()} must be positive")
            elif value < 0:
                errors.append(f"{self.ENV_PREFIX}{key.upper()} must not be negative")

        return errors

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _flag(self, key: str) -> bool:
        value = self.get(key, False)
        if isinstance(value, str):
            return value.lower() in ("1", "on")
        return bool(value)

    def _number(self, key: str, default: Any) -> Any:
        """Coerce a numeric setting, falling back to default if unparsable."""
        raw = self.get(key)
        if raw is None or raw == "":
            return default
        try:
            return self.NUMERIC_KEYS[key](raw)
        except (TypeError, ValueError):
            return default

    def _load_env_file(self) -> None:
        """Load values from .env file."""
        env_file = self._find_env_file()
        if not env_file:
            return

        for line in env_file.read_text().splitlines():
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            # Parse key=value
            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            if not key.upper().startswith(self.ENV_PREFIX):
                continue

            key = key[len(self.ENV_PREFIX):].lower()
            self._values[key] = self._convert(value.strip().strip('"').strip("'"))

    def _find_env_file(self) -> Optional[Path]:
        """Find .env file."""
        if self._env_file:
            return self._env_file if self._env_file.exists() else None

        # Check current directory
        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            return cwd_env

        return None

    def _load_environment(self) -> None:
        """Load values from FIELDSYNC_* environment variables."""
        for env_key, raw_value in os.environ.items():
            if not env_key.startswith(self.ENV_PREFIX):
                continue
            config_key = env_key[len(self.ENV_PREFIX):].lower()
            self._values[config_key] = self._convert(raw_value)

    def _apply_cli_overrides(self) -> None:
        """Apply CLI argument overrides."""
        # Map CLI args to config keys
        cli_mapping = {
            "api_url": "api_url",
            "data_dir": "data_dir",
            "interval": "sync_interval",
            "max_retries": "max_retries",
            "verbose": "verbose",
        }

        for cli_key, config_key in cli_mapping.items():
            if cli_key in self._cli_overrides and self._cli_overrides[cli_key] is not None:
                self._values[config_key] = self._cli_overrides[cli_key]

    @staticmethod
    def _convert(raw_value: str) -> Any:
        """Convert boolean-ish values."""
        if raw_value.lower() in ("true", "yes"):
            return True
        if raw_value.lower() in ("false", "no"):
            return False
        return raw_value
