"""Tests for EnvironmentConfigProvider."""

import os
from pathlib import Path

import pytest

from fieldsync.adapters.config import EnvironmentConfigProvider


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate from the developer's real FIELDSYNC_* settings and .env."""
    for key in list(os.environ):
        if key.startswith("FIELDSYNC_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestEnvironmentConfigProvider:
    """Tests for EnvironmentConfigProvider."""

    def test_defaults(self):
        config = EnvironmentConfigProvider().load()

        assert config.transport.api_url == ""
        assert config.sync.sync_interval == 60.0
        assert config.sync.max_queue_retries is None
        assert config.retry.max_retries == 3
        assert config.retry.initial_delay == 1.0
        assert config.data_dir == Path.home() / ".fieldsync"
        assert config.verbose is False

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://exams.example.org")
        monkeypatch.setenv("FIELDSYNC_API_TOKEN", "secret")
        monkeypatch.setenv("FIELDSYNC_MAX_RETRIES", "5")
        monkeypatch.setenv("FIELDSYNC_MAX_DELAY", "30")
        monkeypatch.setenv("FIELDSYNC_MAX_QUEUE_RETRIES", "10")
        monkeypatch.setenv("FIELDSYNC_VERBOSE", "true")

        config = EnvironmentConfigProvider().load()

        assert config.transport.api_url == "https://exams.example.org"
        assert config.transport.api_token == "secret"
        assert config.retry.max_retries == 5
        assert config.retry.max_delay == 30.0
        assert config.sync.max_queue_retries == 10
        assert config.verbose is True

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text(
            "# comment\n"
            "FIELDSYNC_API_URL='https://from-file.example.org'\n"
            "FIELDSYNC_SYNC_INTERVAL=30\n"
            "OTHER_SETTING=ignored\n"
        )

        provider = EnvironmentConfigProvider(env_file=env_file)
        config = provider.load()

        assert config.transport.api_url == "https://from-file.example.org"
        assert config.sync.sync_interval == 30.0
        assert provider.get("other_setting") is None

    def test_dotenv_in_working_directory(self, tmp_path):
        (tmp_path / ".env").write_text("FIELDSYNC_API_URL=https://cwd.example.org\n")

        assert EnvironmentConfigProvider().get("api_url") == "https://cwd.example.org"

    def test_environment_beats_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "custom.env"
        env_file.write_text("FIELDSYNC_API_URL=https://file\n")
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://env")

        assert EnvironmentConfigProvider(env_file=env_file).get("api_url") == "https://env"

    def test_cli_overrides_win(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://env")

        provider = EnvironmentConfigProvider(cli_overrides={
            "api_url": "https://cli",
            "data_dir": str(tmp_path),
            "interval": 5,
            "verbose": None,
        })
        config = provider.load()

        assert config.transport.api_url == "https://cli"
        assert config.data_dir == tmp_path
        assert config.sync.sync_interval == 5.0
        assert config.verbose is False

    def test_verbose_zero_is_false(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_VERBOSE", "0")
        assert EnvironmentConfigProvider().load().verbose is False

    def test_validate_missing_url(self):
        errors = EnvironmentConfigProvider().validate()
        assert any("FIELDSYNC_API_URL" in e for e in errors)

    def test_validate_bad_numbers(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://x")
        monkeypatch.setenv("FIELDSYNC_MAX_RETRIES", "many")
        monkeypatch.setenv("FIELDSYNC_SYNC_INTERVAL", "-1")

        errors = EnvironmentConfigProvider().validate()

        assert len(errors) == 2
        # invalid numbers fall back to defaults when loading anyway
        assert EnvironmentConfigProvider().load().retry.max_retries == 3

    def test_validate_zero_interval_and_history_limit(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://x")
        monkeypatch.setenv("FIELDSYNC_SYNC_INTERVAL", "0")
        monkeypatch.setenv("FIELDSYNC_HISTORY_LIMIT", "0")
        monkeypatch.setenv("FIELDSYNC_MAX_RETRIES", "0")

        errors = EnvironmentConfigProvider().validate()

        assert sorted(errors) == [
            "FIELDSYNC_HISTORY_LIMIT must be positive",
            "FIELDSYNC_SYNC_INTERVAL must be positive",
        ]

    def test_max_retries_cli_override(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_MAX_RETRIES", "5")

        provider = EnvironmentConfigProvider(cli_overrides={"max_retries": 1})

        assert provider.load().retry.max_retries == 1

    def test_valid_config(self, monkeypatch):
        monkeypatch.setenv("FIELDSYNC_API_URL", "https://x")
        assert EnvironmentConfigProvider().validate() == []
