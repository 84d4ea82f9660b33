"""Tests for environment settings."""

import logging

import pytest

from ssh_orchestrator.config import Settings

ENV_KEYS = [
    "SSH_ORCH_USERNAME",
    "SSH_ORCH_PRIVATE_KEY",
    "SSH_ORCH_KNOWN_HOSTS",
    "SSH_ORCH_TIMEOUT",
    "SSH_ORCH_RETRIES",
    "SSH_ORCH_RETRY_DELAY",
    "SSH_ORCH_POLL_INTERVAL",
    "SSH_ORCH_MAX_POLLS",
    "SSH_ORCH_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", "/home/bench")

    settings = Settings.from_env()

    assert settings.username == "ubuntu"
    assert settings.private_key_file == "/home/bench/.ssh/id_rsa"
    assert settings.known_hosts is None
    assert settings.timeout == 30.0
    assert settings.retries == 5
    assert settings.retry_delay == 5.0
    assert settings.poll_interval == 5.0
    assert settings.max_polls is None
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSH_ORCH_USERNAME", "admin")
    monkeypatch.setenv("SSH_ORCH_PRIVATE_KEY", "/keys/bench")
    monkeypatch.setenv("SSH_ORCH_KNOWN_HOSTS", "/etc/ssh/known_hosts")
    monkeypatch.setenv("SSH_ORCH_TIMEOUT", "12.5")
    monkeypatch.setenv("SSH_ORCH_RETRIES", "3")
    monkeypatch.setenv("SSH_ORCH_RETRY_DELAY", "1")
    monkeypatch.setenv("SSH_ORCH_POLL_INTERVAL", "2")
    monkeypatch.setenv("SSH_ORCH_MAX_POLLS", "100")
    monkeypatch.setenv("SSH_ORCH_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.username == "admin"
    assert settings.private_key_file == "/keys/bench"
    assert settings.known_hosts == "/etc/ssh/known_hosts"
    assert settings.timeout == 12.5
    assert settings.retries == 3
    assert settings.retry_delay == 1.0
    assert settings.poll_interval == 2.0
    assert settings.max_polls == 100
    assert settings.log_level == "DEBUG"


def test_invalid_numbers_fall_back(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("SSH_ORCH_RETRIES", "many")
    monkeypatch.setenv("SSH_ORCH_TIMEOUT", "soon")
    monkeypatch.setenv("SSH_ORCH_MAX_POLLS", "forever")

    with caplog.at_level(logging.WARNING, logger="ssh_orchestrator.config.settings"):
        settings = Settings.from_env()

    assert settings.retries == 5
    assert settings.timeout == 30.0
    assert settings.max_polls is None
    assert "SSH_ORCH_RETRIES" in caplog.text


def test_empty_known_hosts_disables_verification(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSH_ORCH_KNOWN_HOSTS", "")

    assert Settings.from_env().known_hosts is None
