"""Shared fixtures: scripted remote sessions and a recording sleep."""

from typing import Any, Generator
from unittest.mock import patch

import pytest

from ssh_orchestrator.errors import SSHConnectionError, SSHError, SSHSessionError
from ssh_orchestrator.models import CommandOutput, Instance
from ssh_orchestrator.services.connection import SSHConnection
from ssh_orchestrator.services.manager import SSHConnectionManager


class FakeSession:
    """In-memory stand-in for SSHConnection."""

    def __init__(self, hostname: str, port: int, outcome: CommandOutput | SSHError):
        self.hostname = hostname
        self.address = f"{hostname}:{port}"
        self.outcome = outcome
        self.commands: list[str] = []
        self.closed = False

    async def execute(self, command: str, path: str | None = None) -> CommandOutput:
        self.commands.append(command)
        if isinstance(self.outcome, SSHError):
            raise self.outcome
        return self.outcome

    async def upload(self, path: str, content: bytes) -> None:
        pass

    async def download(self, path: str) -> str:
        return ""

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class FakeFleet:
    """Scripted outcome of every connection attempt, per hostname.

    Connection and session errors are raised while connecting, any other
    outcome is produced by execute(). The last outcome repeats forever.
    """

    def __init__(self) -> None:
        self.scripts: dict[str, list[CommandOutput | SSHError]] = {}
        self.sessions: list[FakeSession] = []
        self.connects: list[str] = []

    def script(self, hostname: str, *outcomes: CommandOutput | SSHError) -> None:
        self.scripts[hostname] = list(outcomes)

    def sessions_for(self, hostname: str) -> list[FakeSession]:
        return [s for s in self.sessions if s.hostname == hostname]

    async def connect(
        self,
        hostname: str,
        username: str,
        private_key_file: str,
        timeout: float | None = None,
        port: int = 22,
        known_hosts: str | None = None,
    ) -> FakeSession:
        # Attempts on one host must never overlap
        assert all(s.closed for s in self.sessions_for(hostname))
        self.connects.append(hostname)

        outcomes = self.scripts[hostname]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, (SSHConnectionError, SSHSessionError)):
            raise outcome

        session = FakeSession(hostname, port, outcome)
        self.sessions.append(session)
        return session


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


@pytest.fixture
def fleet() -> Generator[FakeFleet, None, None]:
    """Replace real SSH connections with scripted sessions."""
    fake = FakeFleet()
    with patch.object(SSHConnection, "connect", new=fake.connect):
        yield fake


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def manager(sleep: RecordingSleep) -> SSHConnectionManager:
    """Manager with three attempts per instance and no real delays."""
    return SSHConnectionManager(
        username="ubuntu",
        private_key_file="/keys/id_ed25519",
        retries=3,
        sleep=sleep,
    )


@pytest.fixture
def instances() -> list[Instance]:
    return [
        Instance(index=0, hostname="10.0.0.1"),
        Instance(index=1, hostname="10.0.0.2"),
        Instance(index=2, hostname="10.0.0.3"),
    ]
