"""Protocol interfaces for dependency inversion.

Defines the structural interface SSHConnectionManager.connect() returns
and the retry loop drives, so remote sessions can be swapped for fakes
in tests.

Usage Example:

    from ssh_orchestrator.protocols import RemoteSession

    async def uptime(session: RemoteSession) -> str:
        '''Function depends on protocol, not concrete implementation.'''
        stdout, _ = await session.execute("uptime")
        return stdout

    # Can pass the real session
    from ssh_orchestrator.services.connection import SSHConnection
    await uptime(await SSHConnection.connect("10.0.0.1", "ubuntu", key))

    # Or a fake for testing
    class FakeSession:
        async def execute(self, command, path=None):
            return CommandOutput("up 3 days", "")
        ...
"""

from types import TracebackType
from typing import Protocol, runtime_checkable

from ssh_orchestrator.models import CommandOutput


@runtime_checkable
class RemoteSession(Protocol):
    """Protocol for a session to a single remote instance.

    Implementations must be fully authenticated when handed out and
    must run every command on its own channel.
    """

    address: str

    async def execute(self, command: str, path: str | None = None) -> CommandOutput:
        """Run a command to completion.

        Args:
            command: Shell command to run
            path: Optional directory to run the command from

        Returns:
            Captured stdout and stderr

        Raises:
            SSHSessionError: If the channel cannot be opened
            SSHConnectionError: If the transport fails
            CommandFailedError: If the exit status is not zero
        """
        ...

    async def upload(self, path: str, content: bytes) -> None:
        """Write a remote file."""
        ...

    async def download(self, path: str) -> str:
        """Read a remote file."""
        ...

    async def close(self) -> None:
        """Close the session."""
        ...

    async def __aenter__(self) -> "RemoteSession":
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the session on leaving the context."""
        ...


__all__ = ["RemoteSession"]
