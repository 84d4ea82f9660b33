"""SSH session to a single remote instance."""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import TYPE_CHECKING

import asyncssh

from ssh_orchestrator.errors import (
    CommandFailedError,
    OutputTimeoutError,
    SSHConnectionError,
    SSHSessionError,
)
from ssh_orchestrator.models import CommandOutput
from ssh_orchestrator.utils.shell import quote_path

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class SSHConnection:
    """Authenticated SSH connection to one host.

    Instances are only handed out by connect() once the handshake and
    public key authentication completed. Each execute() call runs on its
    own channel, so a connection can serve several sequential commands.
    """

    DEFAULT_TIMEOUT: float = 30.0
    READ_CHUNK: int = 65536
    UPLOAD_MODE: int = 0o644

    def __init__(
        self,
        connection: asyncssh.SSHClientConnection,
        address: str,
        timeout: float | None = None,
    ) -> None:
        """Wrap an established asyncssh connection.

        Args:
            connection: Authenticated asyncssh client connection
            address: Address (host:port) used in error messages
            timeout: Idle timeout in seconds, None for the default
        """
        self._connection = connection
        self.address = address
        self.timeout = self.DEFAULT_TIMEOUT
        self.with_timeout(timeout)

    @classmethod
    async def connect(
        cls,
        hostname: str,
        username: str,
        private_key_file: "str | Path",
        timeout: float | None = None,
        port: int = 22,
        known_hosts: str | None = None,
    ) -> "SSHConnection":
        """Open and authenticate a new connection.

        Args:
            hostname: Host to connect to
            username: SSH username
            private_key_file: Path to the private key used for authentication
            timeout: Connection and idle timeout in seconds
            port: SSH port
            known_hosts: Path to known_hosts file, or None to disable verification

        Returns:
            Ready-to-use connection

        Raises:
            SSHConnectionError: If the host cannot be reached
            SSHSessionError: If the key cannot be loaded, or the handshake
                or authentication fails
        """
        address = f"{hostname}:{port}"
        connect_timeout = cls.DEFAULT_TIMEOUT if timeout is None else timeout

        try:
            client_key = asyncssh.read_private_key(str(private_key_file))
        except (OSError, asyncssh.KeyImportError) as e:
            raise SSHSessionError(address, e) from e

        logger.debug("Opening SSH connection to %s@%s", username, address)
        try:
            conn = await asyncio.wait_for(
                asyncssh.connect(
                    hostname,
                    port=port,
                    username=username,
                    client_keys=[client_key],
                    known_hosts=known_hosts,
                    agent_path=None,
                    password=None,
                    kbdint_auth=False,
                ),
                connect_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise SSHConnectionError(address, e) from e
        except asyncssh.Error as e:
            raise SSHSessionError(address, e) from e

        logger.debug("SSH connection established to %s@%s", username, address)
        return cls(conn, address, timeout)

    def with_timeout(self, timeout: float | None) -> "SSHConnection":
        """Set the idle timeout, resetting to the default when None."""
        self.timeout = self.DEFAULT_TIMEOUT if timeout is None else timeout
        return self

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        """Map transport and protocol failures onto the error taxonomy."""
        try:
            yield
        except (OSError, asyncio.TimeoutError, asyncssh.DisconnectError) as e:
            raise SSHConnectionError(self.address, e) from e
        except asyncssh.Error as e:
            raise SSHSessionError(self.address, e) from e

    async def _collect_output(self, process: asyncssh.SSHClientProcess) -> tuple[str, str]:
        """Read stdout and stderr to EOF.

        Data on either stream restarts the idle deadline, so a command
        writing only to one stream never times out while it is busy.

        Raises:
            OutputTimeoutError: If both streams stay silent for the timeout
        """
        loop = asyncio.get_running_loop()
        last_activity = loop.time()

        async def drain(stream: "asyncssh.SSHReader[str]") -> str:
            nonlocal last_activity
            chunks: list[str] = []
            while True:
                chunk = await stream.read(self.READ_CHUNK)
                if not chunk:
                    return "".join(chunks)
                last_activity = loop.time()
                chunks.append(chunk)

        readers = asyncio.gather(drain(process.stdout), drain(process.stderr))
        try:
            while not readers.done():
                remaining = last_activity + self.timeout - loop.time()
                if remaining <= 0:
                    raise OutputTimeoutError(self.address, self.timeout)
                await asyncio.wait({readers}, timeout=remaining)
        finally:
            if not readers.done():
                readers.cancel()

        stdout, stderr = readers.result()
        return stdout, stderr

    async def execute(self, command: str, path: str | None = None) -> CommandOutput:
        """Run a command to completion on a new channel.

        Args:
            command: Shell command to run
            path: Optional directory to run the command from

        Returns:
            Captured stdout and stderr

        Raises:
            SSHSessionError: If the channel cannot be opened
            SSHConnectionError: If reading the output fails or times out
            CommandFailedError: If the exit status is not zero
        """
        if path is not None:
            command = f"(cd {quote_path(path)} && {command})"

        with self._translate_errors():
            process = await self._connection.create_process(command, encoding="utf-8")
            try:
                stdout, stderr = await self._collect_output(process)
                try:
                    await asyncio.wait_for(process.wait(), self.timeout)
                except asyncio.TimeoutError as e:
                    raise OutputTimeoutError(self.address, self.timeout) from e
            finally:
                process.close()

        exit_status = process.exit_status
        if exit_status != 0:
            raise CommandFailedError(self.address, exit_status, stderr)

        return CommandOutput(stdout, stderr)

    async def upload(self, path: str, content: bytes) -> None:
        """Write content to a remote file over SFTP with mode 0644."""
        attrs = asyncssh.SFTPAttrs(permissions=self.UPLOAD_MODE)
        with self._translate_errors():
            async with self._connection.start_sftp_client() as sftp:
                async with sftp.open(path, "wb", attrs=attrs) as remote_file:
                    await remote_file.write(content)
        logger.debug("Uploaded %d bytes to %s:%s", len(content), self.address, path)

    async def download(self, path: str) -> str:
        """Read a remote file over SFTP.

        Raises:
            SSHSessionError: If the file cannot be opened
            SSHConnectionError: If the transfer is interrupted
        """
        with self._translate_errors():
            async with self._connection.start_sftp_client() as sftp:
                async with sftp.open(path, "rb") as remote_file:
                    content = await remote_file.read()
        return content.decode("utf-8", errors="replace")

    async def close(self) -> None:
        """Close the connection and wait until it is fully shut down."""
        self._connection.close()
        await self._connection.wait_closed()

    async def __aenter__(self) -> "SSHConnection":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
