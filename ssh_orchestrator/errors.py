"""Error taxonomy for remote command orchestration.

Every error carries the address of the host it originated from:
- SSHConnectionError: the host could not be reached (network level)
- OutputTimeoutError: a connected command produced no output in time
- SSHSessionError: handshake, authentication or channel protocol failure
- CommandFailedError: the remote command exited with a non-zero status
"""


class SSHError(Exception):
    """Base class for failures talking to a remote instance."""

    def __init__(self, address: str, message: str):
        """Initialize SSH error.

        Args:
            address: Address (host:port) of the remote instance
            message: Human readable description
        """
        self.address = address
        super().__init__(message)


class SSHConnectionError(SSHError):
    """Failed to reach a host or lost the transport mid-operation."""

    def __init__(self, address: str, original_error: BaseException):
        """Initialize connection error.

        Args:
            address: Address of the remote instance
            original_error: Underlying I/O error
        """
        self.original_error = original_error
        super().__init__(address, f"Cannot connect to {address}: {original_error}")


class OutputTimeoutError(SSHConnectionError):
    """Established connection stayed silent for longer than the idle timeout."""

    def __init__(self, address: str, timeout: float):
        """Initialize output timeout error.

        Args:
            address: Address of the remote instance
            timeout: Idle timeout in seconds that elapsed
        """
        self.timeout = timeout
        self.original_error = TimeoutError(f"no output for {timeout}s")
        SSHError.__init__(
            self,
            address,
            f"Timed out after {timeout}s waiting for output from {address}",
        )


class SSHSessionError(SSHError):
    """Handshake, authentication or channel failure on an SSH session."""

    def __init__(self, address: str, original_error: BaseException):
        """Initialize session error.

        Args:
            address: Address of the remote instance
            original_error: Underlying protocol error
        """
        self.original_error = original_error
        super().__init__(address, f"SSH session error with {address}: {original_error}")


class CommandFailedError(SSHError):
    """Remote command returned a non-zero exit status."""

    def __init__(self, address: str, exit_code: int | None, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            address,
            f"Command on {address} exited with code {exit_code}: {stderr.strip()}",
        )


class WaitTimeoutError(Exception):
    """Background jobs did not reach the desired status in time."""

    def __init__(self, polls: int, pending: list[str]):
        """Initialize wait timeout error.

        Args:
            polls: Number of polling rounds performed
            pending: Addresses whose status never matched
        """
        self.polls = polls
        self.pending = pending
        super().__init__(
            f"Status not reached after {polls} poll(s) on: {', '.join(pending)}"
        )
