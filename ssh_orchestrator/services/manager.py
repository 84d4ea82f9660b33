"""Fan-out of SSH commands across many instances.

Retry Strategy:
- Every attempt opens a brand-new connection, connections are never pooled
- The connection of attempt N is closed before attempt N+1 starts
- A fixed delay separates attempts, whichever step (connect or execute) failed

Polling:
- Background jobs live in tmux sessions named after the job id
- Their status is observed by listing tmux sessions on every instance
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from ssh_orchestrator.config import Settings
from ssh_orchestrator.errors import SSHError, WaitTimeoutError
from ssh_orchestrator.models import (
    CommandOutput,
    CommandStatus,
    Instance,
    InstanceResult,
    SSHCommand,
)
from ssh_orchestrator.protocols import RemoteSession
from ssh_orchestrator.services.connection import SSHConnection

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[object]]

# Marks a max_polls argument that was not passed
_MANAGER_DEFAULT: Any = object()


@dataclass(frozen=True)
class SSHConnectionManager:
    """Connection policy shared by all fan-out operations.

    Holds no mutable state, so one manager can serve concurrent
    operations: each attempt on each instance creates its own connection.
    """

    STATUS_COMMAND = "(tmux ls || true)"

    username: str
    private_key_file: str
    timeout: float | None = None
    retries: int = 1
    retry_delay: float = 5.0
    poll_interval: float = 5.0
    max_polls: int | None = None
    known_hosts: str | None = None
    sleep: Sleep = field(default=asyncio.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate the connection policy.

        Raises:
            ValueError: If retries or max_polls is not positive
        """
        if self.retries <= 0:
            raise ValueError(f"retries must be > 0, got {self.retries}")
        if self.max_polls is not None and self.max_polls <= 0:
            raise ValueError(f"max_polls must be > 0, got {self.max_polls}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SSHConnectionManager":
        """Create a manager from environment settings."""
        if settings.known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED. "
                "Set SSH_ORCH_KNOWN_HOSTS to a valid known_hosts file path."
            )
        return cls(
            username=settings.username,
            private_key_file=settings.private_key_file,
            timeout=settings.timeout,
            retries=settings.retries,
            retry_delay=settings.retry_delay,
            poll_interval=settings.poll_interval,
            max_polls=settings.max_polls,
            known_hosts=settings.known_hosts,
        )

    def with_timeout(self, timeout: float) -> "SSHConnectionManager":
        """Set a timeout duration for the connections."""
        return replace(self, timeout=timeout)

    def with_retries(self, retries: int) -> "SSHConnectionManager":
        """Set the maximum number of attempts per instance."""
        return replace(self, retries=retries)

    async def connect(self, instance: Instance) -> RemoteSession:
        """Open a new authenticated session to the instance."""
        return await SSHConnection.connect(
            instance.hostname,
            self.username,
            self.private_key_file,
            timeout=self.timeout,
            port=instance.port,
            known_hosts=self.known_hosts,
        )

    async def _execute_on(self, instance: Instance, command: SSHCommand) -> InstanceResult:
        """Run the command on one instance, retrying with fresh connections."""
        rendered = command.stringify(instance.index)
        error: SSHError | None = None

        for attempt in range(1, self.retries + 1):
            try:
                async with await self.connect(instance) as connection:
                    output = await connection.execute(rendered)
                if attempt > 1:
                    logger.info(
                        "Command succeeded on %s after %d attempts",
                        instance.ssh_address,
                        attempt,
                    )
                return InstanceResult(instance=instance, attempts=attempt, output=output)
            except SSHError as e:
                error = e

            if attempt < self.retries:
                logger.warning(
                    "Attempt %d/%d on %s failed: %s, retrying in %ss",
                    attempt,
                    self.retries,
                    instance.ssh_address,
                    error,
                    self.retry_delay,
                )
                await self.sleep(self.retry_delay)

        logger.error(
            "Giving up on %s after %d attempt(s): %s",
            instance.ssh_address,
            self.retries,
            error,
        )
        return InstanceResult(instance=instance, attempts=self.retries, error=error)

    async def execute_each(
        self,
        instances: Iterable[Instance],
        command: SSHCommand,
    ) -> list[InstanceResult]:
        """Execute a command concurrently on all instances.

        Args:
            instances: Target instances
            command: Command to render and run on each instance

        Returns:
            One InstanceResult per instance, in the order given. Instances
            that exhausted their retries carry their last error.

        Raises:
            ValueError: If two instances share the same index
        """
        targets = list(instances)
        indices = [instance.index for instance in targets]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Instance indices must be unique, got {indices}")

        logger.debug("Executing command on %d instance(s)", len(targets))
        tasks = [self._execute_on(instance, command) for instance in targets]
        results = await asyncio.gather(*tasks)
        return list(results)

    async def execute(
        self,
        instances: Iterable[Instance],
        command: SSHCommand,
    ) -> dict[int, CommandOutput]:
        """Execute a command on all instances, requiring every one to succeed.

        Args:
            instances: Target instances
            command: Command to render and run on each instance

        Returns:
            Captured output keyed by instance index

        Raises:
            SSHError: Final error of the first instance (in the order given)
                that exhausted its retries
        """
        results = await self.execute_each(instances, command)
        for result in results:
            if result.error is not None:
                raise result.error
        return {result.instance.index: result.output for result in results}

    async def wait_for_command(
        self,
        instances: Iterable[Instance],
        command: SSHCommand,
        status: CommandStatus,
        max_polls: int | None = _MANAGER_DEFAULT,
    ) -> None:
        """Block until the background command reaches status on every instance.

        Args:
            instances: Instances running the background command
            command: Command launched with run_background()
            status: Status to wait for
            max_polls: Maximum number of polling rounds. Defaults to the
                manager's max_polls, None waits forever.

        Raises:
            SSHError: If listing jobs fails on an instance after all retries
            WaitTimeoutError: If the status is not reached within max_polls
            ValueError: If max_polls is not positive
        """
        limit = self.max_polls if max_polls is _MANAGER_DEFAULT else max_polls
        if limit is not None and limit <= 0:
            raise ValueError(f"max_polls must be > 0, got {limit}")

        targets = list(instances)
        listing = SSHCommand.constant(self.STATUS_COMMAND)

        polls = 0
        while True:
            await self.sleep(self.poll_interval)
            outputs = await self.execute(targets, listing)
            polls += 1

            pending = [
                instance.ssh_address
                for instance in targets
                if command.status(outputs[instance.index].stdout) != status
            ]
            if not pending:
                logger.info(
                    "Command %s is %s on all %d instance(s)",
                    command.background,
                    status.value,
                    len(targets),
                )
                return

            logger.debug(
                "Poll %d: %d instance(s) not yet %s",
                polls,
                len(pending),
                status.value,
            )
            if limit is not None and polls >= limit:
                raise WaitTimeoutError(polls, pending)
