"""Remote instance data model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Instance:
    """One addressable remote host taking part in a benchmark run."""

    index: int
    hostname: str
    port: int = 22

    @property
    def ssh_address(self) -> str:
        """Get the address used for SSH connections.

        Returns:
            Address formatted as host:port
        """
        return f"{self.hostname}:{self.port}"
