"""Exceptions raised by memgov."""


class MemgovError(Exception):
    """Base class for memgov errors."""


class ConfigError(MemgovError, ValueError):
    """Invalid governor configuration."""


class SamplingError(MemgovError):
    """The process list could not be enumerated."""


class RootNotFound(MemgovError):
    """The tracked root process is not present in a snapshot."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Process {pid} not found")
        self.pid = pid
