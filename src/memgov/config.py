"""Governor configuration."""

import re
from dataclasses import dataclass, field

from memgov.exceptions import ConfigError
from memgov.models import MB

# Compiler and linker tools that may be suspended.
DEFAULT_WHITELIST: frozenset[str] = frozenset({"cc1plus", "cc1", "as", "ld"})

DEFAULT_VSZ_LIMIT_MB = 1024
DEFAULT_CHECK_INTERVAL = 0.25  # Seconds

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: str) -> float:
    """
    Parse a scan interval such as "250ms", "1.5s" or "2m" into seconds.

    A bare number is taken as seconds.

    Raises:
        ConfigError: If the value is not a positive duration.
    """
    match = _DURATION_RE.match(value)
    if match is None:
        raise ConfigError(f"invalid duration: {value!r}")
    seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2)]
    if seconds <= 0:
        raise ConfigError(f"duration must be positive: {value!r}")
    return seconds


@dataclass(slots=True, frozen=True)
class GovernorConfig:
    """
    Immutable configuration shared by every governor component.

    This is the only state that survives from one cycle to the next.
    """

    root_pid: int
    vsz_limit: int = DEFAULT_VSZ_LIMIT_MB * MB  # Bytes
    check_interval: float = DEFAULT_CHECK_INTERVAL  # Seconds
    whitelist: frozenset[str] = field(default=DEFAULT_WHITELIST)

    def __post_init__(self) -> None:
        if self.root_pid <= 0:
            raise ConfigError(f"root pid must be positive, got {self.root_pid}")
        if self.vsz_limit < 0:
            raise ConfigError(f"memory budget must not be negative, got {self.vsz_limit}")
        if self.check_interval <= 0:
            raise ConfigError(f"check interval must be positive, got {self.check_interval}")
        if not self.whitelist:
            raise ConfigError("whitelist must name at least one command")
        # Accept any iterable of names but store a frozenset.
        object.__setattr__(self, "whitelist", frozenset(self.whitelist))

    @classmethod
    def from_megabytes(
        cls,
        root_pid: int,
        vsz_limit_mb: int = DEFAULT_VSZ_LIMIT_MB,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        whitelist: frozenset[str] = DEFAULT_WHITELIST,
    ) -> "GovernorConfig":
        """Build a config from a MiB-denominated budget."""
        if vsz_limit_mb < 0:
            raise ConfigError(f"memory budget must not be negative, got {vsz_limit_mb}")
        return cls(
            root_pid=root_pid,
            vsz_limit=vsz_limit_mb * MB,
            check_interval=check_interval,
            whitelist=whitelist,
        )

    @property
    def vsz_limit_mb(self) -> int:
        return self.vsz_limit // MB
