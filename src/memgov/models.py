"""Data models for memgov."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import psutil

MB = 1024 * 1024


def to_mb(size: int) -> int:
    """Convert a byte count to whole MiB."""
    return size // MB


class RunState(Enum):
    """Observed run state of a process, as a stat state letter."""

    RUNNING = "R"
    SLEEPING = "S"
    STOPPED = "T"
    ZOMBIE = "Z"
    OTHER = "?"

    @classmethod
    def from_status(cls, status: str) -> "RunState":
        """Map a psutil status string to a RunState."""
        return _STATUS_MAP.get(status, cls.OTHER)


_STATUS_MAP = {
    psutil.STATUS_RUNNING: RunState.RUNNING,
    psutil.STATUS_SLEEPING: RunState.SLEEPING,
    psutil.STATUS_DISK_SLEEP: RunState.SLEEPING,
    psutil.STATUS_IDLE: RunState.SLEEPING,
    psutil.STATUS_STOPPED: RunState.STOPPED,
    psutil.STATUS_ZOMBIE: RunState.ZOMBIE,
}


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one process at sample time."""

    pid: int
    ppid: int
    comm: str  # short command name, not a path
    state: RunState
    start_time: float  # only meaningful relative to other records
    vms: int  # Bytes
    rss: int  # Bytes

    @property
    def vms_mb(self) -> int:
        return to_mb(self.vms)

    @property
    def rss_mb(self) -> int:
        return to_mb(self.rss)

    @property
    def is_stopped(self) -> bool:
        return self.state is RunState.STOPPED


Snapshot = dict[int, ProcessRecord]


class DesiredState(Enum):
    """What the admission policy wants a managed process to be doing."""

    RUN = "run"
    SUSPEND = "suspend"


class Action(Enum):
    """Signal the enforcer sends to move a process to its desired state."""

    SUSPEND = "suspend"
    RESUME = "resume"


@dataclass(slots=True, frozen=True)
class Decision:
    """Desired state for one managed process."""

    record: ProcessRecord
    desired: DesiredState
    cumulative_vms: int  # running sum up to and including this record


@dataclass(slots=True, frozen=True)
class MemoryTotals:
    """Aggregate memory of a set of processes."""

    count: int = 0
    vms: int = 0
    rss: int = 0

    @classmethod
    def of(cls, records: Iterable[ProcessRecord]) -> "MemoryTotals":
        records = list(records)
        return cls(
            count=len(records),
            vms=sum(r.vms for r in records),
            rss=sum(r.rss for r in records),
        )


@dataclass(slots=True, frozen=True)
class AdmissionPlan:
    """Per-cycle outcome of the admission policy."""

    decisions: tuple[Decision, ...]
    managed: MemoryTotals
    unmanaged: MemoryTotals

    @property
    def order(self) -> list[int]:
        """PIDs of managed processes in admission order."""
        return [d.record.pid for d in self.decisions]

    @property
    def stopped_count(self) -> int:
        return sum(1 for d in self.decisions if d.record.is_stopped)

    @property
    def running_count(self) -> int:
        return len(self.decisions) - self.stopped_count

    @property
    def suspended(self) -> set[int]:
        """PIDs the policy wants suspended."""
        return {d.record.pid for d in self.decisions if d.desired is DesiredState.SUSPEND}


@dataclass(slots=True, frozen=True)
class SignalResult:
    """Outcome of one signal delivery attempt."""

    pid: int
    action: Action
    delivered: bool
    error: str = ""


@dataclass(slots=True, frozen=True)
class CycleReport:
    """Everything one control cycle decided and did."""

    root_pid: int
    budget: int  # Bytes
    plan: AdmissionPlan
    signals: tuple[SignalResult, ...] = ()
