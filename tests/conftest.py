"""Shared fixtures and fakes for memgov tests."""

import psutil
import pytest

from memgov.exceptions import SamplingError
from memgov.models import MB, ProcessRecord, RunState, Snapshot


def make_record(
    pid: int,
    ppid: int = 1,
    comm: str = "cc1plus",
    state: RunState = RunState.RUNNING,
    start_time: float = 0.0,
    vms_mb: int = 0,
    rss_mb: int = 0,
) -> ProcessRecord:
    """Build a ProcessRecord with MiB-denominated memory."""
    return ProcessRecord(
        pid=pid,
        ppid=ppid,
        comm=comm,
        state=state,
        start_time=start_time,
        vms=vms_mb * MB,
        rss=rss_mb * MB,
    )


def snapshot_of(*records: ProcessRecord) -> Snapshot:
    return {r.pid: r for r in records}


class FakeSampler:
    """Returns queued snapshots in order, repeating the last one."""

    def __init__(self, *snapshots):
        self._snapshots = list(snapshots)
        self.calls = 0

    def sample(self) -> Snapshot:
        self.calls += 1
        current = self._snapshots[0] if len(self._snapshots) == 1 else self._snapshots.pop(0)
        if isinstance(current, Exception):
            raise current
        return current


class FakeSignaller:
    """Records signals instead of sending them."""

    def __init__(self, fail_pids=()):
        self.sent: list[tuple[str, int]] = []
        self._fail_pids = set(fail_pids)

    def suspend(self, pid: int) -> None:
        self._deliver("suspend", pid)

    def resume(self, pid: int) -> None:
        self._deliver("resume", pid)

    def _deliver(self, action: str, pid: int) -> None:
        if pid in self._fail_pids:
            raise psutil.NoSuchProcess(pid)
        self.sent.append((action, pid))


@pytest.fixture
def build_snapshot():
    """Root 1 with two 600M compilers and a large unmanaged make."""
    return snapshot_of(
        make_record(1, ppid=0, comm="make", start_time=1.0, vms_mb=50, rss_mb=10),
        make_record(2, start_time=10.0, vms_mb=600, rss_mb=300),
        make_record(3, start_time=20.0, vms_mb=600, rss_mb=300),
        make_record(4, ppid=1, comm="python3", start_time=5.0, vms_mb=5000, rss_mb=4000),
        make_record(99, ppid=0, comm="cc1plus", start_time=0.5, vms_mb=900),
    )


@pytest.fixture
def sampling_error():
    return SamplingError("cannot list processes: /proc unavailable")
