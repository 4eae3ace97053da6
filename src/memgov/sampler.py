"""Process sampling for memgov."""

import logging

import psutil

from memgov.exceptions import SamplingError
from memgov.models import ProcessRecord, RunState, Snapshot

_logger = logging.getLogger(__name__)


class ProcessSampler:
    """
    Collects a snapshot of every process visible to the caller using psutil.

    Processes that exit or deny access while being read are skipped; a
    partial snapshot is expected under normal process churn.
    """

    def sample(self) -> Snapshot:
        """
        Collect a snapshot mapping PID to ProcessRecord.

        Raises:
            SamplingError: If the process list itself cannot be enumerated.
        """
        snapshot: Snapshot = {}
        try:
            for proc in psutil.process_iter():
                record = self._read(proc)
                if record is not None:
                    snapshot[record.pid] = record
        except (psutil.Error, OSError) as exc:
            raise SamplingError(f"cannot list processes: {exc}") from exc
        return snapshot

    @staticmethod
    def _read(proc: psutil.Process) -> ProcessRecord | None:
        """Read one process, or None if it vanished or is unreadable."""
        try:
            with proc.oneshot():
                mem = proc.memory_info()
                return ProcessRecord(
                    pid=proc.pid,
                    ppid=proc.ppid(),
                    comm=proc.name(),
                    state=RunState.from_status(proc.status()),
                    start_time=proc.create_time(),
                    vms=mem.vms,
                    rss=mem.rss,
                )
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            # Died mid-scan
            return None
        except psutil.AccessDenied:
            _logger.debug("Cannot read process %d: access denied", proc.pid)
            return None
