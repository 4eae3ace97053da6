"""Admission policy: decides which managed processes may run."""

from collections.abc import Iterable

from memgov.config import GovernorConfig
from memgov.models import (
    AdmissionPlan,
    Decision,
    DesiredState,
    MemoryTotals,
    ProcessRecord,
    Snapshot,
)


def admission_key(record: ProcessRecord) -> tuple[float, int]:
    """Sort key giving earlier-started processes priority, ties by PID."""
    return (record.start_time, record.pid)


class AdmissionPolicy:
    """
    FIFO memory admission over whitelisted descendants.

    Managed processes are ordered by start time and walked while summing
    their virtual memory. Once the running sum exceeds the budget every
    further process should be suspended, except the first in the order,
    which always runs so the tree can make progress.
    """

    def __init__(self, config: GovernorConfig) -> None:
        self._budget = config.vsz_limit
        self._whitelist = config.whitelist

    @property
    def budget(self) -> int:
        return self._budget

    def is_managed(self, record: ProcessRecord) -> bool:
        return record.comm in self._whitelist

    def partition(
        self, snapshot: Snapshot, pids: Iterable[int]
    ) -> tuple[list[ProcessRecord], list[ProcessRecord]]:
        """Split the given PIDs into (managed, unmanaged) records."""
        managed: list[ProcessRecord] = []
        unmanaged: list[ProcessRecord] = []
        for pid in sorted(pids):
            record = snapshot.get(pid)
            if record is None:
                continue
            (managed if self.is_managed(record) else unmanaged).append(record)
        return managed, unmanaged

    @staticmethod
    def admission_order(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
        """Total order by (start time, PID)."""
        return sorted(records, key=admission_key)

    def decide(self, ordered: list[ProcessRecord]) -> list[Decision]:
        """Assign a desired state to each record of an admission order."""
        decisions = []
        total = 0
        for position, record in enumerate(ordered):
            # Suspended processes still hold their address space, so every
            # record counts toward the sum regardless of its own decision.
            total += record.vms
            if position > 0 and total > self._budget:
                desired = DesiredState.SUSPEND
            else:
                desired = DesiredState.RUN
            decisions.append(Decision(record=record, desired=desired, cumulative_vms=total))
        return decisions

    def plan(self, snapshot: Snapshot, pids: Iterable[int]) -> AdmissionPlan:
        """Partition, order and decide for one cycle."""
        managed, unmanaged = self.partition(snapshot, pids)
        decisions = self.decide(self.admission_order(managed))
        return AdmissionPlan(
            decisions=tuple(decisions),
            managed=MemoryTotals.of(managed),
            unmanaged=MemoryTotals.of(unmanaged),
        )
