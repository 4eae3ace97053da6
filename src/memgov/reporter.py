"""Per-cycle log output."""

import logging

from memgov.models import CycleReport, to_mb

_logger = logging.getLogger(__name__)


class Reporter:
    """Writes one line per managed process plus two summary lines."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    def report(self, report: CycleReport) -> None:
        plan = report.plan
        for decision in plan.decisions:
            record = decision.record
            self._logger.info(
                "%.2f %d %s %s %d %d",
                record.start_time,
                record.pid,
                record.state.value,
                record.comm,
                record.vms_mb,
                record.rss_mb,
            )
        self._logger.info(
            "Total VSZ: %dM RSS: %dM Procs: %d (Stopped: %d Running %d)",
            to_mb(plan.managed.vms),
            to_mb(plan.managed.rss),
            plan.managed.count,
            plan.stopped_count,
            plan.running_count,
        )
        self._logger.info(
            "Unfiltered VSZ: %dM RSS: %dM Procs: %d",
            to_mb(plan.unmanaged.vms),
            to_mb(plan.unmanaged.rss),
            plan.unmanaged.count,
        )
