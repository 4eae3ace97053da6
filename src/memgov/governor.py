"""The memgov control loop."""

import logging
import threading
from dataclasses import replace
from queue import Queue

from memgov.config import GovernorConfig
from memgov.enforcer import Enforcer
from memgov.exceptions import RootNotFound, SamplingError
from memgov.models import AdmissionPlan, CycleReport, DesiredState, SignalResult
from memgov.policy import AdmissionPolicy
from memgov.reporter import Reporter
from memgov.sampler import ProcessSampler
from memgov.tree import descendants

_logger = logging.getLogger(__name__)


class Governor:
    """
    Keeps the whitelisted descendants of a root process under a memory budget.

    Each cycle samples all processes, resolves the root's tree, decides
    which managed processes may run and signals the ones in the wrong
    state. Nothing but the configuration carries over between cycles.
    The loop ends only when the root process is gone; sampling and signal
    failures are logged and retried on the next cycle.

    The loop can run in the calling thread with run(), or in a daemon
    thread with start()/stop(), in which case every CycleReport is also
    pushed to update_queue.
    """

    def __init__(
        self,
        config: GovernorConfig,
        sampler: ProcessSampler | None = None,
        enforcer: Enforcer | None = None,
        reporter: Reporter | None = None,
        update_queue: Queue[CycleReport] | None = None,
    ) -> None:
        self._config = config
        self._sampler = sampler or ProcessSampler()
        self._policy = AdmissionPolicy(config)
        self._enforcer = enforcer or Enforcer()
        self._reporter = reporter or Reporter()
        self._queue = update_queue
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._finished = False

    @property
    def config(self) -> GovernorConfig:
        return self._config

    @property
    def finished(self) -> bool:
        """True once the root process has been found missing."""
        return self._finished

    @property
    def is_running(self) -> bool:
        """Check if the governor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def run_cycle(self) -> CycleReport | None:
        """
        Run one sample -> resolve -> decide -> enforce -> report cycle.

        Returns:
            The cycle's report, or None if sampling failed.

        Raises:
            RootNotFound: If the root process is not in the snapshot.
        """
        try:
            snapshot = self._sampler.sample()
        except SamplingError as exc:
            _logger.error("Error listing procs: %s", exc)
            return None

        tree = descendants(snapshot, self._config.root_pid)
        plan = self._policy.plan(snapshot, tree)
        signals = self._enforcer.enforce(plan)
        report = CycleReport(
            root_pid=self._config.root_pid,
            budget=self._config.vsz_limit,
            plan=plan,
            signals=tuple(signals),
        )

        try:
            self._reporter.report(report)
        except Exception:
            _logger.warning("Reporter failed", exc_info=True)

        if self._queue is not None:
            self._queue.put(report)
        return report

    def run(self) -> None:
        """Run cycles until the root process is gone or stop() is called."""
        while not self._stop_event.is_set():
            try:
                self.run_cycle()
            except RootNotFound as exc:
                _logger.info("Process %d not found. Exiting", exc.pid)
                self._finished = True
                return
            except Exception:
                _logger.exception("Cycle failed")
            # Also reached after a failed cycle, so a persistent
            # failure cannot turn into a busy loop.
            self._stop_event.wait(timeout=self._config.check_interval)

    def release(self) -> list[SignalResult]:
        """
        Resume every stopped managed process in the tree.

        Used when the governor is interrupted, so it does not leave work
        frozen behind it. Failures are logged and skipped.
        """
        try:
            snapshot = self._sampler.sample()
            tree = descendants(snapshot, self._config.root_pid)
        except (SamplingError, RootNotFound) as exc:
            _logger.warning("Cannot release processes: %s", exc)
            return []
        plan = self._policy.plan(snapshot, tree)
        released = AdmissionPlan(
            decisions=tuple(replace(d, desired=DesiredState.RUN) for d in plan.decisions),
            managed=plan.managed,
            unmanaged=plan.unmanaged,
        )
        return self._enforcer.enforce(released)

    def start(self) -> None:
        """Start the governor thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="Governor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the governor thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
