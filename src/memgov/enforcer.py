"""Signal-based enforcement of admission decisions."""

import logging
from typing import Protocol

import psutil

from memgov.models import Action, AdmissionPlan, Decision, DesiredState, SignalResult

_logger = logging.getLogger(__name__)


class Signaller(Protocol):
    """Delivers suspend and resume signals by PID."""

    def suspend(self, pid: int) -> None: ...

    def resume(self, pid: int) -> None: ...


class PsutilSignaller:
    """Sends SIGSTOP/SIGCONT through psutil."""

    def suspend(self, pid: int) -> None:
        psutil.Process(pid).suspend()

    def resume(self, pid: int) -> None:
        psutil.Process(pid).resume()


def required_action(decision: Decision) -> Action | None:
    """Return the signal needed to reach the desired state, if any."""
    stopped = decision.record.is_stopped
    if decision.desired is DesiredState.SUSPEND and not stopped:
        return Action.SUSPEND
    if decision.desired is DesiredState.RUN and stopped:
        return Action.RESUME
    return None


class Enforcer:
    """
    Moves managed processes toward their desired run state.

    At most one signal is sent per managed process per cycle and only to
    processes in the plan. Delivery is fire-and-forget: the next snapshot
    shows whether it took effect.
    """

    def __init__(self, signaller: Signaller | None = None) -> None:
        self._signaller = signaller or PsutilSignaller()

    def enforce(self, plan: AdmissionPlan) -> list[SignalResult]:
        """Send the signals the plan requires and report each attempt."""
        results = []
        for decision in plan.decisions:
            action = required_action(decision)
            if action is not None:
                results.append(self._send(decision.record.pid, action))
        return results

    def _send(self, pid: int, action: Action) -> SignalResult:
        deliver = self._signaller.suspend if action is Action.SUSPEND else self._signaller.resume
        try:
            deliver(pid)
        except (psutil.Error, OSError) as exc:
            _logger.warning("Failed to %s process %d: %s", action.value, pid, exc)
            return SignalResult(pid=pid, action=action, delivered=False, error=str(exc))
        _logger.info("Sent %s to process %d", action.value, pid)
        return SignalResult(pid=pid, action=action, delivered=True)
