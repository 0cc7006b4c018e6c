from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

__all__ = ["JobLifecycleController", "JobLifecycleState"]

logger = logging.getLogger("job_lifecycle")

RunAsync = Callable[
    [Callable[[], object], Callable[[object], None], Callable[[Exception], None]],
    None,
]


@dataclass
class JobLifecycleState:
    is_running: bool = False
    phase: str = "Idle"
    started_at: float = 0.0
    last_error: str = ""
    # Bumped on every start and cancel; a callback carrying an older ticket is stale.
    ticket: int = 0


class JobLifecycleController:
    """Single-flight background job whose callbacks land on the UI thread.

    Results that arrive after `cancel()` (or after a newer job started) are
    dropped so a late payload can never overwrite newer user state.
    """

    def __init__(
        self,
        *,
        set_running: Callable[[bool, str], None],
        run_async: RunAsync,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = JobLifecycleState()
        self._notify = set_running
        self._run_async = run_async
        self._time_fn = time_fn

    def _enter(self, running: bool, phase: str) -> None:
        self.state.is_running = running
        self.state.phase = phase
        if running:
            self.state.started_at = float(self._time_fn())
            self.state.last_error = ""
        self._notify(running, phase)

    def elapsed(self) -> float:
        if not self.state.is_running:
            return 0.0
        return max(0.0, float(self._time_fn()) - self.state.started_at)

    def cancel(self, phase: str = "Cancelled.") -> bool:
        if not self.state.is_running:
            return False
        self.state.ticket += 1
        logger.info("Cancelled background job after %.1fs.", self.elapsed())
        self._enter(False, phase)
        return True

    def run_async(
        self,
        *,
        worker: Callable[[], object],
        on_done: Callable[[object], None],
        on_failed: Callable[[str], None],
        phase_label: str,
        success_phase: str = "Idle",
        failure_phase: str = "Failed",
    ) -> bool:
        if self.state.is_running:
            return False
        self.state.ticket += 1
        ticket = self.state.ticket
        self._enter(True, phase_label)

        def finished(payload: object) -> None:
            if ticket != self.state.ticket:
                logger.info("Dropping result of a cancelled job.")
                return
            self._enter(False, success_phase)
            on_done(payload)

        def failed(exc: Exception) -> None:
            if ticket != self.state.ticket:
                logger.info("Dropping failure of a cancelled job: %s", exc)
                return
            self._enter(False, failure_phase)
            self.state.last_error = str(exc)
            on_failed(self.state.last_error)

        self._run_async(worker, finished, failed)
        return True
