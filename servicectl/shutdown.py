"""
Graceful-then-forced termination of the service process.

SIGTERM is sent once, then the process table is polled at a fixed interval for
a fixed number of ticks. If the process is still there when the ticks run out
it is sent SIGKILL. The tick budget is the timeout: a stop never waits longer
than timeout_ticks * interval before escalating. After SIGKILL the process
table is checked again for a short, fixed window so that a stop only reports
success once the PID is really gone.
"""

import logging
import os
import signal
import time
from typing import Callable

from .errors import ShutdownFailed, SignalDenied
from .models import StopOutcome
from .probe import ProcessProbe

logger = logging.getLogger(__name__)

KILL_CONFIRM_TICKS = 20
KILL_CONFIRM_INTERVAL = 0.05


class ShutdownEscalator:
    """Terminates a known-live PID within a bounded time."""

    def __init__(self, probe: ProcessProbe, sleep: Callable[[float], None] = time.sleep):
        self.probe = probe
        self._sleep = sleep

    def _signal(self, pid: int, sig: signal.Signals) -> bool:
        """Send sig to pid. Returns False if the process no longer exists."""
        try:
            os.kill(pid, sig)
        except ProcessLookupError:
            return False
        except PermissionError as e:
            raise SignalDenied(pid, sig.name, e) from e
        return True

    def terminate(self, pid: int, timeout_ticks: int, interval: float) -> StopOutcome:
        """Stop pid, escalating to SIGKILL after timeout_ticks polls."""
        if not self._signal(pid, signal.SIGTERM):
            logger.info(f"Process {pid} already gone before SIGTERM")
            return StopOutcome.EXITED

        logger.info(f"Sent SIGTERM to {pid}, waiting up to {timeout_ticks * interval:.1f}s")

        for tick in range(timeout_ticks):
            if not self.probe.is_alive(pid):
                logger.info(f"Process {pid} exited after {tick} checks")
                return StopOutcome.EXITED
            self._sleep(interval)

        logger.warning(f"Process {pid} did not stop gracefully, forcing kill")
        if not self._signal(pid, signal.SIGKILL):
            # Exited between the last check and the kill
            return StopOutcome.EXITED

        for _ in range(KILL_CONFIRM_TICKS):
            if not self.probe.is_alive(pid):
                return StopOutcome.FORCE_KILLED
            self._sleep(KILL_CONFIRM_INTERVAL)

        raise ShutdownFailed(f"process {pid} still present after SIGKILL")
