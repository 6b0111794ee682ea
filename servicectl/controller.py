"""
Service controller.

Implements the operator commands (start, stop, restart, status, update-binary)
for a single service process. Nothing is kept between invocations: every
command re-reads the PID file and re-probes the process table to decide
whether the service is running.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable

from .config import Config
from .errors import BinaryNotFound, PreflightRejected, ServiceCtlError
from .lock import ControlLock
from .models import ServiceStatus, StartResult, StopOutcome, UpdateResult
from .pidfile import PidStore
from .probe import ProcessProbe
from .shutdown import ShutdownEscalator
from .updater import BinaryUpdater

logger = logging.getLogger(__name__)

PREFLIGHT_TIMEOUT = 60


def _report(message: str):
    print(message, flush=True)


class ServiceController:
    """Drives the supervised service through its lifecycle."""

    def __init__(
        self,
        config: Config,
        pid_store: PidStore | None = None,
        probe: ProcessProbe | None = None,
        escalator: ShutdownEscalator | None = None,
        updater: BinaryUpdater | None = None,
        lock: ControlLock | None = None,
        report: Callable[[str], None] = _report,
    ):
        self.config = config
        self.pid_store = pid_store or PidStore(config.pid_file)
        self.probe = probe or ProcessProbe(self.pid_store, config.app_name)
        self.escalator = escalator or ShutdownEscalator(self.probe)
        self.updater = updater or BinaryUpdater(config, self.probe)
        self.lock = lock or ControlLock(config.lock_file)
        self._report = report

    @property
    def app_name(self) -> str:
        return self.config.app_name

    def _command(self, *args: str) -> list[str]:
        return [str(self.config.bin_path), "--repo-root", str(self.config.repo_root), *args]

    def _environment(self) -> dict[str, str]:
        env = os.environ.copy()
        env["REPO_PATH"] = str(self.config.repo_root)
        return env

    # Commands

    def status(self) -> ServiceStatus:
        """Report whether the service is running. Never modifies the PID file."""
        pid = self.probe.get_running_pid()
        return ServiceStatus(
            app_name=self.app_name,
            running=pid is not None,
            pid=pid,
            pid_file=str(self.pid_store.path),
            stale_pid=None if pid is not None else self.pid_store.read(),
        )

    def start(self) -> StartResult:
        """Start the service unless it is already running. Returns the PID."""
        with self.lock:
            return self._start()

    def stop(self, timeout_ticks: int | None = None, interval: float | None = None) -> StopOutcome:
        """Stop the service if it is running."""
        with self.lock:
            return self._stop(timeout_ticks, interval)

    def restart(self, timeout_ticks: int | None = None, interval: float | None = None) -> StartResult:
        """Stop then start the service under a single lock."""
        with self.lock:
            self._stop(timeout_ticks, interval)
            return self._start()

    def update_binary(self, new_binary_path: Path) -> UpdateResult:
        """Replace the service binary. Refused while the service is running."""
        with self.lock:
            result = self.updater.update(Path(new_binary_path))
        if result.backup_path:
            self._report(f"backup old binary to {result.backup_path}")
        self._report("new binary info:")
        self._report(result.version_output.rstrip("\n"))
        return result

    # Lock-held implementations

    def _start(self) -> StartResult:
        pid = self.probe.get_running_pid()
        if pid is not None:
            logger.info(f"{self.app_name} is already running with PID {pid}")
            self._report(f"{self.app_name} is running, pid: {pid}")
            return StartResult(pid=pid, launched=False)

        self._preflight()
        pid = self._launch()

        if self.config.write_pid_on_start:
            self.pid_store.write(pid)

        logger.info(f"Started {self.app_name} with PID {pid}")
        self._report(f"start {self.app_name}, pid: {pid}")
        return StartResult(pid=pid, launched=True)

    def _stop(self, timeout_ticks: int | None, interval: float | None) -> StopOutcome:
        if timeout_ticks is None:
            timeout_ticks = self.config.stop_timeout_ticks
        if interval is None:
            interval = self.config.stop_check_interval

        pid = self.probe.get_running_pid()
        if pid is None:
            stale = self.pid_store.read()
            if stale is not None:
                logger.info(f"Clearing stale PID file {self.pid_store.path} (pid {stale})")
                self._clear_pid_file()
            self._report(f"stop {self.app_name}, {self.app_name} is not running")
            return StopOutcome.NOT_RUNNING

        self._report(f"stop {self.app_name}, pid: {pid}")
        outcome = self.escalator.terminate(pid, timeout_ticks, interval)
        self._clear_pid_file()

        if outcome is StopOutcome.FORCE_KILLED:
            self._report(
                f"stop {self.app_name} failed, wait process quit timeout, use kill -9 forced stop"
            )
        else:
            self._report(f"{self.app_name} quit")
        logger.info(f"Stopped {self.app_name} (pid {pid}): {outcome.value}")
        return outcome

    def _clear_pid_file(self):
        try:
            self.pid_store.clear()
        except OSError as e:
            raise ServiceCtlError(f"unable to remove PID file {self.pid_store.path}: {e}") from e

    def _preflight(self):
        """Run the binary's config check. Raises PreflightRejected on failure."""
        cmd = self._command("config", "check")
        logger.info(f"Running preflight: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, env=self._environment(), timeout=PREFLIGHT_TIMEOUT)
        except FileNotFoundError as e:
            raise BinaryNotFound(self.config.bin_path) from e
        except OSError as e:
            raise ServiceCtlError(f"unable to execute {self.config.bin_path}: {e}") from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"Preflight timed out after {PREFLIGHT_TIMEOUT}s")
            raise PreflightRejected(-1) from e

        if result.returncode != 0:
            logger.error(f"Preflight for {self.app_name} failed with exit code {result.returncode}")
            raise PreflightRejected(result.returncode)

    def _launch(self) -> int:
        """Spawn the service detached from this process and return its PID."""
        try:
            process = subprocess.Popen(
                self._command("run"),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._environment(),
                start_new_session=True,  # Survive the controller's exit
                close_fds=True,
            )
        except FileNotFoundError as e:
            raise BinaryNotFound(self.config.bin_path) from e
        except OSError as e:
            raise ServiceCtlError(f"unable to execute {self.config.bin_path}: {e}") from e
        return process.pid
