"""
Process liveness and identity checks.

A PID on its own proves nothing: after the service exits the OS may hand the
same PID to an unrelated process. The probe therefore only reports the service
as running when the process at the recorded PID still carries the service's
executable name.
"""

import logging

import psutil

from .models import ProcessIdentity
from .pidfile import PidStore

logger = logging.getLogger(__name__)


def _command_of(proc: psutil.Process) -> str:
    """First token of the command line, falling back to the process name."""
    try:
        cmdline = proc.cmdline()
        if cmdline and cmdline[0]:
            return cmdline[0]
    except psutil.AccessDenied:
        logger.debug(f"Access denied reading command line of pid {proc.pid}")

    try:
        return proc.name()
    except psutil.AccessDenied:
        return ""


class ProcessProbe:
    """Resolves whether the PID file points at the live service."""

    def __init__(self, pid_store: PidStore, app_name: str):
        self.pid_store = pid_store
        self.app_name = app_name

    def identify(self, pid: int) -> ProcessIdentity | None:
        """Look up pid in the process table. Returns None if it does not exist."""
        if pid <= 0:
            return None
        try:
            proc = psutil.Process(pid)
            try:
                if proc.status() == psutil.STATUS_ZOMBIE:
                    return None
            except psutil.AccessDenied:
                pass
            return ProcessIdentity(pid=pid, command=_command_of(proc))
        except psutil.NoSuchProcess:
            # Also covers psutil.ZombieProcess
            return None

    def is_service(self, identity: ProcessIdentity | None, expected_name: str | None = None) -> bool:
        if identity is None:
            return False
        return identity.matches(expected_name or self.app_name)

    def is_alive(self, pid: int) -> bool:
        """True while pid is in the process table and has not exited."""
        try:
            return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            # Exists, but owned by someone else
            return True

    def get_running_pid(self) -> int | None:
        """PID of the running service, or None if it is not running.

        A stale or foreign PID file is reported as not running and left in place.
        """
        pid = self.pid_store.read()
        if pid is None:
            return None

        identity = self.identify(pid)
        if identity is None:
            logger.info(f"PID {pid} from {self.pid_store.path} is not running")
            return None
        if not self.is_service(identity):
            logger.info(
                f"PID {pid} belongs to {identity.command!r}, not {self.app_name}; ignoring PID file"
            )
            return None
        return pid

