"""Errors surfaced to the operator by the control commands."""


class ServiceCtlError(Exception):
    """Base class for failures that abort a control command."""

    exit_code = 1


class PreflightRejected(ServiceCtlError):
    """The service binary rejected its configuration."""

    def __init__(self, returncode: int):
        self.returncode = returncode
        super().__init__(f"config check failed with exit code {returncode}, not starting")


class BinaryNotFound(ServiceCtlError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"service binary not found: {path}")


class UpdateConflict(ServiceCtlError):
    """Binary update attempted while the service is running."""

    def __init__(self, app_name: str, pid: int):
        self.pid = pid
        super().__init__(f"{app_name} is running, unable to update binary")


class BinaryUpdateError(ServiceCtlError):
    """Copy or permission failure while replacing the binary."""


class SmokeCheckFailed(ServiceCtlError):
    def __init__(self, returncode: int, backup_path):
        self.returncode = returncode
        self.backup_path = backup_path
        previous = f"previous binary is at {backup_path}" if backup_path else "no previous binary"
        super().__init__(f"new binary --version exited with code {returncode}; {previous}")


class ControlLockBusy(ServiceCtlError):
    def __init__(self, lock_file, holder: int | None = None):
        self.lock_file = lock_file
        self.holder = holder
        detail = f" (held by pid {holder})" if holder else ""
        super().__init__(f"another control command is in progress{detail}: {lock_file}")


class ConfigError(ServiceCtlError):
    """The deployment layout could not be determined."""


class SignalDenied(ServiceCtlError):
    def __init__(self, pid: int, signame: str, reason):
        self.pid = pid
        super().__init__(f"unable to send {signame} to pid {pid}: {reason}")


class ShutdownFailed(ServiceCtlError):
    """The process was still present after SIGKILL."""
