"""
Data models for the service controller.

Process identities and command results are pydantic models so that they can be
printed for operators or dumped as JSON for automation.
"""

from enum import Enum
from pathlib import PurePath
from typing import Optional

from pydantic import BaseModel, Field


class StopOutcome(Enum):
    EXITED = "exited"
    FORCE_KILLED = "force-killed"
    NOT_RUNNING = "not-running"


class ProcessIdentity(BaseModel):
    """A process as observed in the OS process table at probe time."""

    pid: int = Field(..., gt=0, description="Process identifier")
    command: str = Field("", description="First token of the command line (argv[0])")

    def matches(self, expected_name: str) -> bool:
        """True if the trailing path component of the command is expected_name."""
        if not self.command or not expected_name:
            return False
        return PurePath(self.command).name == expected_name


class ServiceStatus(BaseModel):
    app_name: str
    running: bool
    pid: Optional[int] = None
    pid_file: str
    stale_pid: Optional[int] = Field(
        None, description="PID file content that does not belong to a running service"
    )

    def describe(self) -> str:
        if self.running:
            return f"{self.app_name} is running, pid: {self.pid}"
        message = f"{self.app_name} is stopped"
        if self.stale_pid is not None:
            message += f" (stale pid file: {self.stale_pid})"
        return message


class StartResult(BaseModel):
    pid: int
    launched: bool = Field(True, description="False when the service was already running")


class UpdateResult(BaseModel):
    binary_path: str
    backup_path: Optional[str] = None
    version_output: str = ""
