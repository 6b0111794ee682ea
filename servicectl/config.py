"""
Configuration for the service controller.

Loads settings from environment variables (and a .env file in the current
directory or its parents) with sensible defaults. Paths that are not set
explicitly are derived from the deployment base directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

load_dotenv(find_dotenv(usecwd=True))


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name, "")
    return Path(value) if value else None


@dataclass
class Config:
    """Service controller configuration."""

    # Deployment layout
    # Falls back to REPO_PATH; one of the two must be set
    base_dir: Path = _env_path("SERVICECTL_BASE_DIR") or _env_path("REPO_PATH")
    app_name: str = os.environ.get("SERVICECTL_APP_NAME", "app")
    repo_root: Path = _env_path("REPO_PATH")
    bin_path: Path = _env_path("SERVICECTL_BIN_PATH")
    backup_dir: Path = _env_path("SERVICECTL_BACKUP_DIR")
    pid_file: Path = _env_path("SERVICECTL_PID_FILE")
    lock_file: Path = _env_path("SERVICECTL_LOCK_FILE")

    # Logging
    log_file: Path = _env_path("SERVICECTL_LOG_FILE")
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    # Shutdown escalation: poll count and seconds between polls
    stop_timeout_ticks: int = int(os.environ.get("STOP_TIMEOUT_TICKS", "50"))
    stop_check_interval: float = float(os.environ.get("STOP_CHECK_INTERVAL", "0.2"))

    # Write the launched PID ourselves instead of waiting for the service to do it
    write_pid_on_start: bool = os.environ.get("WRITE_PID_ON_START", "false").lower() == "true"

    def __post_init__(self):
        """Fill in derived paths."""
        if self.base_dir is None:
            if self.repo_root is None:
                raise ConfigError("deployment root unknown: set SERVICECTL_BASE_DIR or REPO_PATH")
            self.base_dir = self.repo_root
        self.base_dir = Path(self.base_dir)
        if self.repo_root is None:
            self.repo_root = self.base_dir
        if self.bin_path is None:
            self.bin_path = self.base_dir / "tools" / "bin" / self.app_name
        if self.backup_dir is None:
            self.backup_dir = Path(self.bin_path).parent
        if self.pid_file is None:
            # The service writes its own PID file under its repo root
            self.pid_file = Path(self.repo_root) / "process.pid"
        if self.lock_file is None:
            self.lock_file = self.base_dir / "control.lock"
        if self.log_file is None:
            self.log_file = self.base_dir / "logs" / "control.log"

        self.repo_root = Path(self.repo_root)
        self.bin_path = Path(self.bin_path)
        self.backup_dir = Path(self.backup_dir)
        self.pid_file = Path(self.pid_file)
        self.lock_file = Path(self.lock_file)
        self.log_file = Path(self.log_file)

        if self.stop_timeout_ticks < 0:
            raise ValueError("stop_timeout_ticks must not be negative")
        if self.stop_check_interval < 0:
            raise ValueError("stop_check_interval must not be negative")
