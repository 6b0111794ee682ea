"""
Binary replacement for the supervised service.

The current executable is copied to a timestamped backup before anything is
overwritten, and the new executable is staged next to the target and moved
into place with os.replace, so a failed copy never leaves the deployment
without a working binary.
"""

import logging
import os
import shutil
import stat
import subprocess
from datetime import datetime
from pathlib import Path

from .config import Config
from .errors import BinaryUpdateError, SmokeCheckFailed, UpdateConflict
from .models import UpdateResult
from .probe import ProcessProbe

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"
VERSION_CHECK_TIMEOUT = 30


def make_executable(path: Path):
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class BinaryUpdater:
    """Backs up and swaps the on-disk service executable."""

    def __init__(self, config: Config, probe: ProcessProbe):
        self.config = config
        self.probe = probe

    def backup_path(self, now: datetime | None = None) -> Path:
        stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
        return self.config.backup_dir / f"{self.config.app_name}-{stamp}.bak"

    def update(self, new_binary_path: Path) -> UpdateResult:
        """Replace the service binary with new_binary_path. Refused while running."""
        pid = self.probe.get_running_pid()
        if pid is not None:
            raise UpdateConflict(self.config.app_name, pid)

        new_binary = Path(new_binary_path)
        if not new_binary.is_file():
            raise BinaryUpdateError(f"new binary not found: {new_binary}")

        bin_path = self.config.bin_path
        if new_binary.resolve() == bin_path.resolve():
            raise BinaryUpdateError(f"new binary is the installed binary: {bin_path}")

        backup = self.backup_path() if bin_path.exists() else None
        if backup is not None and backup.exists():
            # Names have one-second resolution; never overwrite an earlier backup
            raise BinaryUpdateError(f"backup {backup} already exists, retry in a second")

        try:
            make_executable(new_binary)
        except OSError as e:
            raise BinaryUpdateError(f"unable to mark {new_binary} executable: {e}") from e

        if backup is not None:
            try:
                backup.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(bin_path, backup)
            except OSError as e:
                raise BinaryUpdateError(f"unable to back up {bin_path} to {backup}: {e}") from e
            logger.info(f"Backed up {bin_path} to {backup}")
        else:
            logger.warning(f"No binary at {bin_path}, installing without backup")

        self._swap(new_binary, bin_path)
        logger.info(f"Installed {new_binary} as {bin_path}")

        version_output = self._version_check(bin_path, backup)
        return UpdateResult(
            binary_path=str(bin_path),
            backup_path=str(backup) if backup else None,
            version_output=version_output,
        )

    def _swap(self, new_binary: Path, bin_path: Path):
        """Stage new_binary beside bin_path, then move it over bin_path."""
        staged = bin_path.with_name(f".{bin_path.name}.new")
        try:
            bin_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(new_binary, staged)
            make_executable(staged)
            os.replace(staged, bin_path)
        except OSError as e:
            staged.unlink(missing_ok=True)
            raise BinaryUpdateError(f"unable to install {new_binary} as {bin_path}: {e}") from e

    def _version_check(self, bin_path: Path, backup: Path | None) -> str:
        cmd = [str(bin_path), "--repo-root", str(self.config.repo_root), "--version"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=VERSION_CHECK_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error(f"Version check of {bin_path} failed: {e}")
            raise SmokeCheckFailed(-1, backup) from e

        if result.returncode != 0:
            logger.error(f"Version check of {bin_path} exited {result.returncode}: {result.stderr.strip()}")
            raise SmokeCheckFailed(result.returncode, backup)
        return result.stdout
