"""
PID file access.

The PID file is the only record of which process is the service. It is always
read from disk, never cached, since the service itself and other operators may
change it between commands.
"""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class PidStore:
    """Reads, writes and clears the service PID file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> int | None:
        """Return the recorded PID, or None if the file is missing or malformed."""
        try:
            content = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Unable to read PID file {self.path}: {e}")
            return None

        try:
            pid = int(content)
        except ValueError:
            logger.warning(f"PID file {self.path} does not contain a PID: {content[:40]!r}")
            return None

        if pid <= 0:
            logger.warning(f"PID file {self.path} contains a non-positive PID: {pid}")
            return None
        return pid

    def write(self, pid: int):
        """Overwrite the PID file with pid, creating it if absent."""
        if pid <= 0:
            raise ValueError(f"invalid pid: {pid}")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(f"{pid}\n")
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info(f"Wrote PID {pid} to {self.path}")

    def clear(self):
        """Remove the PID file. No-op if it is already gone."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info(f"Removed PID file {self.path}")
