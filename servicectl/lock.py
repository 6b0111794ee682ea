"""
Exclusive advisory lock around control commands.

Checking "is it running" and then acting on the answer is only safe if no
other control command runs in between. Mutating commands hold a POSIX flock on
the lock file for their whole duration; a second command fails fast instead of
waiting.
"""

import fcntl
import logging
import os
from pathlib import Path

from .errors import ControlLockBusy

logger = logging.getLogger(__name__)


class ControlLock:
    """Non-blocking exclusive flock held as a context manager."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fh = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def _holder(self) -> int | None:
        try:
            return int(self.path.read_text().strip().splitlines()[0])
        except (OSError, ValueError, IndexError):
            return None

    def acquire(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = self.path.open("a+")
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            fh.close()
            raise ControlLockBusy(self.path, self._holder()) from None
        except OSError:
            fh.close()
            raise

        fh.seek(0)
        fh.truncate()
        fh.write(f"{os.getpid()}\n")
        fh.flush()
        self._fh = fh
        logger.debug(f"Acquired control lock {self.path}")

    def release(self):
        if self._fh is None:
            return
        try:
            fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        finally:
            self._fh.close()
            self._fh = None
        logger.debug(f"Released control lock {self.path}")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
