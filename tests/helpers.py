"""Helpers shared by the test modules."""

import stat
import sys
from pathlib import Path

import psutil
import pytest

# Stand-in for the supervised binary. Honors the --repo-root / config check /
# run / --version contract; the config check exit code comes from
# FAKE_CONFIG_EXIT.
FAKE_SERVICE = """#!/bin/sh
if [ "$1" = "--repo-root" ]; then
    root="$2"
    shift 2
fi
case "$1" in
    config)
        exit "${FAKE_CONFIG_EXIT:-0}"
        ;;
    run)
        echo $$ > "$root/process.pid"
        exec sleep 30
        ;;
    --version)
        echo "app 1.0.0"
        exit 0
        ;;
esac
exit 2
"""

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def write_script(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def reap(pid: int, timeout: float = 5):
    """Kill pid if it is still around and wait for it."""
    try:
        proc = psutil.Process(pid)
        proc.kill()
        proc.wait(timeout=timeout)
    except psutil.NoSuchProcess:
        pass
