"""Shared pytest fixtures: a throwaway deployment tree and a fake service binary."""

import os
from pathlib import Path

import psutil
import pytest

from servicectl.config import Config

from .helpers import FAKE_SERVICE, write_script


@pytest.fixture
def config(tmp_path):
    """Config rooted in tmp_path, independent of the caller's environment."""
    return Config(
        base_dir=tmp_path,
        app_name="app",
        repo_root=tmp_path,
        bin_path=tmp_path / "tools" / "bin" / "app",
        backup_dir=tmp_path / "tools" / "bin",
        pid_file=tmp_path / "process.pid",
        lock_file=tmp_path / "control.lock",
        log_file=tmp_path / "logs" / "control.log",
        stop_timeout_ticks=3,
        stop_check_interval=0.01,
        write_pid_on_start=False,
    )


@pytest.fixture
def fake_binary(config):
    return write_script(config.bin_path, FAKE_SERVICE)


@pytest.fixture
def own_command_name():
    """Trailing path component of this test process's argv[0]."""
    return Path(psutil.Process(os.getpid()).cmdline()[0]).name
