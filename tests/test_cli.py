"""Tests for the control command line."""

import json
import logging
from unittest.mock import patch

import pytest

from servicectl import __version__
from servicectl.cli import build_parser, main
from servicectl.config import Config
from servicectl.lock import ControlLock


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_missing_command_exits_1(config, capsys):
    assert main([], config=config) == 1
    assert "usage: control" in capsys.readouterr().err


def test_unknown_command_exits_1(config, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["frobnicate"], config=config)
    assert exc.value.code == 1
    assert "usage: control" in capsys.readouterr().err


def test_update_binary_requires_path(config):
    with pytest.raises(SystemExit) as exc:
        main(["update-binary"], config=config)
    assert exc.value.code == 1


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_status_stopped(config, capsys):
    assert main(["status"], config=config) == 0
    assert capsys.readouterr().out.strip() == "app is stopped"


def test_status_json(config, capsys):
    assert main(["status", "--json"], config=config) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["running"] is False
    assert data["pid"] is None
    assert data["app_name"] == "app"
    assert data["pid_file"] == str(config.pid_file)


def test_stop_not_running(config, capsys):
    assert main(["stop", "--timeout-ticks", "2", "--interval", "0.01"], config=config) == 0
    assert capsys.readouterr().out.strip() == "stop app, app is not running"


def test_failure_exit_code_and_message(config, capsys):
    # No service binary installed: preflight cannot run
    assert main(["start"], config=config) == 1
    err = capsys.readouterr().err
    assert "error: service binary not found" in err


def test_lock_busy(config, capsys):
    with ControlLock(config.lock_file):
        assert main(["stop"], config=config) == 1
    assert "another control command is in progress" in capsys.readouterr().err


def test_writes_log_file(config):
    main(["stop"], config=config)
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert config.log_file.exists()


def test_stop_permission_denied(config, capsys):
    config.pid_file.write_text("4321")
    with patch("servicectl.probe.ProcessProbe.get_running_pid", return_value=4321), patch(
        "servicectl.shutdown.os.kill", side_effect=PermissionError(1, "Operation not permitted")
    ):
        assert main(["stop"], config=config) == 1

    err = capsys.readouterr().err
    assert "error: unable to send SIGTERM to pid 4321" in err
    assert config.pid_file.read_text() == "4321"


def test_missing_deployment_root(monkeypatch, capsys):
    unset = dict(
        base_dir=None,
        repo_root=None,
        bin_path=None,
        backup_dir=None,
        pid_file=None,
        lock_file=None,
        log_file=None,
    )
    monkeypatch.setattr("servicectl.cli.Config", lambda: Config(**unset))

    assert main(["status"]) == 1
    assert "error: deployment root unknown" in capsys.readouterr().err
