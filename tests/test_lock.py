"""Tests for the control command lock."""

import os

import pytest

from servicectl.errors import ControlLockBusy
from servicectl.lock import ControlLock


def test_acquire_and_release(tmp_path):
    lock = ControlLock(tmp_path / "run" / "control.lock")
    with lock:
        assert lock.held
        assert lock.path.read_text().strip() == str(os.getpid())
    assert not lock.held


def test_second_holder_is_refused(tmp_path):
    path = tmp_path / "control.lock"
    with ControlLock(path):
        with pytest.raises(ControlLockBusy) as exc:
            ControlLock(path).acquire()
    assert exc.value.holder == os.getpid()
    assert str(path) in str(exc.value)


def test_lock_is_reusable_after_release(tmp_path):
    path = tmp_path / "control.lock"
    first = ControlLock(path)
    first.acquire()
    first.release()

    second = ControlLock(path)
    second.acquire()
    assert second.held
    second.release()


def test_released_on_exception(tmp_path):
    lock = ControlLock(tmp_path / "control.lock")
    with pytest.raises(RuntimeError):
        with lock:
            raise RuntimeError("boom")
    assert not lock.held
    with ControlLock(lock.path):
        pass


def test_release_without_acquire_is_noop(tmp_path):
    ControlLock(tmp_path / "control.lock").release()
