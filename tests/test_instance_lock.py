"""Tests for the single-instance lock."""

import os

import pytest

from sonicradio.core.instance_lock import AlreadyRunning, InstanceLock


class TestInstanceLock:
    def test_acquire_writes_pid(self, tmp_path):
        lock = InstanceLock(tmp_path / "run" / "sonicradio.lock")
        lock.acquire()
        try:
            assert lock.held
            assert lock.path.read_text().strip() == str(os.getpid())
        finally:
            lock.release()
        assert not lock.held

    def test_second_holder_rejected(self, tmp_path):
        path = tmp_path / "sonicradio.lock"
        with InstanceLock(path):
            with pytest.raises(AlreadyRunning):
                InstanceLock(path).acquire()

    def test_reacquire_after_release(self, tmp_path):
        path = tmp_path / "sonicradio.lock"
        with InstanceLock(path):
            pass
        with InstanceLock(path) as lock:
            assert lock.held

    def test_acquire_and_release_are_idempotent(self, tmp_path):
        lock = InstanceLock(tmp_path / "sonicradio.lock")
        lock.acquire()
        lock.acquire()
        lock.release()
        lock.release()
