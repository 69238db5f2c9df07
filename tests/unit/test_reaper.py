"""Tests for the zombie reaper."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import threading

import pytest

from haberdasher.core.reaper import ZombieReaper, exit_code_from_status


def _status(code: int) -> int:
    """Raw wait status for a normal exit with *code*."""
    return code << 8


class _FakeWaitpid:
    """Returns queued (pid, status) pairs, then reports no children."""

    def __init__(self, results: list[tuple[int, int]]) -> None:
        self._results = list(results)
        self.calls = 0

    def __call__(self, pid: int, options: int) -> tuple[int, int]:
        assert (pid, options) == (-1, 0)
        self.calls += 1
        if not self._results:
            raise ChildProcessError(10, "No child processes")
        return self._results.pop(0)


class TestExitCode:
    def test_normal_exit(self):
        assert exit_code_from_status(_status(3)) == 3

    def test_signal_death(self):
        assert exit_code_from_status(signal.SIGTERM) == 128 + signal.SIGTERM


class TestZombieReaper:
    def test_reap_once_no_children(self):
        reaper = ZombieReaper(waitpid=_FakeWaitpid([]))
        assert reaper.reap_once() is None
        assert reaper.reaped == 0

    def test_watched_pid_exit_code_recorded(self):
        reaper = ZombieReaper(waitpid=_FakeWaitpid([(100, _status(7))]))
        reaper.watch(100)
        assert reaper.reap_once() == 100
        assert reaper.wait_for(100, timeout=0) == 7

    def test_exit_before_watch_is_not_lost(self):
        reaper = ZombieReaper(waitpid=_FakeWaitpid([(100, _status(2))]))
        reaper.reap_once()
        reaper.watch(100)
        assert reaper.wait_for(100, timeout=0) == 2

    def test_unrelated_zombies_reaped(self):
        waitpid = _FakeWaitpid([(200, _status(0)), (201, _status(1))])
        reaper = ZombieReaper(waitpid=waitpid)
        reaper.watch(100)
        reaper.reap_once()
        reaper.reap_once()
        assert reaper.reaped == 2
        assert reaper.wait_for(100, timeout=0) is None

    def test_wait_for_unknown_pid_times_out(self):
        reaper = ZombieReaper(waitpid=_FakeWaitpid([]))
        assert reaper.wait_for(999, timeout=0.01) is None

    def test_background_loop_and_stop(self):
        waitpid = _FakeWaitpid([(300, _status(0))])
        reaper = ZombieReaper(interval=0.01, waitpid=waitpid)
        reaper.watch(300)
        reaper.start()
        assert reaper.running
        assert reaper.wait_for(300, timeout=5) == 0
        reaper.stop()
        reaper._thread.join(timeout=5)
        assert not reaper.running


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX wait semantics")
class TestZombieReaperRealProcess:
    def test_reaps_real_child(self):
        reaper = ZombieReaper(interval=0.01)
        proc = subprocess.Popen([sys.executable, "-c", "raise SystemExit(5)"])
        reaper.watch(proc.pid)
        reaper.start()
        try:
            assert reaper.wait_for(proc.pid, timeout=10) == 5
        finally:
            reaper.stop()
            reaper._thread.join(timeout=5)
        with pytest.raises(ChildProcessError):
            os.waitpid(proc.pid, os.WNOHANG)
