"""Zombie reaper for when the supervisor runs as PID 1.

Orphaned descendants are re-parented to PID 1, and nobody else will ever
wait on them.  The reaper thread collects every exited child of this
process, including the supervised one, whose exit code it records so the
supervisor can report it without a competing ``wait()``.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Exit codes of pids nobody asked about yet, kept so a child that exits
# before ``watch()`` is called is not lost.
_UNCLAIMED_LIMIT = 64


def exit_code_from_status(status: int) -> int:
    """Convert a raw wait status to a shell-style exit code (signal -> 128+N)."""
    code = os.waitstatus_to_exitcode(status)
    return 128 - code if code < 0 else code


class ZombieReaper:
    """Background thread that reaps every exited child process.

    Parameters
    ----------
    interval:
        Seconds to sleep when this process currently has no children.
    waitpid:
        Injection point for tests; defaults to ``os.waitpid``.
    """

    def __init__(
        self,
        interval: float = 0.5,
        *,
        waitpid: Callable[[int, int], tuple[int, int]] = os.waitpid,
    ) -> None:
        self._interval = interval
        self._waitpid = waitpid
        self._stop = threading.Event()
        self._cond = threading.Condition()
        self._watched: dict[int, int | None] = {}
        self._unclaimed: OrderedDict[int, int] = OrderedDict()
        self._thread: threading.Thread | None = None
        self.reaped = 0

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._loop, name="haberdasher-reaper", daemon=True
        )
        self._thread.start()
        logger.debug("Zombie reaper started")

    def stop(self) -> None:
        self._stop.set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Exit status tracking
    # ------------------------------------------------------------------

    def watch(self, pid: int) -> None:
        """Record the exit code of *pid* when it is reaped."""
        with self._cond:
            self._watched[pid] = self._unclaimed.pop(pid, None)
            self._cond.notify_all()

    def wait_for(self, pid: int, timeout: float | None = None) -> int | None:
        """Block until watched *pid* is reaped; return its exit code or ``None``."""
        with self._cond:
            self._cond.wait_for(lambda: self._watched.get(pid) is not None, timeout)
            return self._watched.get(pid)

    def _record(self, pid: int, code: int) -> None:
        with self._cond:
            self.reaped += 1
            if pid in self._watched:
                self._watched[pid] = code
                self._cond.notify_all()
                return
            self._unclaimed[pid] = code
            while len(self._unclaimed) > _UNCLAIMED_LIMIT:
                self._unclaimed.popitem(last=False)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def reap_once(self) -> int | None:
        """Reap a single child, blocking until one exits.

        Returns the reaped pid, or ``None`` if there are no children.
        """
        try:
            pid, status = self._waitpid(-1, 0)
        except ChildProcessError:
            return None
        if pid <= 0:
            return None
        code = exit_code_from_status(status)
        logger.debug("Reaped pid %d (exit code %d)", pid, code)
        self._record(pid, code)
        return pid

    def _loop(self) -> None:
        while not self._stop.is_set():
            if self.reap_once() is None:
                self._stop.wait(self._interval)
