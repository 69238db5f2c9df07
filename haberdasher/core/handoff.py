"""Single-assignment handoff of the child pid between threads."""

from __future__ import annotations

import threading


class PidCell:
    """Holds a pid that is written exactly once and read from other threads.

    Readers either see ``None`` ("no child yet") or the final pid; the
    event provides the happens-before edge between writer and readers.
    """

    def __init__(self) -> None:
        self._value: int | None = None
        self._ready = threading.Event()
        self._lock = threading.Lock()

    def set(self, pid: int) -> None:
        with self._lock:
            if self._ready.is_set():
                raise RuntimeError(f"pid already set to {self._value}")
            self._value = pid
            self._ready.set()

    def get(self, timeout: float | None = 0) -> int | None:
        """Return the pid, waiting up to *timeout* seconds for it to be set.

        ``timeout=0`` never blocks; ``None`` waits indefinitely.
        """
        if timeout == 0:
            return self._value if self._ready.is_set() else None
        if self._ready.wait(timeout):
            return self._value
        return None

    @property
    def is_set(self) -> bool:
        return self._ready.is_set()
