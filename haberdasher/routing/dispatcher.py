"""LogDispatcher — runs per-line emission on a bounded worker pool.

The read loop submits each captured line and immediately goes back to
reading; classification and delivery happen on worker threads, so lines
may reach the sink out of order.  At most ``max_pending`` lines are queued
or in flight at once; beyond that ``submit`` blocks, applying back-pressure
to the child's stderr pipe instead of growing memory without bound.

``drain`` is the shutdown barrier used by both shutdown paths.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from haberdasher.models.record import RecordDefaults
from haberdasher.routing.emitter import emit
from haberdasher.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


class LogDispatcher:
    """Fans captured lines out to a worker pool that delivers them to *sink*.

    Usage
    -----
    >>> dispatcher = LogDispatcher(sink, RecordDefaults(), max_workers=4)
    >>> dispatcher.submit("plain text line")
    True
    >>> dispatcher.drain(timeout=5.0)
    True
    """

    def __init__(
        self,
        sink: BaseSink,
        defaults: RecordDefaults,
        *,
        max_workers: int = 8,
        max_pending: int = 1024,
    ) -> None:
        self._sink = sink
        self._defaults = defaults
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="haberdasher-emit"
        )
        self._slots = threading.BoundedSemaphore(max_pending)
        self._cond = threading.Condition()
        self._pending = 0
        self._closed = False
        self.delivered = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        """Lines submitted but not yet delivered (or failed)."""
        with self._cond:
            return self._pending

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, line: str) -> bool:
        """Queue *line* for classification and delivery.

        Blocks while ``max_pending`` lines are outstanding.  Returns
        ``False`` (and drops the line) once ``drain`` has started.
        """
        self._slots.acquire()
        with self._cond:
            if self._closed:
                self._slots.release()
                logger.warning("Dispatcher is draining, dropping line: %r", line)
                return False
            self._pending += 1
        try:
            self._executor.submit(self._run, line)
        except RuntimeError:
            self._finish(ok=False)
            logger.warning("Worker pool is shut down, dropping line: %r", line)
            return False
        return True

    def _run(self, line: str) -> None:
        ok = False
        try:
            ok = emit(self._sink, line, self._defaults)
        finally:
            self._finish(ok)

    def _finish(self, ok: bool) -> None:
        with self._cond:
            self._pending -= 1
            if ok:
                self.delivered += 1
            else:
                self.failed += 1
            self._cond.notify_all()
        self._slots.release()

    # ------------------------------------------------------------------
    # Shutdown barrier
    # ------------------------------------------------------------------

    def drain(self, timeout: float | None = None) -> bool:
        """Stop accepting lines and wait for in-flight deliveries.

        Returns ``True`` if every submitted line finished within *timeout*
        seconds.  Lines still outstanding afterwards are abandoned.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            self._closed = True
            while self._pending:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    break
                self._cond.wait(remaining)
            abandoned = self._pending
        self._executor.shutdown(wait=False, cancel_futures=True)
        if abandoned:
            logger.warning(
                "Drain timed out after %.1fs, abandoning %d undelivered line(s)",
                timeout,
                abandoned,
            )
            return False
        logger.debug(
            "Dispatcher drained: %d delivered, %d failed", self.delivered, self.failed
        )
        return True
