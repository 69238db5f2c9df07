"""Signal relay — forwards termination signals to the child, then shuts down.

As PID 1 in a container the supervisor gets the runtime's stop signals
instead of the child, so it must pass them along.  Python signal handlers
run on the main thread, which is busy reading the child's stderr, so the
handler only enqueues the signal number and a dedicated relay thread does
the actual work: forward the signal, run the shutdown sequence, exit.

SIGKILL is not in the relayed set: it cannot be caught, so a handler for it
could never run.
"""

from __future__ import annotations

import logging
import os
import queue
import signal
import threading
from collections.abc import Callable
from types import FrameType

from haberdasher.core.handoff import PidCell

logger = logging.getLogger(__name__)

# Received signal -> signal sent to the child.
RELAYED_SIGNALS: dict[signal.Signals, signal.Signals] = {
    signal.SIGHUP: signal.SIGHUP,
    signal.SIGINT: signal.SIGINT,
    signal.SIGTERM: signal.SIGTERM,
}


class SignalRelay:
    """Event loop over a queue of received signals.

    Parameters
    ----------
    pid_cell:
        Where the supervisor publishes the child pid after spawning.
    on_shutdown:
        Called with the exit status (always 0) after the signal has been
        forwarded.  In production this drains, tears down the sink and
        ends the process.
    grace_period:
        How long to wait for the child pid when a signal arrives before
        the child has been spawned.
    kill:
        Injection point for tests; defaults to ``os.kill``.
    """

    def __init__(
        self,
        pid_cell: PidCell,
        on_shutdown: Callable[[int], None],
        *,
        grace_period: float = 1.0,
        kill: Callable[[int, int], None] = os.kill,
    ) -> None:
        self._pid_cell = pid_cell
        self._on_shutdown = on_shutdown
        self._grace_period = grace_period
        self._kill = kill
        self._queue: queue.Queue[int | None] = queue.Queue()
        self._previous: dict[int, object] = {}
        self._thread: threading.Thread | None = None
        self._triggered = threading.Event()

    # ------------------------------------------------------------------
    # Handler installation (main thread only)
    # ------------------------------------------------------------------

    def install(self) -> None:
        """Route the relayed signals into this relay's queue."""
        for signum in RELAYED_SIGNALS:
            self._previous[signum] = signal.signal(signum, self._handle)

    def restore(self) -> None:
        """Put back the handlers that were active before ``install()``."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        self._queue.put(signum)

    def notify(self, signum: int) -> None:
        """Feed a signal into the relay as if it had been received."""
        self._queue.put(signum)

    # ------------------------------------------------------------------
    # Relay thread
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._loop, name="haberdasher-signals", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        """Stop the relay thread without triggering a shutdown."""
        self._queue.put(None)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def triggered(self) -> bool:
        """True once a relayed signal has started the signal-driven shutdown."""
        return self._triggered.is_set()

    def _loop(self) -> None:
        while True:
            signum = self._queue.get()
            if signum is None:
                return
            if signum not in RELAYED_SIGNALS:
                logger.debug("Ignoring signal %d", signum)
                continue
            self.relay(signum)
            return

    def relay(self, signum: int) -> bool:
        """Forward *signum* to the child and run the shutdown callback.

        Returns ``True`` if the signal was delivered to a child.
        """
        received = signal.Signals(signum)
        target = RELAYED_SIGNALS[received]
        self._triggered.set()
        logger.info("Signal received: %s", received.name)

        forwarded = False
        pid = self._pid_cell.get(timeout=self._grace_period)
        if pid is None:
            logger.warning("No child process to forward %s to", target.name)
        else:
            logger.info("Sending %s to %d", target.name, pid)
            try:
                self._kill(pid, target)
                forwarded = True
            except ProcessLookupError:
                logger.info("Child %d already exited", pid)
            except OSError as exc:
                logger.error("Failed to send %s to %d: %s", target.name, pid, exc)

        logger.info("Triggering emitter shutdown")
        self._on_shutdown(0)
        return forwarded
