"""Supervisor — spawns the child and drives the stderr -> sink pipeline.

Startup order matters:

1. Resolve and set up the sink (unknown names fail before anything runs).
2. Start the zombie reaper.
3. Install signal handlers and start the relay *before* spawning, so a stop
   signal arriving during the spawn window is queued rather than lost.
4. Spawn the child with stdout inherited and stderr piped.
5. Publish the child pid, then read stderr line by line until EOF.

Both ways out (EOF on stderr, or a relayed signal) go through the same
once-only ``shutdown`` sequence: drain in-flight deliveries, tear down the
sink, stop the reaper.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Sequence
from typing import IO

from haberdasher.config import HaberdasherConfig
from haberdasher.core.handoff import PidCell
from haberdasher.core.reaper import ZombieReaper
from haberdasher.core.signal_relay import SignalRelay
from haberdasher.exceptions import SpawnError
from haberdasher.models.record import RecordDefaults
from haberdasher.routing.dispatcher import LogDispatcher
from haberdasher.routing.registry import SinkRegistry, default_registry
from haberdasher.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


def decode_line(raw: bytes) -> str:
    """Strip the line terminator (``\\n`` or ``\\r\\n``) and decode as UTF-8."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


class Supervisor:
    """Runs one child process and ships its stderr to the configured sink.

    Parameters
    ----------
    config:
        The loaded ``HaberdasherConfig``.
    registry:
        Sink registry to resolve ``config.emitter`` against.  Defaults to
        ``default_registry()``.
    handle_signals:
        Install OS signal handlers (main thread only).  When ``False`` the
        relay still runs and can be fed through ``relay.notify``.
    exit_process:
        Called with the exit status at the end of a signal-driven shutdown,
        and after an end-of-stream drain that timed out.  Defaults to
        ``os._exit``: the relay runs off the main thread, and abandoned
        delivery threads must not hold the process open.
    """

    def __init__(
        self,
        config: HaberdasherConfig,
        registry: SinkRegistry | None = None,
        *,
        handle_signals: bool = True,
        exit_process: Callable[[int], None] = os._exit,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self._config = config
        self._registry = registry or default_registry()
        self._handle_signals = handle_signals
        self._exit_process = exit_process
        self._popen = popen

        self.pid_cell = PidCell()
        self.reaper = ZombieReaper(interval=config.reap_interval)
        self.relay = SignalRelay(
            self.pid_cell,
            self.terminate,
            grace_period=config.signal_grace_period,
        )
        self.sink: BaseSink | None = None
        self.dispatcher: LogDispatcher | None = None

        self._shutdown_lock = threading.Lock()
        self._shut_down = False
        self._drained = True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, argv: Sequence[str]) -> int:
        """Supervise ``argv`` until its stderr closes; return the exit status.

        Raises
        ------
        UnknownSinkError
            If ``config.emitter`` is not registered.
        SpawnError
            If the child cannot be started.
        """
        if not argv:
            raise SpawnError("No command given to supervise")

        logger.info("Initializing haberdasher")
        self.sink = self._registry.create(self._config.emitter, self._config)
        logger.info("Configured emitter: %s", self.sink.sink_name)
        self.sink.setup()
        self.dispatcher = LogDispatcher(
            self.sink,
            RecordDefaults.from_config(self._config),
            max_workers=self._config.max_workers,
            max_pending=self._config.max_pending,
        )

        if self._config.reap_zombies:
            self.reaper.start()
        if self._handle_signals:
            self.relay.install()
        self.relay.start()

        try:
            try:
                proc = self._spawn(argv)
            except SpawnError:
                self.shutdown()
                raise

            self.pid_cell.set(proc.pid)
            if self.reaper.running:
                self.reaper.watch(proc.pid)
            logger.info("Started %s as pid %d", argv[0], proc.pid)

            assert proc.stderr is not None
            with proc.stderr:
                self._read_loop(proc.stderr)

            status = self._child_status(proc)
            drained = self.shutdown()
            if self.relay.triggered:
                # The relay thread owns the exit on the signal path.
                return 0
            if not drained:
                # Stuck delivery threads would block interpreter exit.
                logger.warning("Exiting with deliveries still in flight")
                self._exit(status)
            return status
        finally:
            self.relay.cancel()
            if self._handle_signals:
                self.relay.restore()

    def _spawn(self, argv: Sequence[str]) -> subprocess.Popen:
        try:
            # stdout=None inherits our stdout: the child's output passes
            # through untouched.
            return self._popen(list(argv), stdout=None, stderr=subprocess.PIPE)
        except OSError as exc:
            raise SpawnError(f"Failed to start {argv[0]!r}: {exc}") from exc

    def _read_loop(self, stream: IO[bytes]) -> int:
        assert self.dispatcher is not None
        count = 0
        for raw in stream:
            count += 1
            self.dispatcher.submit(decode_line(raw))
        logger.debug("Child stderr closed after %d line(s)", count)
        return count

    def _child_status(self, proc: subprocess.Popen) -> int:
        if not self._config.propagate_exit_status:
            return 0
        timeout = self._config.child_exit_timeout
        if self.reaper.running:
            code = self.reaper.wait_for(proc.pid, timeout)
        else:
            try:
                returncode = proc.wait(timeout)
            except subprocess.TimeoutExpired:
                code = None
            else:
                code = 128 - returncode if returncode < 0 else returncode
        if code is None:
            logger.warning(
                "Child %d still running %.1fs after closing stderr; exiting 0",
                proc.pid,
                timeout,
            )
            return 0
        logger.info("Child %d exited with status %d", proc.pid, code)
        return code

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def shutdown(self) -> bool:
        """Drain deliveries, tear down the sink and stop the reaper (once).

        Returns ``False`` if the drain timed out with lines still in flight.
        """
        with self._shutdown_lock:
            if self._shut_down:
                return self._drained
            self._shut_down = True

            if self.dispatcher is not None:
                self._drained = self.dispatcher.drain(self._config.drain_timeout)
            if self.sink is not None:
                try:
                    self.sink.cleanup()
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Error cleaning up emitter %s: %s", self.sink.sink_name, exc)
            self.reaper.stop()
            return self._drained

    def terminate(self, status: int = 0) -> None:
        """Signal-driven exit: shut down, flush stdio, end the process."""
        self.shutdown()
        self._exit(status)

    def _exit(self, status: int) -> None:
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass
        self._exit_process(status)
