"""Standard stream sinks — write one JSON record per line to stderr or stdout.

``stderr`` is the default sink: in a container the runtime already
collects the supervisor's own stderr, so re-emitting structured records
there is enough for most log collectors.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import BinaryIO

logger = logging.getLogger(__name__)


class StreamSink:
    """Writes newline-terminated records to a binary stream.

    Parameters
    ----------
    stream:
        Target binary stream.  When omitted, the stream is resolved in
        ``setup()`` via ``_default_stream()``.
    """

    name = "stream"

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return self.name

    def _default_stream(self) -> BinaryIO:
        raise NotImplementedError

    def setup(self) -> None:
        if self._stream is None:
            self._stream = self._default_stream()
        logger.debug("%s sink ready", self.sink_name)

    def handle_log_message(self, record: bytes) -> None:
        if self._stream is None:
            raise RuntimeError(f"{self.sink_name} sink used before setup()")
        # One write per record under the lock so concurrent lines never interleave.
        with self._lock:
            self._stream.write(record + b"\n")
            self._stream.flush()

    def cleanup(self) -> None:
        if self._stream is None:
            return
        with self._lock:
            self._stream.flush()


class StderrSink(StreamSink):
    name = "stderr"

    def _default_stream(self) -> BinaryIO:
        return sys.stderr.buffer


class StdoutSink(StreamSink):
    name = "stdout"

    def _default_stream(self) -> BinaryIO:
        return sys.stdout.buffer
