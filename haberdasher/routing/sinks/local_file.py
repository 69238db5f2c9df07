"""Local file sink — appends records to a JSON-lines file.

Layout: one serialized record per line in ``{path}``.  The file is opened
in append mode in ``setup()`` and closed in ``cleanup()``, so a restarted
supervisor keeps adding to the same log.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Appends records to a local JSON-lines file.

    Parameters
    ----------
    path:
        Target file.  Parent directories are created on ``setup()``.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._handle: BinaryIO | None = None
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "local_file"

    @property
    def path(self) -> Path:
        return self._path

    def setup(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("ab")
        logger.info("LocalFileSink: appending records to %s", self._path)

    def handle_log_message(self, record: bytes) -> None:
        with self._lock:
            if self._handle is None:
                raise RuntimeError("local_file sink is not open")
            self._handle.write(record + b"\n")

    def cleanup(self) -> None:
        with self._lock:
            if self._handle is None:
                return
            try:
                self._handle.flush()
            finally:
                self._handle.close()
                self._handle = None
        logger.debug("LocalFileSink: closed %s", self._path)

    def read_records(self) -> list[dict]:
        """Read back every record in the file (for inspection and tests)."""
        if not self._path.exists():
            return []
        with self._path.open("rb") as handle:
            return [json.loads(line) for line in handle if line.strip()]
