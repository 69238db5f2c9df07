"""Sink protocol for Haberdasher log routing.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property and
the three lifecycle methods ``setup``, ``handle_log_message`` and
``cleanup``.  The supervisor calls ``setup`` once before the first record,
``handle_log_message`` once per record (from several worker threads at
once), and ``cleanup`` once on shutdown.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every Haberdasher sink must implement.

    Sinks report failures by raising.  The emitter logs a failed
    ``handle_log_message`` together with the offending record and carries
    on; the supervisor logs a failed ``cleanup`` and still exits.

    Attributes
    ----------
    sink_name : str
        The registry name of this sink (e.g. ``"stderr"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the registry name of this sink."""
        ...

    def setup(self) -> None:
        """Prepare the sink (open files, connect) before any delivery."""
        ...

    def handle_log_message(self, record: bytes) -> None:
        """Deliver one serialized JSON record.

        Must be safe to call concurrently from multiple threads.
        """
        ...

    def cleanup(self) -> None:
        """Flush buffered records and release resources."""
        ...
