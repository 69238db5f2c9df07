"""Exception hierarchy for Haberdasher.

Startup-fatal conditions derive from ``HaberdasherError`` and abort the
process before the child is spawned (or, for ``SpawnError``, instead of
spawning it).  Per-record delivery errors and sink teardown errors are never
raised past the component that observes them; they are logged and the
supervisor keeps going.
"""

from __future__ import annotations


class HaberdasherError(RuntimeError):
    """Base class for errors that stop the supervisor from starting."""


class ConfigurationError(HaberdasherError):
    """Raised when ``HABERDASHER_*`` environment configuration is malformed."""


class UnknownSinkError(HaberdasherError):
    """Raised when the configured sink name has no registered implementation."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown emitter {name!r}; available emitters: "
            + (", ".join(sorted(available)) or "<none>")
        )


class SpawnError(HaberdasherError):
    """Raised when the child process cannot be started."""
