"""Sink registry — maps emitter names to sink factories.

The registry is an explicit object built during startup (see
``default_registry``) and handed to the supervisor; nothing registers
itself at import time.  After startup it is only read, once, to resolve the
configured ``HABERDASHER_EMITTER``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from haberdasher.config import HaberdasherConfig
from haberdasher.exceptions import UnknownSinkError
from haberdasher.routing.sinks import BaseSink
from haberdasher.routing.sinks.local_file import LocalFileSink
from haberdasher.routing.sinks.stream import StderrSink, StdoutSink

logger = logging.getLogger(__name__)

SinkFactory = Callable[[HaberdasherConfig], BaseSink]


class SinkRegistry:
    """Name -> factory lookup for sink implementations.

    Usage
    -----
    >>> registry = SinkRegistry()
    >>> registry.register("stderr", lambda config: StderrSink())
    >>> registry.names
    ['stderr']
    """

    def __init__(self) -> None:
        self._factories: dict[str, SinkFactory] = {}

    def register(self, name: str, factory: SinkFactory) -> None:
        """Register *factory* under *name*.

        Raises ``ValueError`` if the name is already taken.
        """
        if name in self._factories:
            raise ValueError(f"Sink {name!r} is already registered")
        self._factories[name] = factory
        logger.debug("Registered sink: %s", name)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    @property
    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(self, name: str, config: HaberdasherConfig) -> BaseSink:
        """Instantiate the sink registered under *name*.

        Raises
        ------
        UnknownSinkError
            If no sink is registered under *name*.
        """
        try:
            factory = self._factories[name]
        except KeyError:
            raise UnknownSinkError(name, self.names) from None
        return factory(config)


def default_registry() -> SinkRegistry:
    """Build a registry holding the built-in sinks."""
    registry = SinkRegistry()
    registry.register("stderr", lambda config: StderrSink())
    registry.register("stdout", lambda config: StdoutSink())
    registry.register("local_file", lambda config: LocalFileSink(config.local_file_path))
    return registry
