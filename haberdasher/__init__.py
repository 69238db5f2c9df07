"""Haberdasher: container-sidecar supervisor with structured stderr logging.

Runs one child program (as PID 1 if need be), relays stop signals to it,
reaps orphaned zombies, and turns every line the child writes to stderr
into a JSON log record shipped to a pluggable sink:
  - JSON-object lines pass through byte-for-byte
  - plain text is wrapped in an ECS 1.5.0 envelope with default tags/labels
  - sinks: stderr (default), stdout, local_file
"""

__version__ = "0.2.0"

from haberdasher.config import HaberdasherConfig, load_config
from haberdasher.core.supervisor import Supervisor
from haberdasher.routing.registry import SinkRegistry, default_registry

__all__ = [
    "HaberdasherConfig",
    "SinkRegistry",
    "Supervisor",
    "default_registry",
    "load_config",
    "__version__",
]
