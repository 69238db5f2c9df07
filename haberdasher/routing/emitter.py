"""Per-line classification and delivery.

If a captured line is already a JSON object it is passed along unmodified;
otherwise it is wrapped in a basic ECS envelope.  ``emit`` is what each
dispatcher worker runs for one line.
"""

from __future__ import annotations

import json
import logging

from haberdasher.models.record import LogRecord, RecordDefaults
from haberdasher.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def classify_line(line: str, defaults: RecordDefaults) -> bytes:
    """Return the serialized record to deliver for *line*.

    Only JSON *objects* count as structured; arrays, numbers and bare
    strings are wrapped like any other text, as are objects that use the
    non-standard ``NaN`` or ``Infinity`` literals.
    """
    try:
        decoded = json.loads(line, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        decoded = None
    if isinstance(decoded, dict):
        return line.encode("utf-8")
    return LogRecord.wrap(line, defaults).to_json_bytes()


def emit(sink: BaseSink, line: str, defaults: RecordDefaults) -> bool:
    """Classify *line* and hand it to *sink*.

    Delivery failures are logged with the offending record and never
    raised.  Returns ``True`` when the sink accepted the record.
    """
    record = classify_line(line, defaults)
    try:
        sink.handle_log_message(record)
    except Exception as exc:  # noqa: BLE001
        logger.error("Error emitting message %r to %s: %s", record, sink.sink_name, exc)
        return False
    return True
