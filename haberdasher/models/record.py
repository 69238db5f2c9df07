"""ECS-compatible envelope for plain-text log lines.

When the supervised program writes structured JSON to stderr, the line is
shipped unmodified.  Anything else is wrapped in a ``LogRecord`` carrying
the process-wide default tags and labels.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from haberdasher.config import HaberdasherConfig

ECS_VERSION = "1.5.0"


class RecordDefaults(BaseModel):
    """Tags and labels stamped onto every wrapped message.

    Built once at startup and shared read-only by all delivery workers.
    """

    model_config = ConfigDict(frozen=True)

    tags: tuple[str, ...] = ()
    labels: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_config(cls, config: HaberdasherConfig) -> RecordDefaults:
        return cls(tags=tuple(config.tags), labels=dict(config.labels))


class LogRecord(BaseModel):
    """A structured log message synthesized from one plain-text line.

    Field aliases give the wire names (``ecs.version``, ``@timestamp``);
    construct via ``wrap`` and serialize with ``to_json_bytes``.
    """

    model_config = ConfigDict(frozen=True)

    ecs_version: str = Field(default=ECS_VERSION, alias="ecs.version")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="@timestamp"
    )
    labels: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    message: str

    @classmethod
    def wrap(cls, message: str, defaults: RecordDefaults) -> LogRecord:
        """Wrap *message* with the capture-time timestamp and *defaults*."""
        return cls(
            message=message,
            labels=dict(defaults.labels),
            tags=list(defaults.tags),
        )

    def to_json_bytes(self) -> bytes:
        """Compact JSON with wire field names."""
        return self.model_dump_json(by_alias=True).encode("utf-8")
