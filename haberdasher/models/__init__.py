"""Haberdasher data models — immutable pydantic records."""

from haberdasher.models.record import ECS_VERSION, LogRecord, RecordDefaults

__all__ = ["ECS_VERSION", "LogRecord", "RecordDefaults"]
