"""Environment-driven configuration for the supervisor.

Centralized config using pydantic-settings.  Reads ``HABERDASHER_*``
environment variables and, when present, a ``.env`` file in the working
directory.  Complex values (tags, labels) are given as JSON, which
pydantic-settings decodes before validation.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from haberdasher.exceptions import ConfigurationError


class HaberdasherConfig(BaseSettings):
    """Supervisor configuration with environment variable overrides.

    Examples
    --------
    Select a sink and attach default tags/labels to wrapped messages::

        export HABERDASHER_EMITTER=stdout
        export HABERDASHER_TAGS='["web", "blue"]'
        export HABERDASHER_LABELS='{"app": "inventory"}'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HABERDASHER_",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Sink selection and record defaults
    emitter: str = "stderr"
    tags: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)

    log_level: str = "INFO"

    # Delivery pool and shutdown barrier
    max_workers: int = Field(default=8, ge=1)
    max_pending: int = Field(default=1024, ge=1)
    drain_timeout: float = Field(default=5.0, ge=0)

    # Process hygiene
    reap_zombies: bool = True
    reap_interval: float = Field(default=0.5, gt=0)
    signal_grace_period: float = Field(default=1.0, ge=0)

    # Exit status of the normal (end-of-stream) shutdown path
    propagate_exit_status: bool = False
    child_exit_timeout: float = Field(default=5.0, ge=0)

    # local_file sink
    local_file_path: Path = Path("haberdasher.log")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


_FIELD_HINTS = {
    "tags": "HABERDASHER_TAGS must be a JSON array of strings",
    "labels": "HABERDASHER_LABELS must be a JSON object of strings",
}


def load_config(**overrides: object) -> HaberdasherConfig:
    """Build the process configuration, failing fast on malformed values.

    Raises
    ------
    ConfigurationError
        If ``HABERDASHER_TAGS`` is not a JSON array of strings, if
        ``HABERDASHER_LABELS`` is not a JSON object of strings, or if any
        other setting fails validation.
    """
    try:
        return HaberdasherConfig(**overrides)
    except SettingsError as exc:
        # pydantic-settings reports undecodable JSON as 'field "tags"'.
        fields = [name for name in _FIELD_HINTS if f'"{name}"' in str(exc)]
        raise ConfigurationError(_describe(fields, str(exc))) from exc
    except ValidationError as exc:
        fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
        raise ConfigurationError(_describe(fields, str(exc))) from exc


def _describe(fields: list[str], detail: str) -> str:
    hints = [_FIELD_HINTS[name] for name in _FIELD_HINTS if name in fields]
    if hints:
        return "; ".join(hints)
    names = ", ".join(f"HABERDASHER_{name.upper()}" for name in fields)
    return f"Invalid configuration for {names or 'HABERDASHER_*'}: {detail}"
