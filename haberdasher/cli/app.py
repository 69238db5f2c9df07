"""Typer entry point: ``haberdasher COMMAND [ARGS...]``.

Entry point: ``haberdasher`` (configured via pyproject.toml console_scripts).

Everything after the first positional argument is passed to the child
untouched, options included, so ``haberdasher gunicorn --workers 4 app:app``
works without a ``--`` separator.
"""

from __future__ import annotations

import logging
import sys

import typer
from rich.console import Console

from haberdasher import __version__
from haberdasher.config import HaberdasherConfig, load_config
from haberdasher.core.supervisor import Supervisor
from haberdasher.exceptions import ConfigurationError, HaberdasherError

logger = logging.getLogger(__name__)

console = Console(stderr=True)

app = typer.Typer(
    name="haberdasher",
    help="Supervise a program and ship its stderr as structured logs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(config: HaberdasherConfig) -> None:
    """Send the supervisor's own diagnostics to stderr."""
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s haberdasher %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"haberdasher {__version__}")
        raise typer.Exit()


@app.command(
    no_args_is_help=True,
    context_settings={
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
    },
)
def run(
    command: list[str] = typer.Argument(
        ..., help="Program to supervise, followed by its arguments."
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Run COMMAND, relaying signals to it and shipping its stderr to a sink.

    Configuration comes from HABERDASHER_* environment variables, e.g.
    HABERDASHER_EMITTER, HABERDASHER_TAGS and HABERDASHER_LABELS.
    """
    try:
        config = load_config()
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}", highlight=False)
        raise typer.Exit(code=1)

    configure_logging(config)

    try:
        status = Supervisor(config).run(command)
    except HaberdasherError as exc:
        logger.error("%s", exc)
        console.print(f"[red]Fatal:[/red] {exc}", highlight=False)
        raise typer.Exit(code=1)
    raise typer.Exit(code=status)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
