"""diymcp CLI entrypoint."""

from __future__ import annotations

import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from diymcp import __version__
from diymcp.config import ConfigError, load_settings


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    # LiteLLM is chatty at DEBUG
    logging.getLogger("LiteLLM").setLevel(logging.INFO if verbose else logging.WARNING)


@click.group()
@click.version_option(version=__version__, prog_name="diymcp")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML settings file.",
)
@click.option("--server", "-s", default=None, help="Command that starts the tool server.")
@click.option("--model", "-m", default=None, help="LiteLLM model name, e.g. openai/gpt-4o-mini.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Export tracing spans.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    server: str | None,
    model: str | None,
    verbose: bool,
    telemetry: bool,
) -> None:
    """diymcp — talk to a tool server directly or through an LLM."""
    load_dotenv()
    _configure_logging(verbose)

    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)

    settings = settings.with_overrides(server=server, model=model)
    if telemetry:
        settings.telemetry.enabled = True
    if settings.telemetry.enabled:
        from diymcp.utils.telemetry import configure_telemetry

        configure_telemetry(settings.telemetry)

    ctx.obj = settings


# Register subcommands
from diymcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
