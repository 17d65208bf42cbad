"""Valhalla CLI - valhalla command."""

import click

from valhalla.cli.complete import complete_command
from valhalla.cli.scopes import scopes_command
from valhalla.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="valhalla")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Valhalla - code completion for Vala sources."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(complete_command, name="complete")
cli.add_command(scopes_command, name="scopes")


if __name__ == "__main__":
    cli()
