"""laraindex CLI - developer harness over the index."""

import click

from laraindex.cli.scan import scan_command
from laraindex.cli.watch import watch_command
from laraindex.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="laraindex")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """laraindex - convention index for Laravel projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(scan_command, name="scan")
cli.add_command(watch_command, name="watch")


if __name__ == "__main__":
    cli()
