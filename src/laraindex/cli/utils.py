"""CLI utilities."""

from pathlib import Path

import click
from rich.table import Table

from laraindex.config.loader import load_config
from laraindex.config.models import LaraIndexConfig
from laraindex.core.errors import ConfigError
from laraindex.core.logging import configure_logging
from laraindex.index.models import RebuildStats


def load_project_config(project_root: Path, *, verbose: bool = False) -> LaraIndexConfig:
    """Load config for project_root and reconfigure logging from it.

    Config errors become CLI errors. ``verbose`` forces the root level to DEBUG.
    """
    try:
        config = load_config(project_root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    logging_config = config.logging.model_copy(update={"level": "DEBUG"}) if verbose else config.logging
    configure_logging(config=logging_config)
    return config


def is_verbose(ctx: click.Context) -> bool:
    """The group's -v flag, False when the command runs standalone."""
    root = ctx.find_root()
    return bool(root.obj and root.obj.get("verbose"))


def make_stats_table(results: list[RebuildStats]) -> Table:
    """One row per domain rebuild."""
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("domain", style="cyan")
    table.add_column("entities", justify="right")
    table.add_column("files", justify="right")
    table.add_column("skipped", justify="right")
    table.add_column("ms", justify="right", style="dim")

    for stats in results:
        skipped = f"[yellow]{stats.files_skipped}[/yellow]" if stats.files_skipped else "0"
        table.add_row(
            stats.domain.value if stats.ok else f"[red]{stats.domain.value} (failed)[/red]",
            str(stats.entity_count),
            str(stats.files_scanned),
            skipped,
            f"{stats.duration_ms:.1f}",
        )
    return table
