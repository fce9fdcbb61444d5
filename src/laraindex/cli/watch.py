"""laraindex watch command - keep the index fresh while files change."""

import asyncio
import contextlib
from pathlib import Path

import click
from rich.console import Console

from laraindex.cli.utils import is_verbose, load_project_config, make_stats_table
from laraindex.core.excludes import DEFAULT_PRUNABLE_DIRS
from laraindex.daemon.invalidation import InvalidationController
from laraindex.daemon.watcher import FileWatcher
from laraindex.index.models import RebuildStats
from laraindex.index.ops import IndexCoordinator


async def _watch(coordinator: IndexCoordinator, console: Console) -> None:
    def report(results: list[RebuildStats]) -> None:
        console.print(make_stats_table(results))

    controller = InvalidationController(coordinator, on_rebuilt=report)
    layout = coordinator.config.layout
    watcher = FileWatcher(
        coordinator.project_root,
        on_change=controller.submit,
        debounce_window=coordinator.config.watcher.debounce_sec,
        max_debounce_wait=coordinator.config.watcher.max_debounce_wait_sec,
        prunable_dirs=DEFAULT_PRUNABLE_DIRS if layout.excluded_dirs is None else frozenset(layout.excluded_dirs),
    )
    consumer = asyncio.create_task(controller.run())
    await watcher.start()
    try:
        await consumer
    finally:
        await watcher.stop()
        controller.stop()
        with contextlib.suppress(asyncio.CancelledError):
            await consumer


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def watch_command(ctx: click.Context, path: Path) -> None:
    """Index a project, then rebuild affected domains on every change.

    PATH is the project root (default: current directory). Stop with Ctrl+C.
    """
    project_root = path.resolve()
    config = load_project_config(project_root, verbose=is_verbose(ctx))
    console = Console(stderr=True)

    coordinator = IndexCoordinator(project_root, config)
    with console.status("[cyan]Building index...[/cyan]", spinner="dots"):
        results = coordinator.initialize()
    console.print(make_stats_table(results))
    console.print(f"[green]✓[/green] Watching {project_root}")

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_watch(coordinator, console))
