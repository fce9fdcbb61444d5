"""laraindex scan command - build the index once and summarize it."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console

from laraindex.cli.utils import is_verbose, load_project_config, make_stats_table
from laraindex.index.detector import detect_laravel_project
from laraindex.index.ops import IndexCoordinator
from laraindex.index.queries import missing_translations, translation_report, validation_diagnostics
from laraindex.validation.registry import RuleRegistry


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--diagnostics", "-d", is_flag=True, help="Also check validation rules and translation keys")
@click.pass_context
def scan_command(ctx: click.Context, path: Path, as_json: bool, diagnostics: bool) -> None:
    """Index a Laravel project and print what was found.

    PATH is the project root (default: current directory).
    """
    project_root = path.resolve()
    config = load_project_config(project_root, verbose=is_verbose(ctx))
    info = detect_laravel_project(project_root)

    coordinator = IndexCoordinator(project_root, config)
    results = coordinator.initialize()
    snapshot = coordinator.snapshot

    issues = []
    if diagnostics:
        issues = validation_diagnostics(snapshot, RuleRegistry.from_config(config.validation))

    if as_json:
        payload = {
            "root": str(project_root),
            "is_laravel": info.is_laravel,
            "laravel_version": info.version,
            "version": snapshot.version,
            "counts": snapshot.counts(),
            "domains": [
                {
                    "domain": s.domain.value,
                    "entities": s.entity_count,
                    "files_scanned": s.files_scanned,
                    "files_skipped": s.files_skipped,
                    "duration_ms": s.duration_ms,
                    "errors": s.errors,
                }
                for s in results
            ],
        }
        if diagnostics:
            payload["diagnostics"] = [d.to_dict() for d in issues]
            payload["missing_translations"] = missing_translations(snapshot)
        click.echo(json.dumps(payload, indent=2))
    else:
        console = Console()
        if info.is_laravel:
            version = f" ({info.version})" if info.version else ""
            console.print(f"[bold]Laravel project{version}[/bold] {project_root}")
        else:
            console.print(f"[yellow]Not a Laravel project[/yellow] - scanning conventional directories in {project_root}")
        console.print()
        console.print(make_stats_table(results))

        if diagnostics:
            report = translation_report(snapshot)
            console.print()
            console.print(
                f"Translations: {report.total_keys} keys, {report.used_keys} used, "
                f"{report.missing_keys} missing ({report.usage_rate}% used)"
            )
            for diagnostic in issues:
                color = "red" if diagnostic.severity.value == "error" else "yellow"
                location = f"{diagnostic.file}:{diagnostic.line}:{diagnostic.column}"
                hint = f" [dim](did you mean: {', '.join(diagnostic.suggestions)})[/dim]" if diagnostic.suggestions else ""
                console.print(f"  [{color}]{diagnostic.code}[/{color}] {location} {diagnostic.message}{hint}")

    if any(not s.ok for s in results):
        sys.exit(1)
