"""Tests for laraindex scan command."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from laraindex.cli.main import cli
from laraindex.index import ops

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """No user-level config; drop the handlers bound to the runner streams afterwards."""
    monkeypatch.setattr("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    yield
    logging.getLogger().handlers.clear()


class TestScanCommand:
    """laraindex scan command tests."""

    def test_given_empty_dir_when_scan_then_succeeds(self, tmp_path: Path) -> None:
        """An empty directory indexes to empty domains."""
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(cli, ["scan", str(empty)])

        assert result.exit_code == 0, result.output
        assert "Not a Laravel project" in result.output
        assert "routes" in result.output

    def test_given_laravel_project_when_scan_json_then_counts_reported(self, laravel_project: Path) -> None:
        # When
        result = runner.invoke(cli, ["scan", str(laravel_project), "--json"])

        # Then
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["is_laravel"] is True
        assert payload["laravel_version"] == "^10.10"
        assert payload["version"] == 6
        assert payload["counts"]["routes"] == 6
        assert payload["counts"]["tables"] == 2
        assert [d["domain"] for d in payload["domains"]] == [
            "schema",
            "routes",
            "translations",
            "config",
            "views",
            "validation",
        ]
        assert all(d["errors"] == [] for d in payload["domains"])
        assert "diagnostics" not in payload

    def test_given_diagnostics_flag_when_scan_json_then_issues_listed(self, laravel_project: Path) -> None:
        result = runner.invoke(cli, ["scan", str(laravel_project), "--json", "--diagnostics"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert sorted(d["code"] for d in payload["diagnostics"]) == ["table-not-found", "unknown-rule"]
        assert payload["missing_translations"] == ["messages.missing"]

    def test_diagnostics_text_output(self, laravel_project: Path) -> None:
        result = runner.invoke(cli, ["scan", str(laravel_project), "-d"])

        assert result.exit_code == 0, result.output
        assert "Laravel project" in result.output
        assert "Translations: 3 keys, 2 used, 1 missing" in result.output
        assert "unknown-rule" in result.output
        assert "table-not-found" in result.output

    def test_given_failing_domain_when_scan_then_exit_code_1(
        self, laravel_project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def explode(*args: object, **kwargs: object) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(ops, "collect_views", explode)

        result = runner.invoke(cli, ["scan", str(laravel_project), "--json"])

        assert result.exit_code == 1
        assert "boom" in result.output

    def test_given_invalid_project_config_when_scan_then_fails(self, laravel_project: Path) -> None:
        (laravel_project / ".laraindex.yaml").write_text("validation:\n  similarity_threshold: 5\n")

        result = runner.invoke(cli, ["scan", str(laravel_project)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_project_config_layout_respected(self, make_project: Callable[[dict[str, str]], Path]) -> None:
        root = make_project(
            {
                ".laraindex.yaml": "layout:\n  routes_dir: src/routes\n",
                "src/routes/web.php": "<?php\nRoute::get('/a', [AController::class, 'show']);\n",
                "routes/web.php": "<?php\nRoute::get('/ignored', [BController::class, 'show']);\n",
            }
        )

        result = runner.invoke(cli, ["scan", str(root), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["counts"]["routes"] == 1

    def test_given_json_file_output_in_project_config_when_scan_then_events_written(
        self, laravel_project: Path, tmp_path: Path
    ) -> None:
        # Given
        log_file = tmp_path / "logs" / "scan.jsonl"
        (laravel_project / ".laraindex.yaml").write_text(
            f"logging:\n  level: INFO\n  outputs:\n    - format: json\n      destination: {log_file}\n"
        )

        # When
        result = runner.invoke(cli, ["scan", str(laravel_project), "--json"])

        # Then
        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        rebuilt = [r["domain"] for r in records if r["event"] == "domain_rebuilt"]
        assert rebuilt == ["schema", "routes", "translations", "config", "views", "validation"]
        assert all(r["rebuild_id"] for r in records if r["event"] == "domain_rebuilt")

    def test_verbose_flag_forces_debug_level(self, laravel_project: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "debug.jsonl"
        (laravel_project / ".laraindex.yaml").write_text(
            f"logging:\n  level: ERROR\n  outputs:\n    - format: json\n      destination: {log_file}\n"
        )

        result = runner.invoke(cli, ["-v", "scan", str(laravel_project), "--json"])

        assert result.exit_code == 0, result.output
        levels = {json.loads(line)["level"] for line in log_file.read_text().splitlines()}
        assert "info" in levels

    def test_missing_path(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["scan", str(tmp_path / "nope")])

        assert result.exit_code == 2


class TestCliGroup:
    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert "scan" in result.output
        assert "watch" in result.output
