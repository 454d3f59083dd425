"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from dfind.cli import _setup_logging, app
from dfind.errors import QueryFailure


runner = CliRunner()


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("dfind.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("dfind.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestScanCommand:
    def test_scan_inserts(self, tree: Path, tmp_path: Path) -> None:
        data_dir = tmp_path / "data"

        result = runner.invoke(app, ["scan", str(tree), "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert "Inserted: 5, updated: 0, failed: 0" in result.stdout
        assert (data_dir / "dfind.sq3").exists()

    def test_rescan_updates(self, tree: Path, tmp_path: Path) -> None:
        data_dir = tmp_path / "data"
        runner.invoke(app, ["scan", str(tree), "--data-dir", str(data_dir)])

        result = runner.invoke(app, ["scan", str(tree), "--data-dir", str(data_dir), "-v"])

        assert result.exit_code == 0
        assert "Inserted: 0, updated: 5, failed: 0" in result.stdout

    def test_scan_missing_root(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["scan", str(tmp_path / "missing"), "--data-dir", str(tmp_path / "data")]
        )
        assert result.exit_code == 1
        assert "does not exist" in result.stdout

    def test_scan_setup_failure(self, tree: Path, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        result = runner.invoke(app, ["scan", str(tree), "--data-dir", str(blocker)])

        assert result.exit_code == 1

    @patch("dfind.cli.Scanner")
    def test_scan_options_passed(self, mock_scanner_class: MagicMock, tree: Path, tmp_path: Path) -> None:
        mock_scanner = MagicMock()
        mock_scanner.scan_insert.return_value = MagicMock(inserted=0, updated=0, failed=0, errors=[])
        mock_scanner_class.return_value = mock_scanner

        result = runner.invoke(
            app,
            [
                "scan",
                str(tree),
                "--data-dir",
                str(tmp_path / "data"),
                "--follow-symlinks",
                "--one-filesystem",
                "--keep-going",
            ],
        )

        assert result.exit_code == 0
        config = mock_scanner_class.call_args[0][0]
        assert config.follow_symlinks is True
        assert config.one_filesystem is True
        assert config.halt_on_error is False


class TestSearchCommand:
    def test_search_finds_paths(self, tree: Path, tmp_path: Path) -> None:
        data_dir = str(tmp_path / "data")
        runner.invoke(app, ["scan", str(tree), "--data-dir", data_dir])

        result = runner.invoke(app, ["search", "--data-dir", data_dir, "c.txt"])

        assert result.exit_code == 0
        assert str(tree / "b" / "c.txt") in result.stdout
        assert str(tree / "a.txt") not in result.stdout

    def test_search_insensitive(self, tree: Path, tmp_path: Path) -> None:
        data_dir = str(tmp_path / "data")
        runner.invoke(app, ["scan", str(tree), "--data-dir", data_dir])

        sensitive = runner.invoke(app, ["search", "--data-dir", data_dir, "C.TXT"])
        insensitive = runner.invoke(app, ["search", "-i", "--data-dir", data_dir, "C.TXT"])

        assert "No matches found" in sensitive.stdout
        assert str(tree / "b" / "c.txt") in insensitive.stdout

    def test_pattern_tokens_joined(self, tmp_path: Path) -> None:
        data_dir = tmp_path / "data"
        with patch("dfind.cli.collect_keys", return_value=[]) as mock_collect, patch(
            "dfind.cli.Store"
        ) as mock_store_class:
            mock_store = MagicMock()
            mock_store_class.open.return_value = mock_store
            result = runner.invoke(app, ["search", "--data-dir", str(data_dir), "my", "file"])

        assert result.exit_code == 0
        mock_store.search.assert_called_once_with("my file", ignore_case=False)
        mock_collect.assert_called_once()
        assert mock_store_class.open.call_args.kwargs["read_only"] is True

    def test_search_query_failure(self, tmp_path: Path) -> None:
        with patch("dfind.cli.collect_keys", side_effect=QueryFailure("boom")), patch(
            "dfind.cli.Store"
        ):
            result = runner.invoke(app, ["search", "--data-dir", str(tmp_path), "x"])

        assert result.exit_code == 1
        assert "boom" in result.stdout

    def test_search_missing_data_dir(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["search", "--data-dir", str(tmp_path / "missing"), "x"])
        assert result.exit_code == 1


class TestPruneCommand:
    def test_prune_no_database(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["prune", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "nothing to prune" in result.stdout

    def test_prune_removes_missing(self, tree: Path, tmp_path: Path) -> None:
        data_dir = str(tmp_path / "data")
        runner.invoke(app, ["scan", str(tree), "--data-dir", data_dir])
        (tree / "d.txt").unlink()

        result = runner.invoke(app, ["prune", "--data-dir", data_dir])

        assert result.exit_code == 0
        assert "Removed 1 missing entries." in result.stdout


class TestWebCommand:
    @patch("uvicorn.run")
    def test_web_starts_uvicorn(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["web", "--port", "9999", "--data-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert mock_run.call_args.kwargs["port"] == 9999
        assert "database not found" in result.stdout
