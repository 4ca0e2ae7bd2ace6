"""Unit tests for the Typer command line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from partial_tar_brotli.cli import CONFIG_ERROR_EXIT_CODE, app
from partial_tar_brotli.pack.reader import read_archive_file

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo the handlers the pack command installs on the root logger."""

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestPackCommand:
    """Tests for the pack command."""

    def test_all_files_added(self, make_file, workdir: Path) -> None:
        """Test a run where every file fits."""
        a = make_file("a.bin", 500)
        b = make_file("b.bin", 500)
        result = runner.invoke(app, ["pack", "--max-size", "1000000", "--output", "out.tar.br", a, b])

        assert result.exit_code == 0, result.output
        assert "Done! All 2 files added to archive." in result.output
        contents = read_archive_file(workdir / "out.tar.br")
        assert [m.name for m in contents.data_members] == ["a.bin", "b.bin"]

    def test_partial_run_reports_skips(self, make_file, workdir: Path) -> None:
        """Test the stdout contract when a file does not fit."""
        paths = [make_file("a.bin", 1000), make_file("big.bin", 50_000), make_file("c.bin", 1000)]
        result = runner.invoke(app, ["pack", "-m", "10000", "-o", "out.tar.br", *paths])

        assert result.exit_code == 0, result.output
        assert "big.bin does not fit. Archive would be " in result.output
        assert "Done! 2 out of 3 files added (1 skipped)" in result.output
        assert (workdir / "out.tar.br").stat().st_size <= 10_000

    def test_stop_on_first_skip_names_one_file(self, make_file, workdir: Path) -> None:
        """Test that only the first rejection is named when stopping early."""
        paths = [make_file(f"small-{i}.json", 1024) for i in range(8)]
        paths.append(make_file("slowness.json", 65_536))
        paths.extend(make_file(f"late-{i}.json", 1024) for i in range(4))
        result = runner.invoke(app, ["pack", "-m", "20000", "-o", "out.tar.br", "--stop-on-first-skip", *paths])

        assert result.exit_code == 0, result.output
        assert result.output.count("does not fit") == 1
        assert "Done! 8 out of 13 files added (5 skipped)" in result.output

    def test_verbose(self, make_file, workdir: Path) -> None:
        """Test per-file byte usage lines."""
        path = make_file("a.bin", 100)
        result = runner.invoke(app, ["pack", "-m", "100000", "-o", "out.tar.br", "-v", path])
        assert result.exit_code == 0, result.output
        assert "a.bin (used " in result.output

    def test_budget_too_small_still_succeeds(self, make_file, workdir: Path) -> None:
        """Test that a manifest-only archive is a successful outcome."""
        path = make_file("a.bin", 100)
        result = runner.invoke(app, ["pack", "-m", "10", "-o", "out.tar.br", path])
        assert result.exit_code == 0, result.output
        assert "Warning: budget of 10 bytes is too small" in result.output
        assert (workdir / "out.tar.br").exists()

    def test_no_files(self, workdir: Path) -> None:
        """Test that an empty candidate list fails without creating output."""
        result = runner.invoke(app, ["pack", "-m", "1000", "-o", "out.tar.br"])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE
        assert "At least one input file is required" in result.output
        assert not (workdir / "out.tar.br").exists()

    @pytest.mark.parametrize("budget", ["0", "-5"])
    def test_non_positive_budget(self, make_file, workdir: Path, budget: str) -> None:
        """Test that non-positive budgets are rejected before any output."""
        path = make_file("a.bin", 100)
        result = runner.invoke(app, ["pack", f"--max-size={budget}", "-o", "out.tar.br", path])
        assert result.exit_code != 0
        assert not (workdir / "out.tar.br").exists()

    def test_missing_budget(self, make_file, workdir: Path) -> None:
        """Test that the budget is required when settings do not supply it."""
        result = runner.invoke(app, ["pack", "-o", "out.tar.br", make_file("a.bin", 10)])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE
        assert "--max-size is required" in result.output

    def test_missing_output(self, make_file, workdir: Path) -> None:
        """Test that the output path is required."""
        result = runner.invoke(app, ["pack", "-m", "1000", make_file("a.bin", 10)])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE
        assert "--output is required" in result.output

    def test_budget_from_settings_file(self, make_file, workdir: Path) -> None:
        """Test that pack.max_size from the settings file is used as the budget."""
        (workdir / "partial-tar-brotli.yaml").write_text("pack:\n  max_size: 100000\n", encoding="utf-8")
        result = runner.invoke(app, ["pack", "-o", "out.tar.br", make_file("a.bin", 10)])
        assert result.exit_code == 0, result.output
        assert read_archive_file(workdir / "out.tar.br").manifest["max_size"] == 100000

    def test_stop_on_first_skip_from_settings(self, make_file, workdir: Path) -> None:
        """Test that the settings file can turn on stopping after the first skip."""
        (workdir / "partial-tar-brotli.yaml").write_text("pack:\n  stop_on_first_skip: true\n", encoding="utf-8")
        paths = [make_file("a.bin", 1000), make_file("big.bin", 50_000), make_file("c.bin", 1000)]
        result = runner.invoke(app, ["pack", "-m", "10000", "-o", "out.tar.br", *paths])
        assert result.exit_code == 0, result.output
        assert "Done! 1 out of 3 files added (2 skipped)" in result.output

    def test_continue_past_skips_overrides_settings(self, make_file, workdir: Path) -> None:
        """Test that --continue-past-skips wins over pack.stop_on_first_skip."""
        (workdir / "partial-tar-brotli.yaml").write_text("pack:\n  stop_on_first_skip: true\n", encoding="utf-8")
        paths = [make_file("a.bin", 1000), make_file("big.bin", 50_000), make_file("c.bin", 1000)]
        result = runner.invoke(app, ["pack", "-m", "10000", "-o", "out.tar.br", "--continue-past-skips", *paths])
        assert result.exit_code == 0, result.output
        assert "Done! 2 out of 3 files added (1 skipped)" in result.output

    def test_malformed_settings_file(self, make_file, workdir: Path) -> None:
        """Test that unparsable settings YAML is a configuration error."""
        (workdir / "partial-tar-brotli.yaml").write_text("pack: [unclosed\n", encoding="utf-8")
        result = runner.invoke(app, ["pack", "-m", "100000", "-o", "out.tar.br", make_file("a.bin", 10)])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE, result.output
        assert "Error:" in result.output
        assert "not valid YAML" in result.output
        assert not (workdir / "out.tar.br").exists()

    def test_unusable_log_file(self, make_file, workdir: Path) -> None:
        """Test that a log file that cannot be created is a configuration error."""
        (workdir / "blocker").write_text("not a directory", encoding="utf-8")
        (workdir / "partial-tar-brotli.yaml").write_text("logging:\n  log_file: blocker/run.log\n", encoding="utf-8")
        result = runner.invoke(app, ["pack", "-m", "100000", "-o", "out.tar.br", make_file("a.bin", 10)])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE, result.output
        assert "Could not open log file" in result.output
        assert not (workdir / "out.tar.br").exists()

    def test_existing_output_needs_force(self, make_file, workdir: Path) -> None:
        """Test that an existing output is only replaced with --force."""
        path = make_file("a.bin", 10)
        (workdir / "out.tar.br").write_bytes(b"old")
        refused = runner.invoke(app, ["pack", "-m", "100000", "-o", "out.tar.br", path])
        assert refused.exit_code == CONFIG_ERROR_EXIT_CODE
        assert (workdir / "out.tar.br").read_bytes() == b"old"

        forced = runner.invoke(app, ["pack", "-m", "100000", "-o", "out.tar.br", "--force", path])
        assert forced.exit_code == 0, forced.output
        assert read_archive_file(workdir / "out.tar.br").manifest["included"] == ["a.bin"]


class TestInspectCommand:
    """Tests for the inspect command."""

    def test_lists_members_and_skips(self, make_file, workdir: Path) -> None:
        """Test the member listing and manifest summary."""
        paths = [make_file("a.bin", 1000), make_file("big.bin", 50_000)]
        packed = runner.invoke(app, ["pack", "-m", "10000", "-o", "out.tar.br", *paths])
        assert packed.exit_code == 0, packed.output

        result = runner.invoke(app, ["inspect", "out.tar.br"])
        assert result.exit_code == 0, result.output
        assert "members: 1" in result.output
        assert "a.bin (1000 bytes)" in result.output
        assert "big.bin: does not fit" in result.output

    def test_invalid_archive(self, workdir: Path) -> None:
        """Test that a non-archive file fails with exit code 1."""
        (workdir / "junk.bin").write_bytes(b"\xff\xfe junk")
        result = runner.invoke(app, ["inspect", "junk.bin"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestShowConfigCommand:
    """Tests for the show-config command."""

    def test_prints_yaml(self, workdir: Path) -> None:
        """Test that the effective settings are printed as YAML."""
        result = runner.invoke(app, ["show-config"])
        assert result.exit_code == 0, result.output
        rendered = yaml.safe_load(result.output)
        assert rendered["brotli"]["quality"] == 11
        assert rendered["pack"]["max_size"] is None

    def test_malformed_settings_file(self, workdir: Path) -> None:
        """Test that unparsable settings YAML exits with the configuration error code."""
        (workdir / "partial-tar-brotli.yaml").write_text("pack: [unclosed\n", encoding="utf-8")
        result = runner.invoke(app, ["show-config"])
        assert result.exit_code == CONFIG_ERROR_EXIT_CODE, result.output
        assert "Error:" in result.output
