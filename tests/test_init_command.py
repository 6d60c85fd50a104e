"""Tests for the codesyncer init command."""

from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from codesyncer.cli import main
from codesyncer.config.init import (
    default_variables,
    init_project,
    is_first_watch,
    mark_watch_used,
    write_root_guide,
)
from codesyncer.templates.loader import find_placeholders
from codesyncer.workspace.validate import REQUIRED_FILES


def make_repo(path: Path) -> None:
    path.mkdir(parents=True)
    (path / "package.json").write_text("{}")


class TestInitCommand:
    """Tests for the init command."""

    def test_init_help(self) -> None:
        """Test that init --help shows help."""
        runner = CliRunner()
        result = runner.invoke(main, ["init", "--help"])
        assert result.exit_code == 0
        assert "--mode" in result.output

    def test_init_single(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an empty folder gets a single-repository setup."""
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(
            main, ["init", "--name", "shop", "--github-user", "octo", "--tech-stack", "Go"]
        )

        assert result.exit_code == 0
        assert "CodeSyncer setup (single)" in result.output
        for name in REQUIRED_FILES:
            assert (tmp_path / ".claude" / name).exists()
        assert (tmp_path / "CLAUDE.md").exists()
        guide = (tmp_path / ".claude" / "CLAUDE.md").read_text()
        assert "shop" in guide
        assert "github.com/octo/shop" in guide
        assert "Go" in guide
        assert not (tmp_path / ".codesyncer").exists()

    def test_init_keeps_existing_files(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a second init changes nothing."""
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        runner.invoke(main, ["init"])
        (tmp_path / ".claude" / "CLAUDE.md").write_text("# mine\n")

        result = runner.invoke(main, ["init"])

        assert result.exit_code == 0
        assert "(exists, kept)" in result.output
        assert "No changes made." in result.output
        assert (tmp_path / ".claude" / "CLAUDE.md").read_text() == "# mine\n"

    def test_init_multi_repo_detected(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a folder of repositories gets a workspace setup."""
        make_repo(tmp_path / "api")
        make_repo(tmp_path / "web")
        monkeypatch.chdir(tmp_path)

        result = CliRunner().invoke(main, ["init"])

        assert result.exit_code == 0
        assert "CodeSyncer setup (multi-repo)" in result.output
        assert "2 repositories configured" in result.output
        assert (tmp_path / ".codesyncer" / "MASTER_CODESYNCER.md").exists()
        assert (tmp_path / "api" / ".claude" / "DECISIONS.md").exists()
        assert (tmp_path / "web" / ".claude" / "CLAUDE.md").exists()


class TestInitProject:
    """Tests for init_project."""

    def test_default_variables(self, tmp_path: Path) -> None:
        """Test defaults derived from the folder."""
        values = default_variables(tmp_path / "shop", today=date(2025, 1, 15))

        assert values["PROJECT_NAME"] == "shop"
        assert values["TODAY"] == "2025-01-15"

    def test_single_leaves_no_placeholders(self, tmp_path: Path) -> None:
        """Test that every generated file is fully rendered."""
        result = init_project(tmp_path)

        assert result.skipped == []
        for path in result.created:
            assert find_placeholders(path.read_text()) == [], path

    def test_monorepo_packages_get_own_names(self, tmp_path: Path) -> None:
        """Test per-package project names and the master repository table."""
        (tmp_path / "pnpm-workspace.yaml").write_text("packages:\n  - 'packages/*'\n")
        make_repo(tmp_path / "packages" / "api")
        make_repo(tmp_path / "packages" / "ui")

        result = init_project(tmp_path, {"PROJECT_NAME": "platform"}, mode="monorepo")

        assert [r.name for r in result.repositories] == ["api", "ui"]
        master = (tmp_path / ".codesyncer" / "MASTER_CODESYNCER.md").read_text()
        assert "platform" in master
        assert "| api | `packages/api` | package | no |" in master
        assert find_placeholders(master) == []
        api_guide = (tmp_path / "packages" / "api" / ".claude" / "CLAUDE.md").read_text()
        assert "api" in api_guide
        assert "platform" not in api_guide

    def test_write_root_guide(self, tmp_path: Path) -> None:
        """Test that the root guide is written once."""
        first = write_root_guide(tmp_path, {"REPO_COUNT": "1"})
        second = write_root_guide(tmp_path, {"REPO_COUNT": "1"})

        assert first.created == [tmp_path / "CLAUDE.md"]
        assert second.skipped == [tmp_path / "CLAUDE.md"]


class TestWatchMarker:
    """Tests for the first-run watch marker."""

    def test_no_setup_is_never_first(self, tmp_path: Path) -> None:
        assert is_first_watch(tmp_path) is False
        mark_watch_used(tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_marker_written_in_setup_dir(self, tmp_path: Path) -> None:
        """Test that the marker follows the existing setup directory."""
        (tmp_path / ".claude").mkdir()

        assert is_first_watch(tmp_path) is True
        mark_watch_used(tmp_path)

        assert is_first_watch(tmp_path) is False
        assert (tmp_path / ".claude" / ".watch-used").exists()
