from __future__ import annotations

import json
from pathlib import Path
from typing import List
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner, Result

from helpers import write_manifest
from quantumpkg.__version__ import __version__
from quantumpkg.cli import cli, main
from quantumpkg.core.lockfile import LockfileCodec
from quantumpkg.exceptions import NotFoundError
from quantumpkg.models import LockedEntry, Lockfile


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every command from an empty directory with a private home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("QUANTUM_CONFIG", raising=False)


def _invoke(args: List[str]) -> Result:
    return CliRunner().invoke(cli, ["--no-color", *args])


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """``app`` depending on ``math`` by path, which depends on ``core``."""
    write_manifest(tmp_path / "app", "app", "0.1.0", {"math": {"path": "../math"}})
    write_manifest(tmp_path / "math", "math", "0.4.0", {"core": {"path": "../core"}})
    write_manifest(tmp_path / "core", "core", "0.1.0")
    return tmp_path / "app"


@pytest.mark.unit
class TestCliGroup:
    """Tests for the top-level command group."""

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"quantum {__version__}"

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "lock" in result.output
        assert "show" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "broken.toml"
        config.write_text("[quantumpkg\n", encoding="utf-8")

        result = _invoke(["--config", str(config), "show"])

        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


@pytest.mark.unit
class TestLockCommand:
    """Tests for ``quantum lock``."""

    def test_writes_lockfile_next_to_manifest(self, workspace: Path) -> None:
        result = _invoke(["lock", "--manifest", str(workspace)])

        assert result.exit_code == 0, result.output
        assert "Resolved 2 dependencies" in result.output
        lockfile = LockfileCodec.load(workspace / "Quantum.lock")
        assert lockfile.triples() == [("core", "0.1.0", "path"), ("math", "0.4.0", "path")]

    def test_explicit_output_and_json(self, workspace: Path, tmp_path: Path) -> None:
        target = tmp_path / "out" / "custom.lock"

        result = _invoke(
            ["lock", "-m", str(workspace / "Quantum.toml"), "-o", str(target), "-f", "json"]
        )

        assert result.exit_code == 0, result.output
        assert target.is_file()
        assert not (workspace / "Quantum.lock").exists()
        assert json.loads(result.output)["dependencies"]["math"]["source"] == "path"

    def test_settings_come_from_config(self, workspace: Path, tmp_path: Path) -> None:
        config = tmp_path / "quantumpkg.toml"
        config.write_text("[quantumpkg]\nmax_depth = 0\n", encoding="utf-8")

        result = _invoke(["--config", str(config), "lock", "-m", str(workspace)])

        assert result.exit_code == 1
        assert "depth limit exceeded" in result.output
        assert not (workspace / "Quantum.lock").exists()

    def test_git_timeout_from_config(self, workspace: Path, tmp_path: Path) -> None:
        config = tmp_path / "quantumpkg.toml"
        config.write_text("[quantumpkg]\ngit_timeout = 45\n", encoding="utf-8")

        with patch("quantumpkg.commands.lock.SubprocessGitClient") as git_cls:
            result = _invoke(["--config", str(config), "lock", "-m", str(workspace)])

        assert result.exit_code == 0, result.output
        git_cls.assert_called_once_with(timeout=45)

    def test_failure_writes_nothing(self, tmp_path: Path) -> None:
        write_manifest(tmp_path / "app", "app", "0.1.0", {"ghost": {"path": "../ghost"}})

        result = _invoke(["lock", "-m", str(tmp_path / "app")])

        assert result.exit_code == 1
        assert "[ERROR] Path dependency not found" in result.output
        assert not (tmp_path / "app" / "Quantum.lock").exists()

    def test_existing_lockfile_is_replaced(self, workspace: Path) -> None:
        LockfileCodec.save(
            workspace / "Quantum.lock",
            Lockfile(dependencies={"stale": LockedEntry("stale", "9.9.9", "registry")}),
        )

        result = _invoke(["lock", "-m", str(workspace)])

        assert result.exit_code == 0, result.output
        assert "stale" not in LockfileCodec.load(workspace / "Quantum.lock").dependencies

    def test_only_dev_dependencies(self, tmp_path: Path) -> None:
        write_manifest(tmp_path / "app", "app", "0.1.0", dev_dependencies={"testkit": "0.1.0"})

        result = _invoke(["lock", "-m", str(tmp_path / "app")])

        assert result.exit_code == 0, result.output
        assert "not locked" in result.output
        assert len(LockfileCodec.load(tmp_path / "app" / "Quantum.lock")) == 0

    def test_invalid_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "Quantum.toml").write_text("[package]\n", encoding="utf-8")

        result = _invoke(["lock"])

        assert result.exit_code == 1
        assert "Missing 'name'" in result.output

    def test_unexpected_error(self, workspace: Path) -> None:
        with patch("quantumpkg.commands.lock.Resolver.resolve", side_effect=RuntimeError("kaboom")):
            result = _invoke(["lock", "-m", str(workspace)])

        assert result.exit_code == 1
        assert "Unexpected error: kaboom" in result.output


@pytest.mark.unit
class TestShowCommand:
    """Tests for ``quantum show``."""

    @pytest.fixture
    def lockfile_path(self, tmp_path: Path) -> Path:
        path = tmp_path / "Quantum.lock"
        LockfileCodec.save(
            path,
            Lockfile(
                dependencies={
                    "coin": LockedEntry("coin", "1.2.0", "registry"),
                    "oracle": LockedEntry(
                        "oracle", "2.0.0", "git", source_url="https://example.org/oracle.git"
                    ),
                }
            ),
        )
        return path

    def test_table(self, lockfile_path: Path) -> None:
        result = _invoke(["show"])

        assert result.exit_code == 0, result.output
        assert "coin" in result.output
        assert "1.2.0" in result.output
        assert "oracle" in result.output

    def test_json(self, lockfile_path: Path) -> None:
        result = _invoke(["show", str(lockfile_path), "--format", "json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["version"] == 1
        assert payload["dependencies"]["oracle"]["source_url"] == "https://example.org/oracle.git"

    def test_missing_lockfile(self) -> None:
        result = _invoke(["show"])

        assert result.exit_code == 1
        assert "Failed to read Quantum.lock" in result.output

    def test_empty_lockfile(self, tmp_path: Path) -> None:
        LockfileCodec.save(tmp_path / "Quantum.lock", Lockfile())

        result = _invoke(["show"])

        assert result.exit_code == 0
        assert "no dependencies" in result.output


@pytest.mark.unit
class TestMain:
    """Tests for the main() exit code mapping."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (None, 0),
            (click.UsageError("bad option"), 2),
            (SystemExit(3), 3),
            (SystemExit("message"), 1),
            (NotFoundError("missing", dependency="coin"), 1),
            (KeyboardInterrupt(), 130),
            (RuntimeError("boom"), 1),
        ],
        ids=["success", "usage", "exit-code", "exit-message", "quantum-error", "interrupt", "unexpected"],
    )
    def test_exit_codes(self, error, code: int) -> None:
        with patch("quantumpkg.cli.cli", side_effect=error) as mock_cli:
            assert main() == code

        mock_cli.assert_called_once_with(standalone_mode=False)
