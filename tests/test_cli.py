"""Tests for dep_sync.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from dep_sync.cli import cli, parse_package_spec, split_positionals
from dep_sync.errors import DirtyWorkingTreeError, InvalidPackageSpec
from dep_sync.models import BatchResult, PackageUpdate, SyncOptions


class TestParsePackageSpec:
    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("react@18.2.0", ("react", "18.2.0")),
            ("@types/node@20.1.0", ("@types/node", "20.1.0")),
            ("react@", ("react", "")),
        ],
    )
    def test_splits_on_last_at(self, spec: str, expected: tuple[str, str]) -> None:
        assert parse_package_spec(spec) == expected

    @pytest.mark.parametrize("spec", ["react", "@types/node", "@18.2.0"])
    def test_rejects_missing_version(self, spec: str) -> None:
        with pytest.raises(InvalidPackageSpec, match="Expected name@version"):
            parse_package_spec(spec)


class TestSplitPositionals:
    def test_package_and_version(self) -> None:
        assert split_positionals(("react", "18.2.0"), False) == (
            [("react", "18.2.0")],
            [],
        )

    def test_extra_arguments_are_paths(self) -> None:
        """Shell-expanded globs after --paths arrive as bare arguments."""
        pairs, paths = split_positionals(("react", "18.2.0", "./b", "./c"), False)
        assert pairs == [("react", "18.2.0")]
        assert paths == ["./b", "./c"]

    def test_all_paths_when_package_given(self) -> None:
        assert split_positionals(("./b", "./c"), True) == ([], ["./b", "./c"])

    def test_single_argument(self) -> None:
        assert split_positionals(("react",), False) == ([], ["react"])

    def test_package_pair_with_config(self) -> None:
        assert split_positionals(
            ("react", "18.2.0", "./b"), False, config_given=True
        ) == ([("react", "18.2.0")], ["./b"])

    def test_paths_only_with_config(self) -> None:
        assert split_positionals(("./a", "./b"), False, config_given=True) == (
            [],
            ["./a", "./b"],
        )


@patch("dep_sync.cli.run_sync", return_value=BatchResult())
class TestCli:
    """Tests for the dep-sync command."""

    def _invoke(self, *args: str) -> Result:
        return CliRunner().invoke(cli, list(args))

    def test_positional_package(self, mock_run: MagicMock) -> None:
        result = self._invoke("react", "18.2.0", "--paths", "./web", "--exact")

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert requests == [PackageUpdate(name="react", version="18.2.0", exact=True)]
        assert options.paths == ["./web"]
        assert options.exact is True
        assert options.sync is True

    def test_pkg_options_and_expanded_paths(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "--pkg",
            "react@18.2.0",
            "--pkg",
            "@types/react@18.2.7",
            "--paths",
            "./apps/web",
            "./apps/admin",
            "./apps/web",
        )

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert [(r.name, r.version) for r in requests] == [
            ("react", "18.2.0"),
            ("@types/react", "18.2.7"),
        ]
        assert options.paths == ["./apps/web", "./apps/admin"]

    def test_git_flags(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "react",
            "18.2.0",
            "-p",
            "./web",
            "--no-sync",
            "--no-peer",
            "--dry-run",
            "--commit",
            "--single-commit",
            "--push",
            "-m",
            "chore: deps",
            "--bump-version",
            "prerelease",
            "--preid",
            "beta",
        )

        assert result.exit_code == 0, result.output
        options: SyncOptions = mock_run.call_args.args[1]
        assert options.sync is False
        assert options.skip_peer is True
        assert options.preview is True
        assert options.commit and options.single_commit and options.push
        assert options.message == "chore: deps"
        assert options.bump_version == "prerelease"
        assert options.preid == "beta"

    def test_missing_package(self, mock_run: MagicMock) -> None:
        result = self._invoke("--paths", "./web")

        assert result.exit_code == 2
        assert "package name and version are required" in result.output
        mock_run.assert_not_called()

    def test_missing_paths(self, mock_run: MagicMock) -> None:
        result = self._invoke("react", "18.2.0")

        assert result.exit_code == 2
        assert "at least one --paths value is required" in result.output
        mock_run.assert_not_called()

    def test_bad_pkg_spec(self, mock_run: MagicMock) -> None:
        result = self._invoke("--pkg", "react", "--paths", "./web")

        assert result.exit_code == 2
        assert "Invalid package format: react" in result.output

    def test_bad_bump_type(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "react", "18.2.0", "--paths", "./web", "--bump-version", "huge"
        )

        assert result.exit_code == 2
        mock_run.assert_not_called()

    def test_bad_preid(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "react", "18.2.0", "--paths", "./web", "--preid", "rc1"
        )

        assert result.exit_code == 2
        assert "letters only" in result.output

    def test_single_commit_without_commit_warns(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "react", "18.2.0", "--paths", "./web", "--single-commit"
        )

        assert result.exit_code == 0
        assert "--single-commit has no effect without --commit" in result.output

    def test_branch_name_is_sanitized(self, mock_run: MagicMock) -> None:
        result = self._invoke(
            "react", "18.2.0", "--paths", "./web", "--branch", "deps/react 18"
        )

        assert result.exit_code == 0
        assert "sanitized" in result.output
        assert mock_run.call_args.args[1].branch == "deps/react-18"

    def test_dirty_tree(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = DirtyWorkingTreeError("/repos/web")

        result = self._invoke("react", "18.2.0", "--paths", "./web")

        assert result.exit_code == 1
        assert "/repos/web has uncommitted changes" in result.output
        assert "--no-sync" in result.output

    def test_errors_exit_nonzero(self, mock_run: MagicMock) -> None:
        mock_run.return_value = BatchResult(had_errors=True)

        result = self._invoke("react", "18.2.0", "--paths", "./web")

        assert result.exit_code == 1


@patch("dep_sync.cli.run_sync", return_value=BatchResult())
class TestCliConfig:
    """Tests for --config handling."""

    def test_packages_and_paths_from_config(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        config = tmp_path / "dep-sync.toml"
        config.write_text(
            'paths = ["./web"]\ncommit = true\n\n[packages]\nreact = "18.2.0"\n'
        )

        result = CliRunner().invoke(cli, ["--config", str(config)])

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert [(r.name, r.version) for r in requests] == [("react", "18.2.0")]
        assert options.paths == ["./web"]
        assert options.commit is True

    def test_command_line_overrides_config(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        config = tmp_path / "dep-sync.toml"
        config.write_text('paths = ["./web"]\n\n[packages]\nreact = "18.2.0"\n')

        result = CliRunner().invoke(
            cli, ["--config", str(config), "--pkg", "vite@5.1.0", "--paths", "./api"]
        )

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert [r.name for r in requests] == ["vite"]
        assert options.paths == ["./api"]

    def test_bare_arguments_are_paths_with_config(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        config = tmp_path / "dep-sync.toml"
        config.write_text('package = "react"\nversion = "18.2.0"\n')

        result = CliRunner().invoke(cli, ["--config", str(config), "./a", "./b"])

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert [r.name for r in requests] == ["react"]
        assert options.paths == ["./a", "./b"]

    def test_positional_package_overrides_config(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        """PACKAGE VERSION replaces configured packages; configured paths stay."""
        config = tmp_path / "dep-sync.toml"
        config.write_text('paths = ["./web"]\n\n[packages]\nvite = "5.0.0"\n')

        result = CliRunner().invoke(cli, ["react", "18.2.0", "--config", str(config)])

        assert result.exit_code == 0, result.output
        requests, options = mock_run.call_args.args
        assert [(r.name, r.version) for r in requests] == [("react", "18.2.0")]
        assert options.paths == ["./web"]

    def test_missing_config_file(self, mock_run: MagicMock, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "none.toml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output
        mock_run.assert_not_called()
