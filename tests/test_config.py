"""Tests for dep_sync.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from dep_sync.config import DepSyncConfig, build_requests, load_config, merge_options
from dep_sync.errors import ConfigError


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "dep-sync.toml"
    path.write_text(
        """\
paths = ["./apps/web", "./apps/admin"]
exact = true
single-commit = true
bump-version = "patch"

[packages]
react = "18.2.0"
"@types/react" = "18.2.7"
"""
    )
    return path


class TestLoadConfig:
    def test_top_level_keys(self, config_file: Path) -> None:
        config = load_config(config_file)

        assert config.paths == ["./apps/web", "./apps/admin"]
        assert config.exact is True
        assert config.single_commit is True
        assert config.bump_version == "patch"
        assert config.commit is None
        assert config.package_pairs() == [
            ("react", "18.2.0"),
            ("@types/react", "18.2.7"),
        ]

    def test_tool_table_in_pyproject(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text(
            """\
[project]
name = "frontend-tools"

[tool.dep-sync]
package = "vite"
version = "5.1.0"
paths = ["./web"]
no-peer = true
"""
        )

        config = load_config(path)

        assert config.package_pairs() == [("vite", "5.1.0")]
        assert config.no_peer is True

    def test_dep_sync_table(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.toml"
        path.write_text('[dep-sync]\npaths = ["./web"]\ncommit = true\n')

        assert load_config(path).commit is True

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("paths = [\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "typo.toml"
        path.write_text("comit = true\n")

        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_wrong_type(self, tmp_path: Path) -> None:
        path = tmp_path / "typed.toml"
        path.write_text('paths = "./web"\n')

        with pytest.raises(ConfigError):
            load_config(path)


class TestPackagePairs:
    def test_empty_without_packages(self) -> None:
        assert DepSyncConfig(package="react").package_pairs() == []


class TestMergeOptions:
    def test_defaults(self) -> None:
        options = merge_options({"paths": ["./a"]}, None)

        assert options.paths == ["./a"]
        assert options.sync is True
        assert options.exact is False
        assert options.preid == "rc"

    def test_config_fills_unset_flags(self, config_file: Path) -> None:
        options = merge_options({}, load_config(config_file))

        assert options.paths == ["./apps/web", "./apps/admin"]
        assert options.exact is True
        assert options.single_commit is True
        assert options.bump_version == "patch"

    def test_cli_wins(self, config_file: Path) -> None:
        options = merge_options(
            {"paths": ["./only"], "bump_version": "minor", "message": "deps"},
            load_config(config_file),
        )

        assert options.paths == ["./only"]
        assert options.bump_version == "minor"
        assert options.message == "deps"

    def test_no_sync_overrides_config(self) -> None:
        config = DepSyncConfig(sync=True)
        assert merge_options({"no_sync": True}, config).sync is False

    def test_config_can_disable_sync(self) -> None:
        config = DepSyncConfig(sync=False)
        assert merge_options({}, config).sync is False

    def test_paths_are_deduplicated_in_order(self) -> None:
        options = merge_options({"paths": ["./b", "./a", "./b"]}, None)
        assert options.paths == ["./b", "./a"]

    def test_paths_naming_the_same_directory_are_merged(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """./web, web and an absolute spelling are one project."""
        (tmp_path / "web").mkdir()
        monkeypatch.chdir(tmp_path)

        options = merge_options(
            {"paths": ["./web", "web", str(tmp_path / "web"), "./api"]}, None
        )

        assert options.paths == ["./web", "./api"]

    def test_renamed_flags(self) -> None:
        config = DepSyncConfig(no_peer=True, dry_run=True)
        options = merge_options({}, config)
        assert options.skip_peer is True
        assert options.preview is True


def test_build_requests_applies_exactness() -> None:
    requests = build_requests([("react", "18.2.0"), ("vite", "5.1.0")], exact=True)
    assert [(r.name, r.version, r.exact) for r in requests] == [
        ("react", "18.2.0", True),
        ("vite", "5.1.0", True),
    ]
