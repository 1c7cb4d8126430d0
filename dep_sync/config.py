"""Config file loading and option merging.

Config files are TOML, read with tomlkit. Settings may live under
[tool.dep-sync] (so they can sit in a pyproject.toml), under a [dep-sync]
table, or at the top level of a dedicated file:

    packages = { react = "18.2.0", react-dom = "18.2.0" }
    paths = ["./apps/web", "./apps/admin"]
    exact = true
    commit = true

Keys use dashes or underscores interchangeably. Command line values take
precedence over the config file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError
from .models import PackageUpdate, SyncOptions


class DepSyncConfig(BaseModel):
    """Settings read from a config file.

    Unset values are None so that merging can tell "not configured" apart
    from "configured as false".
    """

    model_config = ConfigDict(extra="forbid")

    package: str | None = None
    version: str | None = None
    packages: dict[str, str] = Field(default_factory=dict)
    paths: list[str] = Field(default_factory=list)
    exact: bool | None = None
    no_peer: bool | None = None
    dry_run: bool | None = None
    sync: bool | None = None
    commit: bool | None = None
    single_commit: bool | None = None
    push: bool | None = None
    message: str | None = None
    branch: str | None = None
    bump_version: str | None = None
    preid: str | None = None

    def package_pairs(self) -> list[tuple[str, str]]:
        """(name, version) pairs to update; the packages table wins."""
        if self.packages:
            return list(self.packages.items())
        if self.package and self.version:
            return [(self.package, self.version)]
        return []


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file."""
    return tomlkit.parse(path.read_text())


def _settings_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    data = doc.unwrap()
    tool = data.get("tool", {})
    if isinstance(tool, dict) and isinstance(tool.get("dep-sync"), dict):
        return tool["dep-sync"]
    if isinstance(data.get("dep-sync"), dict):
        return data["dep-sync"]
    return data


def load_config(path: str | Path) -> DepSyncConfig:
    """Read dep-sync settings from a TOML file.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or holds
            unknown or mistyped settings.
    """
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        doc = load_toml(config_path)
    except TOMLKitError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc

    settings = {
        key.replace("-", "_"): value for key, value in _settings_table(doc).items()
    }
    try:
        return DepSyncConfig.model_validate(settings)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}:\n{exc}") from exc


def _unique_paths(paths: list[str]) -> list[str]:
    """Drop paths naming an already listed directory, keeping the first spelling."""
    seen: dict[Path, str] = {}
    for path in paths:
        seen.setdefault(Path(path).resolve(), path)
    return list(seen.values())


def merge_options(cli: dict[str, Any], config: DepSyncConfig | None) -> SyncOptions:
    """Combine command line values with config file settings.

    Command line flags can only switch behaviour on (or, for --no-sync, off),
    so a flag that was not given falls back to the config file and then to
    the default. Paths from the command line replace configured paths.

    Args:
        cli: Values from the command line, keyed like SyncOptions fields
             plus "no_sync". Missing keys count as not given.
        config: Settings from a config file, if one was given.
    """
    config = config or DepSyncConfig()

    def flag(name: str, configured: bool | None) -> bool:
        return bool(cli.get(name)) or bool(configured)

    if cli.get("no_sync"):
        sync = False
    else:
        sync = config.sync if config.sync is not None else True

    paths = _unique_paths(cli.get("paths") or config.paths)
    return SyncOptions(
        paths=paths,
        exact=flag("exact", config.exact),
        skip_peer=flag("skip_peer", config.no_peer),
        preview=flag("preview", config.dry_run),
        sync=sync,
        commit=flag("commit", config.commit),
        single_commit=flag("single_commit", config.single_commit),
        push=flag("push", config.push),
        message=cli.get("message") or config.message,
        branch=cli.get("branch") or config.branch,
        bump_version=cli.get("bump_version") or config.bump_version,
        preid=cli.get("preid") or config.preid or "rc",
    )


def build_requests(pairs: list[tuple[str, str]], exact: bool) -> list[PackageUpdate]:
    return [PackageUpdate(name=name, version=ver, exact=exact) for name, ver in pairs]
