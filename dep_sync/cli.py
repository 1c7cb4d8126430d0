"""CLI entry point for dep-sync."""

from __future__ import annotations

import sys

import click

from .config import build_requests, load_config, merge_options
from .errors import ConfigError, DirtyWorkingTreeError, InvalidPackageSpec
from .pipeline import run_sync
from .shell import warn
from .validate import (
    is_valid_bump_type,
    is_valid_prerelease_tag,
    is_valid_version,
    sanitize_branch_name,
)
from .versions import BUMP_TYPES

EPILOG = """\b
Examples:
  dep-sync react 18.2.0 --paths ./apps/web --paths ./apps/admin --exact
  dep-sync --pkg react@18.2.0 --pkg react-dom@18.2.0 --paths ./apps/*
  dep-sync --pkg react@18.2.0 --paths ./apps/* --commit --single-commit
  dep-sync --pkg react@18.2.0 --paths ./apps/* --commit --bump-version patch
  dep-sync --config dep-sync.toml

\b
The package is updated in every dependency section where it appears.
peerDependencies always get a caret range.
"""


def parse_package_spec(spec: str) -> tuple[str, str]:
    """Split "name@version" on the last "@", so scoped names work.

    Examples:
        "react@18.2.0" → ("react", "18.2.0")
        "@types/node@20.1.0" → ("@types/node", "20.1.0")

    Raises:
        InvalidPackageSpec: If there is no "@" after the first character.
    """
    at = spec.rfind("@")
    if at <= 0:
        raise InvalidPackageSpec(
            f"Invalid package format: {spec}. Expected name@version"
        )
    return spec[:at], spec[at + 1 :]


def split_positionals(
    positionals: tuple[str, ...],
    package_given: bool,
    config_given: bool = False,
) -> tuple[list[tuple[str, str]], list[str]]:
    """Separate PACKAGE VERSION from extra paths.

    `--paths ./apps/*` expands to one --paths value followed by bare
    arguments; those bare arguments are treated as more paths. When packages
    come from --pkg, every bare argument is a path. With a config file, the
    first two arguments are still a package pair if the second one is a
    version, so "dep-sync react 18.2.0 --config cfg.toml" overrides the
    configured packages.

    Returns:
        Tuple of (package pairs, extra paths).
    """
    if package_given:
        return [], list(positionals)
    if len(positionals) < 2:
        return [], list(positionals)
    name, version, *rest = positionals
    if config_given and not is_valid_version(version):
        return [], list(positionals)
    return [(name, version)], rest


@click.command(epilog=EPILOG)
@click.version_option(package_name="dep-sync")
@click.argument("positionals", nargs=-1, metavar="[PACKAGE VERSION]")
@click.option(
    "--pkg",
    "pkg_specs",
    multiple=True,
    metavar="NAME@VERSION",
    help="Package to update (repeatable).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="TOML config file (e.g., dep-sync.toml or pyproject.toml).",
)
@click.option(
    "-p", "--paths", multiple=True, help="Project directory (repeatable)."
)
@click.option("--exact", is_flag=True, help="Use exact versions (no ^ prefix).")
@click.option("--no-peer", is_flag=True, help="Skip peerDependencies.")
@click.option("--dry-run", is_flag=True, help="Preview changes without writing.")
@click.option("--no-sync", is_flag=True, help="Skip git fetch/pull before updating.")
@click.option("--commit", is_flag=True, help="Commit changes, one commit per package.")
@click.option(
    "--single-commit", is_flag=True, help="Combine all package updates in one commit."
)
@click.option("--push", is_flag=True, help="Push after committing.")
@click.option("-m", "--message", help="Custom commit message.")
@click.option("--branch", help="Create a branch before committing.")
@click.option(
    "--bump-version",
    type=click.Choice(BUMP_TYPES),
    help="Bump each changed project's own version.",
)
@click.option("--preid", help="Prerelease tag for prerelease bumps. [default: rc]")
def cli(
    positionals: tuple[str, ...],
    pkg_specs: tuple[str, ...],
    config_path: str | None,
    paths: tuple[str, ...],
    exact: bool,
    no_peer: bool,
    dry_run: bool,
    no_sync: bool,
    commit: bool,
    single_commit: bool,
    push: bool,
    message: str | None,
    branch: str | None,
    bump_version: str | None,
    preid: str | None,
) -> None:
    """Sync a dependency's version across many package.json projects."""
    config = None
    if config_path:
        try:
            config = load_config(config_path)
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    try:
        cli_pairs = [parse_package_spec(spec) for spec in pkg_specs]
    except InvalidPackageSpec as exc:
        raise click.BadParameter(str(exc), param_hint="--pkg") from exc

    positional_pairs, extra_paths = split_positionals(
        positionals,
        package_given=bool(cli_pairs),
        config_given=config is not None,
    )
    pairs = cli_pairs or positional_pairs or (config.package_pairs() if config else [])

    options = merge_options(
        {
            "paths": [*paths, *extra_paths],
            "exact": exact,
            "skip_peer": no_peer,
            "preview": dry_run,
            "no_sync": no_sync,
            "commit": commit,
            "single_commit": single_commit,
            "push": push,
            "message": message,
            "branch": branch,
            "bump_version": bump_version,
            "preid": preid,
        },
        config,
    )

    if not pairs:
        raise click.UsageError("package name and version are required.")
    if not options.paths:
        raise click.UsageError("at least one --paths value is required.")
    if options.bump_version and not is_valid_bump_type(options.bump_version):
        raise click.BadParameter(
            f"{options.bump_version}. Valid values: {', '.join(BUMP_TYPES)}",
            param_hint="--bump-version",
        )
    if not is_valid_prerelease_tag(options.preid):
        raise click.BadParameter(
            f"{options.preid}. Prerelease tags are letters only", param_hint="--preid"
        )

    if options.single_commit and not options.commit:
        warn("--single-commit has no effect without --commit")

    if options.branch:
        sanitized = sanitize_branch_name(options.branch)
        if sanitized != options.branch:
            warn(f'Branch name was sanitized from "{options.branch}" to "{sanitized}"')
            options.branch = sanitized

    requests = build_requests(pairs, options.exact)
    try:
        batch = run_sync(requests, options)
    except DirtyWorkingTreeError as exc:
        raise click.ClickException(
            f"{exc}\nCommit or stash your changes, or pass --no-sync."
        ) from exc

    if batch.had_errors:
        sys.exit(1)
