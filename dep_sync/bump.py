"""Project version bump engine.

Advances each project's own "version" field. The prospective version is
computed locally so preview runs can report it, but the actual change is
delegated to `npm version`, which also commits and tags. Whatever npm wrote
is what gets reported: the manifest is read back after the command instead
of trusting the local prediction.
"""

from __future__ import annotations

import subprocess

from .manifest import get_project_version, load_manifest, manifest_path, project_name
from .models import BumpBatchResult, BumpResult
from .shell import error_text, npm, step
from .versions import next_version


def bump_project(
    project_path: str,
    bump_type: str,
    prerelease_tag: str = "rc",
    preview: bool = False,
) -> BumpResult:
    """Bump one project's version.

    Args:
        project_path: Project directory holding a package.json.
        bump_type: One of "patch", "minor", "major", "prerelease".
        prerelease_tag: Tag for prerelease bumps (e.g., "rc", "beta").
        preview: Compute the new version without running npm.

    Returns:
        BumpResult with old and new versions, or the failure reason.
    """
    name = project_name(project_path)
    pkg_json = manifest_path(project_path)

    def failed(reason: str, old: str | None = None) -> BumpResult:
        return BumpResult(
            project=name,
            success=False,
            old=old,
            manifest_path=str(pkg_json),
            error=reason,
        )

    if not pkg_json.exists():
        return failed("manifest not found")
    try:
        doc = load_manifest(pkg_json)
    except (OSError, ValueError):
        return failed("failed to read manifest")

    old = get_project_version(doc)
    if old is None:
        return failed("no version field")

    prospective = next_version(old, bump_type, prerelease_tag)
    if prospective is None:
        return failed(f"cannot compute {bump_type} bump from {old}", old)

    if preview:
        return BumpResult(
            project=name,
            success=True,
            old=old,
            new=str(prospective),
            manifest_path=str(pkg_json),
        )

    args = ["version", bump_type]
    if bump_type == "prerelease":
        args += ["--preid", prerelease_tag]
    try:
        npm(*args, cwd=pkg_json.parent)
    except subprocess.CalledProcessError as exc:
        return failed(error_text(exc), old)
    except OSError as exc:
        # npm itself is missing or not executable
        return failed(str(exc), old)

    # npm has the final say on the new version
    try:
        new = get_project_version(load_manifest(pkg_json))
    except (OSError, ValueError):
        return failed("failed to read manifest after bump", old)

    return BumpResult(
        project=name,
        success=True,
        old=old,
        new=new,
        manifest_path=str(pkg_json),
    )


def bump_projects(
    paths: list[str],
    bump_type: str,
    prerelease_tag: str = "rc",
    preview: bool = False,
) -> BumpBatchResult:
    """Bump every project's version, continuing past failures."""
    prefix = "[DRY RUN] " if preview else ""
    step(f"{prefix}Bumping project versions ({bump_type})")

    results = BumpBatchResult()
    for path in paths:
        result = bump_project(path, bump_type, prerelease_tag, preview)
        if result.success:
            print(f"  {result.project}: {result.old} → {result.new}")
            results.updated.append(result)
        else:
            print(f"  {result.project}: {result.error}")
            results.errored.append(result)

    print()
    print(f"  {'Would bump' if preview else 'Bumped'}: {len(results.updated)}")
    if results.errored:
        print(f"  Errors: {len(results.errored)}")
    return results
