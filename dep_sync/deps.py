"""Dependency update engine.

Rewrites one package's declared version in every dependency section of
every target project's package.json. Projects are independent: a missing,
unreadable or unwritable manifest is recorded against that project and the
run moves on to the next one.
"""

from __future__ import annotations

from .manifest import (
    get_dependency_version,
    load_manifest,
    manifest_path,
    project_name,
    save_manifest,
)
from .models import (
    CategoryChange,
    DependencyCategory,
    ErroredProject,
    NotFoundProject,
    SkippedProject,
    UpdatedProject,
    UpdateResult,
)
from .shell import step
from .versions import ChangeKind, change_label


def plan_changes(
    doc: dict,
    package_name: str,
    version: str,
    *,
    exact: bool,
    skip_peer: bool,
) -> tuple[list[CategoryChange], int]:
    """Work out which sections of a manifest need rewriting.

    Args:
        doc: Parsed package.json.
        package_name: Package to look for.
        version: Target version, without a range prefix.
        exact: Pin exactly instead of using a caret range (not for peers).
        skip_peer: Leave peerDependencies out of the search.

    Returns:
        Tuple of (changes to apply, number of sections that declare the
        package). A section already at its target counts as declaring the
        package but produces no change.
    """
    changes: list[CategoryChange] = []
    matched = 0
    for category in DependencyCategory.active(skip_peer):
        old = get_dependency_version(doc, category, package_name)
        if old is None:
            continue
        matched += 1
        new = category.version_spec(version, exact)
        if old != new:
            changes.append(CategoryChange(category=category, old=old, new=new))
    return changes, matched


def apply_package_update(
    package_name: str,
    version: str,
    paths: list[str],
    *,
    exact: bool = False,
    preview: bool = False,
    skip_peer: bool = False,
) -> UpdateResult:
    """Set package_name to version in every project that declares it.

    For each project, in order:
    1. A missing package.json → errored ("manifest not found")
    2. Invalid JSON → errored ("failed to read manifest")
    3. No section declares the package → not_found
    4. Every declaring section already at target → skipped
    5. Otherwise the changed sections are rewritten (unless preview) and
       the project is recorded as updated with every change. A project with
       one section at target and another changed counts as updated.
    6. A failed write → errored ("failed to write manifest")

    Args:
        package_name: Package to update.
        version: Target version, without a range prefix.
        paths: Project directories, each expected to hold a package.json.
        exact: Pin exactly instead of using a caret range (not for peers).
        preview: Report what would change without writing anything.
        skip_peer: Leave peerDependencies untouched.

    Returns:
        UpdateResult partitioning the projects into the four outcomes.
    """
    display = version if exact else f"^{version}"
    prefix = "[DRY RUN] " if preview else ""
    step(f"{prefix}Updating {package_name} to {display}")
    if skip_peer:
        print("  Skipping peerDependencies")

    result = UpdateResult(package=package_name, version=version)

    for path in paths:
        name = project_name(path)
        pkg_json = manifest_path(path)

        if not pkg_json.exists():
            print(f"  {name}: manifest not found")
            result.errored.append(
                ErroredProject(project=name, path=path, reason="manifest not found")
            )
            continue

        try:
            doc = load_manifest(pkg_json)
        except (OSError, ValueError):
            print(f"  {name}: failed to read manifest")
            result.errored.append(
                ErroredProject(
                    project=name, path=path, reason="failed to read manifest"
                )
            )
            continue

        changes, matched = plan_changes(
            doc, package_name, version, exact=exact, skip_peer=skip_peer
        )

        if not matched:
            print(f"  {name}: {package_name} not found")
            result.not_found.append(NotFoundProject(project=name, path=path))
            continue

        if not changes:
            print(f"  {name}: already at {display}")
            result.skipped.append(
                SkippedProject(project=name, path=path, version=version)
            )
            continue

        if not preview:
            for change in changes:
                doc[change.category.key][package_name] = change.new
            try:
                save_manifest(pkg_json, doc)
            except OSError:
                print(f"  {name}: failed to write manifest")
                result.errored.append(
                    ErroredProject(
                        project=name, path=path, reason="failed to write manifest"
                    )
                )
                continue

        _print_changes(name, changes)
        result.updated.append(
            UpdatedProject(
                project=name,
                path=path,
                changes=changes,
                manifest_path=str(pkg_json),
            )
        )

    _print_summary(result, preview)
    return result


def _print_changes(name: str, changes: list[CategoryChange]) -> None:
    sections = ", ".join(c.category.short_name for c in changes)
    print(f"  {name} ({sections})")
    for change in changes:
        line = f"    {change.category.short_name}: {change.old} → {change.new}"
        if change.category.always_range:
            line += " (range preserved)"
        elif change.kind is not ChangeKind.UNKNOWN:
            line += f" [{change_label(change.kind)}]"
        print(line)


def _print_summary(result: UpdateResult, preview: bool) -> None:
    print()
    if preview:
        print("[DRY RUN] No files were modified")
    print(f"  {'Would update' if preview else 'Updated'}: {len(result.updated)}")
    if result.skipped:
        print(f"  Already up to date: {len(result.skipped)}")
    if result.not_found:
        print(f"  Not found: {len(result.not_found)}")
    if result.errored:
        print(f"  Errors: {len(result.errored)}")

