"""Sync pipeline: sync → update → commit → bump → push.

This module runs one dep-sync invocation:
1. Check every repository is clean, then fetch and rebase-pull it
2. For each requested package, rewrite it in every project's manifest
3. Commit the changed manifests, one commit per package or one overall
4. Bump the own version of every project that changed
5. Push every repository that was touched

Manifest paths changed along the way are collected in a ChangeSet that is
passed into and returned from each phase. Only a dirty working tree stops
the run; everything else is recorded and the run carries on.
"""

from __future__ import annotations

from .bump import bump_projects
from .deps import apply_package_update
from .models import (
    BatchResult,
    BumpBatchResult,
    ChangeSet,
    GitResult,
    InvalidRequest,
    PackageUpdate,
    PushResult,
    SyncOptions,
    UpdateResult,
)
from .shell import step
from .validate import validate_request
from .vcs import perform_git_operations, push_repositories, sync_repositories


def _record_branches(results: list[GitResult], change_set: ChangeSet) -> ChangeSet:
    for result in results:
        if result.branch_created and result.repo not in change_set.branched:
            change_set.branched.append(result.repo)
    return change_set


def update_package(
    request: PackageUpdate,
    options: SyncOptions,
    change_set: ChangeSet,
) -> tuple[UpdateResult, list[GitResult], ChangeSet]:
    """Apply one package update and, in per-package mode, commit it.

    The branch requested in options is created only in repositories where
    change_set says it does not exist yet.

    Returns:
        Tuple of (update result, git results, updated change set).
    """
    result = apply_package_update(
        request.name,
        request.version,
        options.paths,
        exact=request.exact,
        preview=options.preview,
        skip_peer=options.skip_peer,
    )
    if not result.updated:
        return result, [], change_set

    change_set.add(result.updated_files)

    commits: list[GitResult] = []
    if options.commit and not options.single_commit:
        commits = perform_git_operations(
            result.updated_files,
            [request.name],
            should_commit=True,
            branch=options.branch,
            branched=change_set.branched,
            message=options.message,
            preview=options.preview,
        )
        change_set = _record_branches(commits, change_set)

    return result, commits, change_set


def combined_commit_message(updated: list[PackageUpdate]) -> str:
    """Summary message for one commit covering every updated package.

    Only packages that changed a manifest are counted; requests that were
    invalid or matched nothing are left out. The singular "dependency" is
    used for one package, not "dependencies".

    Examples:
        [react@18.2.0] → "Update react to 18.2.0 dependency"
        [react@18.2.0, vite@5.1.0] → "Update 2 packages dependencies"
    """
    if len(updated) == 1:
        return f"Update {updated[0].name} to {updated[0].version} dependency"
    return f"Update {len(updated)} packages dependencies"


def commit_combined(
    updated: list[PackageUpdate],
    options: SyncOptions,
    change_set: ChangeSet,
) -> tuple[list[GitResult], ChangeSet]:
    """Handle the git work deferred until every package was processed.

    With --single-commit, all changed manifests go into one commit. With a
    branch but no commit, the branch is created and the files are staged.
    """
    files = change_set.unique_files()
    if not files:
        return [], change_set

    commits: list[GitResult] = []
    if options.commit and options.single_commit:
        commits = perform_git_operations(
            files,
            [p.name for p in updated],
            should_commit=True,
            branch=options.branch,
            branched=change_set.branched,
            message=options.message or combined_commit_message(updated),
            preview=options.preview,
        )
    elif options.branch and not options.commit:
        commits = perform_git_operations(
            files,
            [p.name for p in updated],
            should_commit=False,
            branch=options.branch,
            branched=change_set.branched,
            preview=options.preview,
        )
    return commits, _record_branches(commits, change_set)


def bump_changed_projects(
    options: SyncOptions,
    change_set: ChangeSet,
) -> tuple[BumpBatchResult, list[GitResult], ChangeSet]:
    """Bump versions of projects with a manifest change, then commit them.

    Bumped manifests join the change set only when they are committed, so
    that a later push covers them.
    """
    bumps = bump_projects(
        change_set.project_dirs(),
        options.bump_version,
        options.preid,
        options.preview,
    )

    commits: list[GitResult] = []
    if options.commit and bumps.updated:
        files = [b.manifest_path for b in bumps.updated]
        commits = perform_git_operations(
            files,
            ["version bump"],
            should_commit=True,
            message=options.message or f"Bump versions ({options.bump_version})",
            preview=options.preview,
        )
        change_set.add(files)

    return bumps, commits, change_set


def push_changes(options: SyncOptions, change_set: ChangeSet) -> PushResult:
    """Push every repository holding a changed file."""
    return push_repositories(change_set.unique_files(), options.preview)


def run_sync(requests: list[PackageUpdate], options: SyncOptions) -> BatchResult:
    """Execute the full sync pipeline.

    Args:
        requests: Packages to update, processed in order.
        options: Options shared by all requests.

    Returns:
        BatchResult with every phase's outcome. had_errors is set when a
        request was invalid, a project errored, or a git, bump or push
        operation failed.

    Raises:
        DirtyWorkingTreeError: If syncing is enabled and a repository has
            uncommitted changes. Raised before any manifest is read.
    """
    batch = BatchResult()
    change_set = ChangeSet()

    # Phase 1: Sync
    if options.sync:
        batch.synced = sync_repositories(options.paths, options.preview)
        if any(not s.success for s in batch.synced):
            batch.had_errors = True

    # Phase 2: Update (and per-package commits)
    updated_packages: list[PackageUpdate] = []
    for request in requests:
        errors = validate_request(request, options.paths)
        if errors:
            step(f"Validation errors for {request.name}@{request.version}")
            for error in errors:
                print(f"  - {error}")
            batch.invalid.append(
                InvalidRequest(
                    package=request.name, version=request.version, errors=errors
                )
            )
            batch.had_errors = True
            continue

        result, commits, change_set = update_package(request, options, change_set)
        batch.results.append(result)
        batch.commits.extend(commits)
        if result.errored:
            batch.had_errors = True
        if result.updated:
            updated_packages.append(request)

    # Phase 3: Combined commit / branch
    commits, change_set = commit_combined(updated_packages, options, change_set)
    batch.commits.extend(commits)

    # Phase 4: Version bumps
    if options.bump_version and change_set.files:
        batch.bumps, commits, change_set = bump_changed_projects(options, change_set)
        batch.commits.extend(commits)
        if batch.bumps.errored:
            batch.had_errors = True

    # Phase 5: Push
    if options.push and change_set.files:
        batch.pushes = push_changes(options, change_set)
        if batch.pushes.failed:
            batch.had_errors = True

    if any(not c.success for c in batch.commits):
        batch.had_errors = True

    batch.change_set = change_set
    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return batch
