"""Git operations around a dependency update.

Covers the three points where dep-sync touches version control:
1. Before updating: make sure every repository is clean, then fetch and
   rebase-pull it (once per repository root)
2. After updating: optionally create a branch, stage the changed manifests
   and commit them
3. At the end: push every touched repository that is not behind its
   upstream

Paths outside a git working tree are skipped, never treated as errors. A
dirty working tree during sync is the one condition that aborts a run.
"""

from __future__ import annotations

import subprocess
from collections.abc import Collection
from pathlib import Path

from .errors import DirtyWorkingTreeError
from .models import GitResult, PushResult, SyncResult
from .shell import error_text, git, git_ok, step


def is_git_repo(path: str | Path) -> bool:
    """Check whether a directory is inside a git working tree."""
    try:
        return git_ok("rev-parse", "--git-dir", cwd=path)
    except OSError:
        # Directory does not exist (or git is not installed)
        return False


def get_git_root(path: str | Path) -> str:
    """Absolute path of the working tree root containing path."""
    return git("rev-parse", "--show-toplevel", cwd=path)


def get_current_branch(cwd: str | Path) -> str:
    return git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)


def has_uncommitted_changes(cwd: str | Path) -> bool:
    """True if the working tree has staged, unstaged or untracked changes."""
    return bool(git("status", "--porcelain", cwd=cwd))


def fetch_remote(cwd: str | Path) -> None:
    git("fetch", cwd=cwd)


def pull_rebase(cwd: str | Path) -> None:
    git("pull", "--rebase", cwd=cwd)


def has_upstream(cwd: str | Path) -> bool:
    """Check whether the current branch tracks a remote branch."""
    return git_ok("rev-parse", "--abbrev-ref", "@{upstream}", cwd=cwd)


def is_behind_remote(cwd: str | Path) -> bool:
    """Fetch, then check whether the upstream has commits we don't.

    Returns False when there is no upstream or the check itself fails;
    the push that follows will surface any real problem.
    """
    try:
        git("fetch", cwd=cwd)
        behind = git("rev-list", "--count", "HEAD..@{upstream}", cwd=cwd)
    except subprocess.CalledProcessError:
        return False
    return behind.isdigit() and int(behind) > 0


def create_branch(branch: str, cwd: str | Path) -> None:
    git("checkout", "-b", branch, cwd=cwd)


def stage_files(files: list[str], cwd: str | Path) -> None:
    """Stage files, given relative to the repository root."""
    for file in files:
        git("add", "--", file, cwd=cwd)


def has_staged_changes(cwd: str | Path) -> bool:
    return not git_ok("diff", "--cached", "--quiet", cwd=cwd)


def commit(message: str, cwd: str | Path) -> None:
    git("commit", "-m", message, cwd=cwd)


def push_to_remote(cwd: str | Path, branch: str | None = None) -> None:
    """Push the current branch, creating the upstream on origin if needed.

    Raises:
        subprocess.CalledProcessError: If the push fails.
    """
    if has_upstream(cwd):
        git("push", cwd=cwd)
    else:
        branch = branch or get_current_branch(cwd)
        git("push", "--set-upstream", "origin", branch, cwd=cwd)


def repo_name(root: str) -> str:
    return Path(root).name


def prepare_repo(path: str, preview: bool = False) -> SyncResult:
    """Fetch and rebase-pull the repository containing path.

    Args:
        path: Any directory inside the repository.
        preview: Only report what would happen.

    Returns:
        SyncResult. Fetch or pull failures are reported, not raised.

    Raises:
        DirtyWorkingTreeError: If the working tree has uncommitted changes.
    """
    if not is_git_repo(path):
        return SyncResult(repo=Path(path).name, success=True, skipped=True)

    root = get_git_root(path)
    name = repo_name(root)
    if has_uncommitted_changes(root):
        raise DirtyWorkingTreeError(name)

    return pull_repo(root, preview)


def pull_repo(root: str, preview: bool = False) -> SyncResult:
    """Fetch and rebase-pull a repository root already known to be clean."""
    name = repo_name(root)
    if preview:
        print(f"  Would fetch and pull: {name}")
        return SyncResult(repo=name, success=True, preview=True)

    try:
        fetch_remote(root)
        print(f"  Fetched {name}")
        # Nothing to pull from without an upstream
        if has_upstream(root):
            pull_rebase(root)
            print(f"  Pulled {name}")
    except subprocess.CalledProcessError as exc:
        print(f"  Failed to sync {name}: {error_text(exc)}")
        return SyncResult(repo=name, success=False, error=error_text(exc))

    return SyncResult(repo=name, success=True)


def sync_repositories(paths: list[str], preview: bool = False) -> list[SyncResult]:
    """Sync each distinct repository behind paths, once.

    Every repository is checked for uncommitted changes before any of them
    is fetched, so a dirty tree aborts the run with nothing pulled. Paths
    outside any repository come back as skipped results.

    Raises:
        DirtyWorkingTreeError: If any repository has uncommitted changes.
    """
    step("Syncing repositories")

    skipped: list[SyncResult] = []
    roots: list[str] = []
    for path in paths:
        if not is_git_repo(path):
            name = Path(path).resolve().name
            print(f"  {name}: not a git repository, skipping")
            skipped.append(SyncResult(repo=name, success=True, skipped=True))
            continue
        root = get_git_root(path)
        if root not in roots:
            roots.append(root)

    for root in roots:
        if has_uncommitted_changes(root):
            raise DirtyWorkingTreeError(repo_name(root))

    return skipped + [pull_repo(root, preview) for root in roots]


def default_commit_message(package_names: list[str]) -> str:
    """Commit message for a dependency update.

    Examples:
        ["react"] → "Update react dependency"
        ["react", "react-dom"] → "Update react, react-dom dependencies"
    """
    if len(package_names) == 1:
        return f"Update {package_names[0]} dependency"
    return f"Update {', '.join(package_names)} dependencies"


def group_by_repo(files: list[str]) -> tuple[dict[str, list[str]], list[str]]:
    """Split absolute file paths by the repository that holds them.

    Returns:
        Tuple of (repository root → files in it, files outside any repo).
        Both keep first-seen order and drop duplicates.
    """
    repos: dict[str, list[str]] = {}
    outside: list[str] = []
    for file in dict.fromkeys(files):
        directory = Path(file).parent
        if not is_git_repo(directory):
            outside.append(file)
            continue
        repos.setdefault(get_git_root(directory), []).append(file)
    return repos, outside


def perform_git_operations(
    files: list[str],
    package_names: list[str],
    *,
    should_commit: bool,
    branch: str | None = None,
    branched: Collection[str] = (),
    message: str | None = None,
    preview: bool = False,
) -> list[GitResult]:
    """Branch, stage and commit changed manifests, per repository.

    For each repository holding some of the files: create branch (unless the
    repository is listed in branched), stage its files relative to its
    root, then commit when should_commit is set. A custom message always
    wins over the default one.

    Args:
        files: Absolute paths of changed manifests.
        package_names: Packages the change is about, for the default message.
        should_commit: Commit after staging.
        branch: Branch to create before staging.
        branched: Repository roots where the branch was already created.
        message: Custom commit message.
        preview: Only report what would happen.

    Returns:
        One GitResult per repository (plus one skipped result when some
        files are outside any repository). Git failures are captured in the
        results, not raised.
    """
    if not files:
        return [GitResult(success=False, reason="No files to commit")]

    step("Git operations")
    commit_message = message or default_commit_message(package_names)
    repos, outside = group_by_repo(files)

    results: list[GitResult] = []
    if outside:
        print(f"  Not a git repository, skipping {len(outside)} file(s)")
        results.append(
            GitResult(success=True, skipped=True, reason="Not a git repository")
        )

    for root, repo_files in repos.items():
        name = repo_name(root)
        create = bool(branch) and root not in branched

        if preview:
            if create:
                print(f"  {name}: would create branch {branch}")
            print(f"  {name}: would stage {len(repo_files)} file(s)")
            if should_commit:
                print(f"  {name}: would commit: {commit_message}")
            results.append(
                GitResult(
                    repo=root, success=True, preview=True, branch_created=create
                )
            )
            continue

        created = False
        try:
            if create:
                create_branch(branch, root)
                created = True
                print(f"  {name}: created branch {branch}")

            stage_files([str(Path(f).relative_to(root)) for f in repo_files], root)
            print(f"  {name}: staged {len(repo_files)} file(s)")

            if should_commit:
                if not has_staged_changes(root):
                    print(f"  {name}: no changes to commit")
                    results.append(
                        GitResult(
                            repo=root,
                            success=True,
                            skipped=True,
                            branch_created=create,
                            reason="No changes to commit",
                        )
                    )
                    continue
                commit(commit_message, root)
                print(f"  {name}: committed: {commit_message}")
        except subprocess.CalledProcessError as exc:
            print(f"  {name}: git operation failed: {error_text(exc)}")
            results.append(
                GitResult(
                    repo=root,
                    success=False,
                    branch_created=created,
                    reason=error_text(exc),
                )
            )
            continue

        results.append(GitResult(repo=root, success=True, branch_created=create))

    return results


def push_repositories(files: list[str], preview: bool = False) -> PushResult:
    """Push each distinct repository holding files.

    Repositories behind their upstream are skipped (never force-pushed) and
    reported separately from push failures.
    """
    step("Pushing to remote")

    result = PushResult()
    repos, _ = group_by_repo(files)
    for root in repos:
        name = repo_name(root)

        if preview:
            print(f"  Would push: {name}")
            result.pushed.append(name)
            continue

        if is_behind_remote(root):
            print(f"  {name}: behind remote - please pull manually")
            result.skipped.append(name)
            continue

        try:
            push_to_remote(root)
        except subprocess.CalledProcessError as exc:
            print(f"  {name}: push failed")
            print(f"      {error_text(exc)}")
            result.failed.append(name)
            continue
        print(f"  Pushed {name}")
        result.pushed.append(name)

    if result.skipped:
        print(f"\n  {len(result.skipped)} repo(s) skipped - need manual pull first")
    if result.failed:
        print(f"  {len(result.failed)} repo(s) failed to push")
    return result
