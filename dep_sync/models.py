"""Data models for dep-sync.

These Pydantic models represent the requests, per-project outcomes and
batch results passed between the update engine, the version bump engine,
the git orchestrator and the batch controller.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .versions import ChangeKind, change_kind


class DependencyCategory(Enum):
    """The four dependency sections of a package.json.

    Each member carries its manifest key, a short display name, and whether
    it always takes a caret range regardless of the user's exactness choice.
    Peer ranges stay permissive so consumers are not forced onto one exact
    release.
    """

    DEPENDENCIES = ("dependencies", "deps", False)
    DEV = ("devDependencies", "devDeps", False)
    PEER = ("peerDependencies", "peerDeps", True)
    OPTIONAL = ("optionalDependencies", "optionalDeps", False)

    def __init__(self, key: str, short_name: str, always_range: bool) -> None:
        self.key = key
        self.short_name = short_name
        self.always_range = always_range

    def version_spec(self, version: str, exact: bool) -> str:
        """Return the string to write for version in this section."""
        if self.always_range or not exact:
            return f"^{version}"
        return version

    @classmethod
    def active(cls, skip_peer: bool = False) -> list[DependencyCategory]:
        """Categories to search, in manifest order."""
        return [c for c in cls if not (skip_peer and c is cls.PEER)]


class PackageUpdate(BaseModel):
    """A request to set one package to one version across the projects.

    Attributes:
        name: npm package name (scoped names allowed).
        version: Target version, without a range prefix.
        exact: Write the version verbatim instead of a caret range. Ignored
               for peerDependencies.
    """

    name: str
    version: str
    exact: bool = False


class CategoryChange(BaseModel):
    """One rewritten dependency entry inside a manifest."""

    category: DependencyCategory
    old: str
    new: str

    @property
    def kind(self) -> ChangeKind:
        return change_kind(self.old, self.new)


class ProjectOutcome(BaseModel):
    """Base for per-project records.

    Attributes:
        project: Display name (the project directory's basename).
        path: The project path as given by the caller.
    """

    project: str
    path: str


class UpdatedProject(ProjectOutcome):
    changes: list[CategoryChange]
    manifest_path: str


class SkippedProject(ProjectOutcome):
    """Every section containing the package is already at the target."""

    version: str


class NotFoundProject(ProjectOutcome):
    pass


class ErroredProject(ProjectOutcome):
    reason: str


class UpdateResult(BaseModel):
    """Outcome of one PackageUpdate over a set of projects.

    Every targeted project lands in exactly one of the four lists, and each
    list keeps the order in which projects were given.
    """

    package: str
    version: str
    updated: list[UpdatedProject] = Field(default_factory=list)
    skipped: list[SkippedProject] = Field(default_factory=list)
    not_found: list[NotFoundProject] = Field(default_factory=list)
    errored: list[ErroredProject] = Field(default_factory=list)

    @property
    def updated_files(self) -> list[str]:
        return [u.manifest_path for u in self.updated]

    @property
    def total(self) -> int:
        return (
            len(self.updated)
            + len(self.skipped)
            + len(self.not_found)
            + len(self.errored)
        )


class BumpResult(BaseModel):
    """Outcome of bumping one project's own version.

    Attributes:
        project: Display name of the project.
        success: Whether the bump was computed (preview) or applied.
        old: Version before bumping.
        new: Version after bumping, as read back from the manifest when
             the bump was applied.
        manifest_path: Absolute path of the project's package.json.
        error: Failure reason when success is False.
    """

    project: str
    success: bool
    old: str | None = None
    new: str | None = None
    manifest_path: str | None = None
    error: str | None = None


class BumpBatchResult(BaseModel):
    updated: list[BumpResult] = Field(default_factory=list)
    errored: list[BumpResult] = Field(default_factory=list)


class SyncResult(BaseModel):
    """Outcome of fetching and pulling one repository before an update."""

    repo: str
    success: bool
    skipped: bool = False
    preview: bool = False
    error: str | None = None


class GitResult(BaseModel):
    """Outcome of one branch/stage/commit sequence in one repository.

    Attributes:
        repo: Repository root, or None for files outside any repository.
        success: False when a git command failed.
        skipped: Nothing was done (not a repository, or nothing to commit).
        preview: The operations were only reported.
        branch_created: The requested branch was created by this call.
        reason: Why the sequence failed or was skipped.
    """

    repo: str | None = None
    success: bool
    skipped: bool = False
    preview: bool = False
    branch_created: bool = False
    reason: str | None = None


class PushResult(BaseModel):
    """Repositories pushed, skipped because they are behind, or failed."""

    pushed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class ChangeSet(BaseModel):
    """Manifest files changed during one run.

    Owned by the batch controller and threaded through each batch step. Files
    accumulate in the order they were changed; a file touched by several
    packages is listed once by unique_files().

    Attributes:
        files: Absolute manifest paths in change order (may repeat).
        branched: Repository roots where the requested branch exists.
    """

    files: list[str] = Field(default_factory=list)
    branched: list[str] = Field(default_factory=list)

    def add(self, paths: list[str]) -> ChangeSet:
        self.files.extend(paths)
        return self

    def unique_files(self) -> list[str]:
        return list(dict.fromkeys(self.files))

    def project_dirs(self) -> list[str]:
        """Distinct project directories that own a changed manifest."""
        return list(dict.fromkeys(str(Path(f).parent) for f in self.files))


class SyncOptions(BaseModel):
    """Options shared by every package request in a run.

    Attributes:
        paths: Project directories to update, deduplicated, in order.
        exact: Write exact versions instead of caret ranges.
        skip_peer: Leave peerDependencies untouched.
        preview: Compute and report everything but write nothing.
        sync: Fetch and rebase-pull each repository before updating.
        commit: Commit the changed manifests.
        single_commit: One commit for all packages instead of one each.
        push: Push every touched repository at the end.
        message: Custom commit message.
        branch: Branch to create before the first commit.
        bump_version: Bump type for the projects' own versions.
        preid: Prerelease tag used by prerelease bumps.
    """

    paths: list[str] = Field(default_factory=list)
    exact: bool = False
    skip_peer: bool = False
    preview: bool = False
    sync: bool = True
    commit: bool = False
    single_commit: bool = False
    push: bool = False
    message: str | None = None
    branch: str | None = None
    bump_version: str | None = None
    preid: str = "rc"


class InvalidRequest(BaseModel):
    """A PackageUpdate rejected before any file was touched."""

    package: str
    version: str
    errors: list[str]


class BatchResult(BaseModel):
    """Everything one run of the batch controller did."""

    synced: list[SyncResult] = Field(default_factory=list)
    results: list[UpdateResult] = Field(default_factory=list)
    invalid: list[InvalidRequest] = Field(default_factory=list)
    commits: list[GitResult] = Field(default_factory=list)
    bumps: BumpBatchResult | None = None
    pushes: PushResult | None = None
    change_set: ChangeSet = Field(default_factory=ChangeSet)
    had_errors: bool = False
