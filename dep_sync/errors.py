"""Exceptions raised by dep-sync.

Per-project failures are never raised; they are recorded in the result
models. Only conditions that must stop a whole run (or that make the input
unusable) are exceptions.
"""

from __future__ import annotations


class DepSyncError(Exception):
    """Base class for dep-sync errors."""


class DirtyWorkingTreeError(DepSyncError):
    """A repository has uncommitted changes and cannot be synced."""

    def __init__(self, repo: str) -> None:
        self.repo = repo
        super().__init__(
            f"{repo} has uncommitted changes. Please commit or stash them first."
        )


class ConfigError(DepSyncError):
    """The config file is missing or malformed."""


class InvalidPackageSpec(DepSyncError):
    """A name@version argument could not be parsed."""
