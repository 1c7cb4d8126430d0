"""Input validation.

Requests are checked before any manifest is opened; a request that fails
validation is reported with all of its problems and skipped, while valid
requests in the same run go ahead.
"""

from __future__ import annotations

import re

import semver

from .models import PackageUpdate
from .versions import BUMP_TYPES

# npm package names, optionally scoped (@scope/name)
_PACKAGE_NAME_RE = re.compile(r"^(@[a-z0-9-~][a-z0-9-._~]*/)?[a-z0-9-~][a-z0-9-._~]*$")
_PRERELEASE_TAG_RE = re.compile(r"^[a-zA-Z]+$")


def is_valid_version(version: str) -> bool:
    """Check for a full semver string (1.0.0, 18.2.0, 1.0.0-beta.1, ...)."""
    return semver.Version.is_valid(version)


def is_valid_package_name(name: str) -> bool:
    """Check an npm package name: lowercase, no spaces, scope allowed."""
    return bool(name) and _PACKAGE_NAME_RE.match(name) is not None


def is_valid_bump_type(bump_type: str) -> bool:
    return bump_type in BUMP_TYPES


def is_valid_prerelease_tag(tag: str) -> bool:
    """Prerelease tags are letters only ("rc", "beta", "alpha")."""
    return _PRERELEASE_TAG_RE.match(tag) is not None


def sanitize_branch_name(branch: str) -> str:
    """Turn arbitrary text into a usable git branch name.

    Examples:
        "feature/react 18" → "feature/react-18"
        "-deps..update." → "deps.update"
    """
    if not branch:
        return ""
    branch = re.sub(r"[^a-zA-Z0-9/_.-]", "-", branch)
    branch = re.sub(r"\.{2,}", ".", branch)
    branch = re.sub(r"^[.-]", "", branch)
    branch = re.sub(r"[.-]$", "", branch)
    branch = re.sub(r"/{2,}", "/", branch)
    return branch[:100]


def validate_request(request: PackageUpdate, paths: list[str]) -> list[str]:
    """Collect every problem with a request.

    Returns:
        Error messages; empty when the request is valid.
    """
    errors: list[str] = []

    if not request.name:
        errors.append("Package name is required")
    elif not is_valid_package_name(request.name):
        errors.append(f"Invalid package name: {request.name}")

    if not request.version:
        errors.append("Version is required")
    elif not is_valid_version(request.version):
        errors.append(
            f"Invalid version format: {request.version}. Expected format: x.y.z"
        )

    if not paths:
        errors.append("At least one path is required")

    return errors
