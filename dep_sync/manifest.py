"""package.json reading and writing utilities.

Manifests are loaded into plain dicts, which keep the file's key order, and
written back with two-space indentation and a trailing newline so that a
rewrite only shows the changed values in a diff.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .models import DependencyCategory

MANIFEST_NAME = "package.json"


def manifest_path(project_path: str | Path) -> Path:
    """Absolute path of the package.json inside a project directory."""
    return Path(project_path).resolve() / MANIFEST_NAME


def project_name(project_path: str | Path) -> str:
    """Display name for a project: its directory's basename."""
    return Path(project_path).resolve().name


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a JSON object.
    """
    doc = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(doc, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return doc


def save_manifest(path: Path, doc: dict[str, Any]) -> None:
    """Write a manifest back to disk, preserving key order."""
    text = json.dumps(doc, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")


def get_dependency_version(
    doc: dict[str, Any], category: DependencyCategory, package_name: str
) -> str | None:
    """Return the declared range for package_name in one section, if any."""
    section = doc.get(category.key)
    if not isinstance(section, dict) or package_name not in section:
        return None
    return str(section[package_name])


def get_project_version(doc: dict[str, Any]) -> str | None:
    """Extract the project's own "version" field, or None when absent."""
    version = doc.get("version")
    return str(version) if version else None
