"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a project directory with a package.json.

    Pass manifest=None to create the directory without a manifest, or
    raw=... to write arbitrary manifest text.
    """

    def factory(
        name: str,
        manifest: dict[str, Any] | None = None,
        *,
        raw: str | None = None,
    ) -> Path:
        project = tmp_path / name
        project.mkdir(parents=True)
        if raw is not None:
            (project / "package.json").write_text(raw)
        elif manifest is not None:
            (project / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
        return project

    return factory


@pytest.fixture
def app_manifest() -> dict[str, Any]:
    """A manifest declaring react in several sections."""
    return {
        "name": "app",
        "version": "1.0.0",
        "private": True,
        "scripts": {"build": "vite build"},
        "dependencies": {"react": "^17.0.2", "lodash": "^4.17.21"},
        "devDependencies": {"react": "^17.0.2", "vite": "^5.0.0"},
        "peerDependencies": {"react": "^17.0.0 || ^18.0.0"},
    }

