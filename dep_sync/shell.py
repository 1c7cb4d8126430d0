"""Shell, git and npm utilities.

Provides simple wrappers around subprocess calls for running git and npm
inside a project directory, plus output formatting helpers.

Commands are always passed to subprocess as an argument vector, never as a
shell string, so branch names and commit messages reach git verbatim.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: str | Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., upstream lookup).

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: If check is True and git fails. The
            exception carries the captured stderr.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def git_ok(*args: str, cwd: str | Path | None = None) -> bool:
    """Run a git command and report whether it exited successfully."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    return result.returncode == 0


def npm(*args: str, cwd: str | Path | None = None, check: bool = True) -> str:
    """Run an npm command and return stdout.

    Same contract as git(): output is captured so failures can be reported
    per project instead of interleaving with the progress output.
    """
    result = subprocess.run(
        ["npm", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def error_text(exc: subprocess.CalledProcessError) -> str:
    """Best human-readable message for a failed command."""
    for stream in (exc.stderr, exc.stdout):
        if stream and str(stream).strip():
            return str(stream).strip()
    return str(exc)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of a sync run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)
