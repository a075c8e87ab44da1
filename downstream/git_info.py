"""Git command helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path


def _run_git(args: list[str], cwd: Path) -> str:
    """Run a git command and return stdout.

    Args:
        args: Git command arguments without leading `git`.
        cwd: Working directory for the command.

    Returns:
        Command stdout stripped of trailing whitespace.

    Raises:
        subprocess.CalledProcessError: If git exits with non-zero status.
    """
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def clone_args(url: str, rev: str | None = None) -> list[str]:
    """Return `git clone` arguments, pinning a branch or tag when given."""
    args = ["clone", url]
    if rev:
        args.extend(["--branch", rev])
    return args


def head_sha(repo_root: Path) -> str | None:
    """Return the checked-out commit of a clone, or None if unavailable."""
    try:
        sha = _run_git(["rev-parse", "HEAD"], cwd=repo_root)
    except (OSError, subprocess.CalledProcessError):
        return None
    return sha or None
