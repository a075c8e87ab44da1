"""Test fixtures for downstream-check."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

FAKE_CARGO = """#!/bin/sh
echo "$(basename "$(pwd -P)") $*" >> "{log}"
for arg in "$@"; do
  if [ "$arg" = "$DOWNSTREAM_FAIL_ON" ]; then
    echo "cargo failed on $arg" >&2
    exit 101
  fi
done
echo "cargo $1 ok"
"""


def _run(command: list[str], cwd: Path) -> str:
    """Run subprocess command and return stripped stdout."""
    result = subprocess.run(
        command,
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture()
def make_git_repo(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory creating local git repositories on a `main` branch."""

    def _make(name: str, files: dict[str, str] | None = None) -> Path:
        repo = tmp_path / "remotes" / name
        repo.mkdir(parents=True, exist_ok=True)
        _run(["git", "init"], cwd=repo)
        _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=repo)
        _run(["git", "config", "user.email", "downstream@example.com"], cwd=repo)
        _run(["git", "config", "user.name", "Downstream Test"], cwd=repo)
        for relative, content in (files or {"README.md": "seed\n"}).items():
            target = repo / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        _run(["git", "add", "."], cwd=repo)
        _run(["git", "commit", "-m", "initial"], cwd=repo)
        return repo

    return _make


@pytest.fixture()
def fake_cargo(tmp_path: Path, monkeypatch) -> Path:
    """Install a fake cargo on `DOWNSTREAM_CARGO`; returns its call log path.

    Each call appends `<cwd name> <args>` to the log. Setting
    `DOWNSTREAM_FAIL_ON` makes any call containing that argument exit 101.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    log = tmp_path / "cargo.log"
    script = bin_dir / "cargo"
    script.write_text(FAKE_CARGO.format(log=log), encoding="utf-8")
    script.chmod(0o755)
    monkeypatch.setenv("DOWNSTREAM_CARGO", str(script))
    monkeypatch.delenv("DOWNSTREAM_FAIL_ON", raising=False)
    return log

