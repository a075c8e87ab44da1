"""Instructions synthesized from a GitHub dependents feed."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from downstream.errors import ConfigError
from downstream.models import Instruction

GITHUB_URL = "https://github.com/{name}"


@dataclass(frozen=True, slots=True)
class DependentRepo:
    """One entry of `all_public_dependent_repos`.

    Attributes:
        name: `owner/repo` slug.
        repo_name: Repository name, also the directory created by cloning.
        owner: Owning account.
        stars: Star count reported by the feed.
        img: Avatar URL reported by the feed.
    """

    name: str
    repo_name: str
    owner: str = ""
    stars: int = 0
    img: str = ""


def parse_dependents(info: str) -> list[DependentRepo]:
    """Parse dependents feed JSON text.

    Raises:
        ConfigError: If the text is not valid JSON or has the wrong shape.
    """
    try:
        parsed = json.loads(info)
    except json.JSONDecodeError as exc:
        raise ConfigError("Invalid dependents feed JSON.") from exc
    if not isinstance(parsed, dict):
        raise ConfigError("Dependents feed must be a JSON object.")
    entries = parsed.get("all_public_dependent_repos")
    if not isinstance(entries, list):
        raise ConfigError("Dependents feed field all_public_dependent_repos must be an array.")
    return [_parse_repo(entry, index) for index, entry in enumerate(entries)]


def _parse_repo(entry: Any, index: int) -> DependentRepo:
    field_name = f"all_public_dependent_repos[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"Dependents feed field {field_name} must be an object.")
    name = entry.get("name")
    repo_name = entry.get("repo_name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"Dependents feed field {field_name}.name must be a non-empty string.")
    if not isinstance(repo_name, str) or not repo_name.strip():
        raise ConfigError(
            f"Dependents feed field {field_name}.repo_name must be a non-empty string."
        )
    stars = entry.get("stars", 0)
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise ConfigError(f"Dependents feed field {field_name}.stars must be an integer.")
    return DependentRepo(
        name=name.strip(),
        repo_name=repo_name.strip(),
        owner=str(entry.get("owner") or ""),
        stars=stars,
        img=str(entry.get("img") or ""),
    )


def expand(info: str, self_name: str) -> list[Instruction]:
    """Turn a dependents feed into instructions, skipping the library itself.

    Args:
        info: Feed JSON text.
        self_name: Name of the library under test.

    Returns:
        Instructions in feed order.
    """
    return [
        Instruction(url=GITHUB_URL.format(name=repo.name), name=repo.repo_name)
        for repo in parse_dependents(info)
        if repo.repo_name != self_name
    ]


def load_dependents(path: str | Path, self_name: str) -> list[Instruction]:
    """Read a dependents feed file and expand it into instructions."""
    feed_path = Path(path).expanduser()
    try:
        raw = feed_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read dependents feed: {feed_path}") from exc
    return expand(raw, self_name)


def merge_instructions(
    configured: Sequence[Instruction],
    synthesized: Sequence[Instruction],
) -> list[Instruction]:
    """Append feed instructions after configured ones without mutating either."""
    return [*configured, *synthesized]
