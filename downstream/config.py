"""Configuration loading for downstream-check runs."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from downstream.errors import ConfigError, ProvisioningError
from downstream.models import Action, Instruction, PreAction, RunOptions, TestTarget


@dataclass(slots=True)
class RunConfig:
    """Parsed configuration file contents.

    Attributes:
        test: Library revision substituted into every dependent.
        instructions: Dependent projects in execution order.
        source: Path the configuration was loaded from.
    """

    test: TestTarget
    instructions: list[Instruction]
    source: Path | None = None


def cargo_binary() -> str:
    """Return the cargo executable, honoring `DOWNSTREAM_CARGO`."""
    override = os.environ.get("DOWNSTREAM_CARGO")
    if override:
        return override
    return "cargo"


def load_config(path: str | Path) -> RunConfig:
    """Load and validate a run configuration file.

    Args:
        path: Path to the TOML configuration.

    Returns:
        Parsed configuration.

    Raises:
        ConfigError: If the file is unreadable or its shape is invalid.
    """
    config_path = Path(path).expanduser()
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config: {config_path}") from exc
    try:
        parsed = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config TOML: {config_path}") from exc

    config = parse_config(parsed)
    config.source = config_path
    return config


def parse_config(parsed: dict[str, Any]) -> RunConfig:
    """Build a run configuration from an already decoded TOML document."""
    test = parsed.get("test")
    if test is None:
        raise ConfigError("Config section [test] is required.")
    if not isinstance(test, dict):
        raise ConfigError("Config section [test] must be a table.")

    name = _parse_str(test.get("name"), field_name="test.name")
    target = TestTarget(
        url=_parse_str(test.get("url"), field_name="test.url"),
        name=name,
        rev=_parse_str(test.get("rev"), field_name="test.rev"),
        package=_parse_optional_str(test.get("package"), field_name="test.package") or name,
    )

    entries = parsed.get("instructions", [])
    if not isinstance(entries, list):
        raise ConfigError("Config field instructions must be an array of tables.")
    instructions = [
        _parse_instruction(entry, field_name=f"instructions[{index}]")
        for index, entry in enumerate(entries)
    ]
    return RunConfig(test=target, instructions=instructions)


def build_run_options(
    action: Action = Action.CHECK,
    root_dir: str | Path | None = None,
    continue_on_error: bool = False,
    stream_output: bool = True,
) -> RunOptions:
    """Construct run options, creating the workspace root when needed.

    Raises:
        ProvisioningError: If the root directory cannot be created.
    """
    resolved_root: Path | None = None
    if root_dir is not None:
        resolved_root = Path(root_dir).expanduser().resolve()
        try:
            resolved_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ProvisioningError(f"Cannot create root directory: {resolved_root}") from exc
    return RunOptions(
        action=action,
        root_dir=resolved_root,
        continue_on_error=continue_on_error,
        stream_output=stream_output,
        cargo=cargo_binary(),
    )


def _parse_instruction(entry: Any, field_name: str) -> Instruction:
    """Parse one `[[instructions]]` table."""
    if not isinstance(entry, dict):
        raise ConfigError(f"Config field {field_name} must be a table.")
    return Instruction(
        url=_parse_str(entry.get("url"), field_name=f"{field_name}.url"),
        name=_parse_str(entry.get("name"), field_name=f"{field_name}.name"),
        rev=_parse_optional_str(entry.get("rev"), field_name=f"{field_name}.rev"),
        package=_parse_optional_str(entry.get("package"), field_name=f"{field_name}.package"),
        before_action=_parse_pre_action(
            entry.get("before_action"),
            field_name=f"{field_name}.before_action",
        ),
    )


def _parse_pre_action(value, field_name: str) -> PreAction | None:
    """Parse a pre-action given as a command string or a command/args table."""
    if value is None:
        return None
    if isinstance(value, str):
        return PreAction.from_string(value)
    if isinstance(value, dict):
        command = _parse_str(value.get("command"), field_name=f"{field_name}.command")
        args = _parse_str_list(value.get("args"), default=[], field_name=f"{field_name}.args")
        return PreAction(command=command, args=tuple(args))
    raise ConfigError(f"Config field {field_name} must be a string or a table.")


def _parse_str(value, field_name: str) -> str:
    """Parse required non-blank string config value."""
    if value is None:
        raise ConfigError(f"Config field {field_name} is required.")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Config field {field_name} must be a non-empty string.")
    return value.strip()


def _parse_optional_str(value, field_name: str) -> str | None:
    """Parse optional string config value; blank strings count as absent."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Config field {field_name} must be a string.")
    return value.strip() or None


def _parse_str_list(value, default: list[str], field_name: str) -> list[str]:
    """Parse optional list-of-string config value with validation."""
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Config field {field_name} must be an array of strings.")
    return value
