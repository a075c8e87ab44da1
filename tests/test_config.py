"""Tests for run configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from downstream.config import build_run_options, load_config
from downstream.errors import ConfigError, ProvisioningError
from downstream.models import Action, Instruction, PreAction


def _write(tmp_path: Path, lines: list[str]) -> Path:
    """Write a config file for loading tests."""
    path = tmp_path / "downstream.toml"
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


TEST_SECTION = [
    "[test]",
    'url = "https://github.com/org/lib"',
    'name = "lib"',
    'rev = "main"',
]


def test_load_config_parses_target_and_instructions(tmp_path: Path) -> None:
    """A full config file should map onto target and instruction models."""
    path = _write(
        tmp_path,
        [
            *TEST_SECTION,
            "",
            "[[instructions]]",
            'url = "https://github.com/org/app"',
            'name = "app"',
            'package = "app-core"',
            'rev = "v1.2.0"',
            'before_action = "sed -i s/a/b/ Cargo.toml"',
            "",
            "[[instructions]]",
            'url = "https://github.com/org/tool"',
            'name = "tool"',
        ],
    )

    config = load_config(path)

    assert config.source == path
    assert config.test.url == "https://github.com/org/lib"
    assert config.test.name == "lib"
    assert config.test.rev == "main"
    assert config.test.package == "lib"
    assert config.instructions == [
        Instruction(
            url="https://github.com/org/app",
            name="app",
            rev="v1.2.0",
            package="app-core",
            before_action=PreAction(command="sed", args=("-i", "s/a/b/", "Cargo.toml")),
        ),
        Instruction(url="https://github.com/org/tool", name="tool"),
    ]


def test_load_config_accepts_structured_before_action(tmp_path: Path) -> None:
    """Pre-actions may be given as a command/args table."""
    path = _write(
        tmp_path,
        [
            *TEST_SECTION,
            "[[instructions]]",
            'url = "u"',
            'name = "app"',
            'before_action = { command = "sh", args = ["-c", "echo a b"] }',
        ],
    )

    config = load_config(path)

    assert config.instructions[0].before_action == PreAction(command="sh", args=("-c", "echo a b"))


def test_load_config_blank_before_action_means_none(tmp_path: Path) -> None:
    """An empty pre-action string should be treated as no pre-action."""
    path = _write(
        tmp_path,
        [*TEST_SECTION, "[[instructions]]", 'url = "u"', 'name = "app"', 'before_action = "  "'],
    )

    assert load_config(path).instructions[0].before_action is None


def test_load_config_test_package_override(tmp_path: Path) -> None:
    """The dependency name may differ from the clone directory name."""
    path = _write(tmp_path, [*TEST_SECTION, 'package = "lib-core"'])

    config = load_config(path)

    assert config.test.name == "lib"
    assert config.test.package == "lib-core"
    assert config.instructions == []


def test_load_config_missing_file_raises(tmp_path: Path) -> None:
    """Unreadable config files should raise config errors."""
    with pytest.raises(ConfigError, match="Cannot read config"):
        load_config(tmp_path / "missing.toml")


def test_load_config_invalid_toml_raises(tmp_path: Path) -> None:
    """Malformed TOML should raise config errors."""
    path = _write(tmp_path, ["[test", "url = "])

    with pytest.raises(ConfigError, match="Invalid config TOML"):
        load_config(path)


def test_load_config_requires_test_section(tmp_path: Path) -> None:
    """The [test] section is mandatory."""
    path = _write(tmp_path, ["[[instructions]]", 'url = "u"', 'name = "n"'])

    with pytest.raises(ConfigError, match=r"\[test\] is required"):
        load_config(path)


@pytest.mark.parametrize("missing", ["url", "name", "rev"])
def test_load_config_requires_test_fields(tmp_path: Path, missing: str) -> None:
    """Every [test] field except package is required."""
    lines = [line for line in TEST_SECTION if not line.startswith(missing)]
    path = _write(tmp_path, lines)

    with pytest.raises(ConfigError, match=f"test.{missing} is required"):
        load_config(path)


def test_load_config_rejects_invalid_instruction_types(tmp_path: Path) -> None:
    """Instruction fields should be validated with their position."""
    path = _write(
        tmp_path,
        [*TEST_SECTION, "[[instructions]]", 'url = "u"', 'name = "n"', "rev = 3"],
    )

    with pytest.raises(ConfigError, match=r"instructions\[0\]\.rev must be a string"):
        load_config(path)


def test_load_config_rejects_non_string_pre_action_args(tmp_path: Path) -> None:
    """Structured pre-action args must be strings."""
    path = _write(
        tmp_path,
        [
            *TEST_SECTION,
            "[[instructions]]",
            'url = "u"',
            'name = "n"',
            'before_action = { command = "sh", args = ["-c", 1] }',
        ],
    )

    with pytest.raises(ConfigError, match="before_action.args"):
        load_config(path)


def test_load_config_ignores_unknown_sections(tmp_path: Path) -> None:
    """Unknown config sections should not break loading."""
    path = _write(tmp_path, [*TEST_SECTION, "[other_section]", 'foo = "bar"'])

    assert load_config(path).test.name == "lib"


def test_build_run_options_creates_root_dir(tmp_path: Path, monkeypatch) -> None:
    """Run options should create the workspace root and resolve cargo."""
    monkeypatch.setenv("DOWNSTREAM_CARGO", "/opt/cargo")
    root = tmp_path / "work" / "root"

    options = build_run_options(
        action=Action.TEST,
        root_dir=root,
        continue_on_error=True,
        stream_output=False,
    )

    assert root.is_dir()
    assert options.root_dir == root.resolve()
    assert options.action is Action.TEST
    assert options.continue_on_error is True
    assert options.stream_output is False
    assert options.cargo == "/opt/cargo"


def test_build_run_options_defaults(monkeypatch) -> None:
    """Defaults should use the system temp area and plain cargo."""
    monkeypatch.delenv("DOWNSTREAM_CARGO", raising=False)

    options = build_run_options()

    assert options.root_dir is None
    assert options.action is Action.CHECK
    assert options.continue_on_error is False
    assert options.stream_output is True
    assert options.cargo == "cargo"


def test_build_run_options_reports_unusable_root(tmp_path: Path) -> None:
    """A root path blocked by a file should raise provisioning errors."""
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ProvisioningError):
        build_run_options(root_dir=blocker / "child")
