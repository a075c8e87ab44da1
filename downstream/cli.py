"""Typer CLI entrypoint for downstream-check."""

from __future__ import annotations

from pathlib import Path

import click
import typer

from downstream.config import build_run_options, load_config
from downstream.dependents import load_dependents, merge_instructions
from downstream.errors import DownstreamError
from downstream.models import Action
from downstream.pipeline import Pipeline
from downstream.ui.render import _safe_text, console, print_summary

app = typer.Typer(
    help="Build dependent projects against a local revision of a library.",
    add_completion=False,
)


@app.command()
def run(
    config: Path = typer.Argument(..., help="Path to the TOML run configuration."),
    cmd: Action = typer.Argument(Action.CHECK, help="Baseline cargo action."),
    root_dir: Path | None = typer.Option(
        None,
        "--root-dir",
        help="Directory holding workspaces; created if missing.",
    ),
    dependents_info: Path | None = typer.Option(
        None,
        "--from-github-dependents-info",
        help="GitHub dependents JSON feed merged into the instructions.",
    ),
    no_exit_on_error: bool = typer.Option(
        False,
        "--no-exit-on-error",
        help="Continue with the next instruction after a failure.",
    ),
    no_stdout: bool = typer.Option(
        False,
        "--no-stdout",
        help="Buffer command output and print it only on failure.",
    ),
) -> None:
    """Clone each dependent, substitute the test target and rebuild it."""
    run_config = load_config(config)
    instructions = run_config.instructions
    if dependents_info is not None:
        synthesized = load_dependents(dependents_info, self_name=run_config.test.name)
        instructions = merge_instructions(instructions, synthesized)
        console.print(f"Loaded {len(synthesized)} instruction(s) from {_safe_text(dependents_info)}")

    options = build_run_options(
        action=cmd,
        root_dir=root_dir,
        continue_on_error=no_exit_on_error,
        stream_output=not no_stdout,
    )
    report = Pipeline(run_config.test, options).run(instructions)
    print_summary(console, report)
    if not report.success:
        raise SystemExit(1)


def main() -> None:
    """CLI process entrypoint."""
    try:
        app(standalone_mode=False)
    except DownstreamError as err:
        console.print(f"[red]Error:[/red] {_safe_text(err)}")
        raise SystemExit(2) from err
    except click.ClickException as err:
        err.show()
        raise SystemExit(err.exit_code) from err
    except click.exceptions.Exit as err:
        raise SystemExit(err.exit_code) from err


if __name__ == "__main__":
    main()
