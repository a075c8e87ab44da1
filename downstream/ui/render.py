"""Rich rendering helpers for downstream-check output."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from downstream.models import InstructionOutcome, OutcomeStatus, RunReport

console = Console(soft_wrap=True, highlight=False)

STATUS_BADGES = {
    OutcomeStatus.COMPLETED: "[green]ok[/green]",
    OutcomeStatus.FAILED: "[red]failed[/red]",
    OutcomeStatus.SKIPPED: "[yellow]skipped[/yellow]",
}


def _safe_text(value: Any) -> str:
    """Escape Rich markup tokens in user-visible text values."""
    return escape(str(value))


def _path_text(path: Path | None) -> str:
    return _safe_text(path) if path is not None else "-"


def _short_sha(sha: str | None) -> str:
    """Return abbreviated revision text for table cells."""
    if not sha:
        return "-"
    return sha[:12]


def write_raw(out: Console, text: str) -> None:
    """Write child process output to the console's file unchanged.

    Rich rendering would expand tabs and strip control characters, so the
    text bypasses it. A trailing newline is added when missing.
    """
    if not text.endswith("\n"):
        text = f"{text}\n"
    out.file.write(text)
    out.file.flush()


def announce(out: Console, message: str) -> None:
    """Print a `[-]` progress line for a pipeline phase."""
    out.print(f"[-] {message}", markup=False)


def announce_failure(out: Console, message: str) -> None:
    """Print an `[x]` failure line."""
    out.print(f"[x] {message}", style="red", markup=False)


def outcome_row(outcome: InstructionOutcome) -> tuple[str, str, str, str, str]:
    """Return the summary table cells for one instruction outcome."""
    return (
        _safe_text(outcome.instruction.name),
        STATUS_BADGES.get(outcome.status, _safe_text(outcome.status)),
        _safe_text(outcome.failed_step) if outcome.failed_step else "-",
        _short_sha(outcome.head_sha),
        _path_text(outcome.project_dir),
    )


def print_summary(out: Console, report: RunReport) -> None:
    """Render the end-of-run summary table.

    Args:
        out: Rich console instance.
        report: Completed run report.
    """
    if not report.target_ok:
        out.print(
            f"[red]Test target clone failed[/red] in {_path_text(report.target_dir)}; "
            "no instructions were attempted."
        )
        return
    if not report.outcomes:
        out.print("No instructions to run.")
    else:
        table = Table(title="Downstream Results")
        table.add_column("Project")
        table.add_column("Status")
        table.add_column("Failed Step")
        table.add_column("Revision")
        table.add_column("Workspace")
        for outcome in report.outcomes:
            table.add_row(*outcome_row(outcome))
        out.print(table)

    out.print(" ".join(f"{status}={report.count(status)}" for status in OutcomeStatus))
    out.print(f"Test target workspace: {_path_text(report.target_dir)}")
