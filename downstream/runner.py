"""Utilities for executing pipeline commands."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from downstream.errors import CommandSpawnError
from downstream.ui.render import console as default_console
from downstream.ui.render import write_raw

SUCCESS_MARKER = "[+] Success"


@dataclass(slots=True)
class CommandResult:
    """Outcome of one executed command.

    Attributes:
        argv: Executed command and arguments.
        returncode: Process exit status.
        stdout: Captured (or streamed) standard output.
        stderr: Captured standard error; empty when streaming.
    """

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


def run_command(
    command: str,
    args: Sequence[str],
    cwd: str | Path,
    stream: bool = True,
    console: Console | None = None,
) -> CommandResult:
    """Run a single command and report its verdict.

    Args:
        command: Executable resolved on the search path.
        args: Arguments passed to the executable.
        cwd: Existing working directory for the command.
        stream: Forward stdout line by line as it is produced. When false,
            stdout and stderr are buffered and printed only on failure.
        console: Console receiving output; defaults to the shared console.

    Returns:
        Command result; a non-zero exit is a failed result, not an error.

    Raises:
        CommandSpawnError: If the command cannot be started or read.
    """
    out = console or default_console
    working_dir = Path(cwd)
    if not working_dir.is_dir():
        raise CommandSpawnError(f"Command runner cwd does not exist: {working_dir}")
    argv = [command, *args]

    if stream:
        result = _run_streaming(argv, working_dir, out)
    else:
        result = _run_captured(argv, working_dir)

    if result.success:
        out.print(SUCCESS_MARKER, style="green", markup=False)
        return result

    if not stream:
        write_raw(out, f"stdout: {result.stdout}")
        write_raw(out, f"stderr: {result.stderr}")
    out.print(
        f"[x] {' '.join(argv)} exited with status {result.returncode}",
        style="red",
        markup=False,
    )
    return result


def _run_streaming(argv: list[str], cwd: Path, out: Console) -> CommandResult:
    """Run a command forwarding each stdout line as soon as it is read."""
    lines: list[str] = []
    try:
        process = subprocess.Popen(
            argv,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        raise CommandSpawnError(f"Failed to start {argv[0]}: {exc}") from exc

    assert process.stdout is not None
    try:
        with process.stdout:
            for line in process.stdout:
                lines.append(line.rstrip("\n"))
                write_raw(out, line)
    except OSError as exc:
        process.kill()
        process.wait()
        raise CommandSpawnError(f"Failed to read output of {argv[0]}: {exc}") from exc
    returncode = process.wait()
    return CommandResult(argv=argv, returncode=returncode, stdout="\n".join(lines))


def _run_captured(argv: list[str], cwd: Path) -> CommandResult:
    """Run a command buffering stdout and stderr."""
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise CommandSpawnError(f"Failed to start {argv[0]}: {exc}") from exc
    return CommandResult(
        argv=argv,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )
