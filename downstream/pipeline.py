"""Sequential clone, build and substitution pipeline."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import partial
from pathlib import Path

from rich.console import Console

from downstream.errors import CommandSpawnError
from downstream.git_info import clone_args, head_sha
from downstream.models import (
    Instruction,
    InstructionOutcome,
    OutcomeStatus,
    PreAction,
    RunOptions,
    RunReport,
    StepName,
    TestTarget,
)
from downstream.runner import CommandResult, run_command
from downstream.ui.render import announce, announce_failure
from downstream.ui.render import console as default_console
from downstream.workspace import Workspace, provision

CommandRunner = Callable[..., CommandResult]
Step = tuple[StepName, Callable[[], bool]]


class Pipeline:
    """Drive each instruction through clone, build and substitution steps.

    The test target is cloned once, before any instruction, and every
    instruction substitutes that clone for its published dependency. Each
    instruction stops at its first failing step. Without continue-on-error
    the first failed instruction also ends the run and the remaining ones
    are reported as skipped.
    """

    def __init__(
        self,
        target: TestTarget,
        options: RunOptions,
        runner: CommandRunner = run_command,
        console: Console | None = None,
        provisioner: Callable[[Path | None], Workspace] = provision,
        revision_reader: Callable[[Path], str | None] = head_sha,
    ) -> None:
        self.target = target
        self.options = options
        self.runner = runner
        self.console = console or default_console
        self.provisioner = provisioner
        self.revision_reader = revision_reader
        self.target_path: Path | None = None

    def run(self, instructions: Sequence[Instruction]) -> RunReport:
        """Clone the test target, then process instructions in order."""
        report = RunReport()
        target_dir = self._provision()
        report.target_dir = target_dir
        announce(self.console, f"Cloning {self.target.url} into {target_dir}")
        if not self._execute("git", clone_args(self.target.url, self.target.rev), target_dir):
            announce_failure(self.console, "Test target clone failed; no instructions attempted")
            report.target_ok = False
            return report
        self.target_path = target_dir / self.target.name

        for index, instruction in enumerate(instructions):
            outcome = self.run_instruction(instruction)
            report.outcomes.append(outcome)
            if outcome.ok or self.options.continue_on_error:
                continue
            skipped = instructions[index + 1 :]
            if skipped:
                announce_failure(
                    self.console,
                    f"Aborting after {instruction.name}; skipping {len(skipped)} remaining instruction(s)",
                )
            report.outcomes.extend(
                InstructionOutcome(instruction=rest, status=OutcomeStatus.SKIPPED)
                for rest in skipped
            )
            break
        return report

    def run_instruction(self, instruction: Instruction) -> InstructionOutcome:
        """Run one instruction until completion or its first failing step."""
        if self.target_path is None:
            raise RuntimeError("Test target must be cloned before running instructions.")
        workspace_dir = self._provision()
        project_dir = workspace_dir / instruction.name
        outcome = InstructionOutcome(
            instruction=instruction,
            status=OutcomeStatus.COMPLETED,
            project_dir=project_dir,
        )
        for step, run_step in self._steps(instruction, workspace_dir, project_dir):
            if not run_step():
                announce_failure(self.console, f"{instruction.name}: {step} failed")
                outcome.status = OutcomeStatus.FAILED
                outcome.failed_step = step
                return outcome
            if step is StepName.CLONE:
                outcome.head_sha = self.revision_reader(project_dir)
        return outcome

    def _steps(
        self,
        instruction: Instruction,
        workspace_dir: Path,
        project_dir: Path,
    ) -> Iterable[Step]:
        yield StepName.CLONE, partial(self._clone, instruction, workspace_dir)
        if instruction.before_action is not None:
            yield StepName.PRE_ACTION, partial(
                self._pre_action, instruction.before_action, project_dir
            )
        yield StepName.BASELINE, partial(self._baseline, project_dir)
        yield StepName.SUBSTITUTE, partial(self._substitute, instruction, project_dir)
        if instruction.before_action is not None:
            yield StepName.POST_ACTION, partial(
                self._pre_action, instruction.before_action, project_dir
            )
        yield StepName.VERIFY, partial(self._verify, project_dir)

    def _clone(self, instruction: Instruction, workspace_dir: Path) -> bool:
        announce(self.console, f"Cloning {instruction.url} into {workspace_dir}")
        return self._execute("git", clone_args(instruction.url, instruction.rev), workspace_dir)

    def _pre_action(self, action: PreAction, project_dir: Path) -> bool:
        announce(self.console, f"Running pre-action in {project_dir}: {action.display()}")
        return self._execute(action.command, action.args, project_dir)

    def _baseline(self, project_dir: Path) -> bool:
        announce(self.console, f"Evaluating {project_dir}")
        return self._execute(self.options.cargo, [str(self.options.action)], project_dir)

    def _substitute(self, instruction: Instruction, project_dir: Path) -> bool:
        args = ["add", self.target.package, "--path", str(self.target_path)]
        message = f"Substituting {self.target.package} in {project_dir} with {self.target_path}"
        if instruction.package:
            args.extend(["-p", instruction.package])
            message = f"{message} for package {instruction.package}"
        announce(self.console, message)
        return self._execute(self.options.cargo, args, project_dir)

    def _verify(self, project_dir: Path) -> bool:
        announce(self.console, f"Checking modified {project_dir}")
        return self._execute(self.options.cargo, ["check"], project_dir)

    def _provision(self) -> Path:
        """Create a workspace that stays on disk for post-run inspection."""
        return self.provisioner(self.options.root_dir).persist()

    def _execute(self, command: str, args: Sequence[str], cwd: Path) -> bool:
        """Run a step command; spawn errors count as a failed step."""
        try:
            result = self.runner(
                command,
                list(args),
                cwd,
                stream=self.options.stream_output,
                console=self.console,
            )
        except CommandSpawnError as exc:
            announce_failure(self.console, str(exc))
            return False
        return result.success
