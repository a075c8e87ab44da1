"""Domain models for downstream-check runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Action(str, Enum):
    """Top-level cargo action used for the baseline build."""

    CHECK = "check"
    TEST = "test"

    def __str__(self) -> str:
        return self.value


class StepName(str, Enum):
    """Named states of the per-instruction pipeline."""

    CLONE = "clone"
    PRE_ACTION = "pre-action"
    BASELINE = "baseline"
    SUBSTITUTE = "substitute"
    POST_ACTION = "post-action"
    VERIFY = "verify"

    def __str__(self) -> str:
        return self.value


class OutcomeStatus(str, Enum):
    """Final state of one instruction in a run."""

    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TestTarget:
    """The library revision being validated against its dependents.

    Attributes:
        url: Git URL of the library.
        name: Directory name created by cloning the library.
        rev: Branch or tag to clone.
        package: Dependency name passed to `cargo add`.
    """

    __test__ = False

    url: str
    name: str
    rev: str
    package: str


@dataclass(frozen=True, slots=True)
class PreAction:
    """Auxiliary command run in the project directory around substitution."""

    command: str
    args: tuple[str, ...] = ()

    @classmethod
    def from_string(cls, raw: str) -> PreAction | None:
        """Split a command string on whitespace; blank strings mean no action.

        Quoting is not supported: `echo "a b"` yields the args `"a` and `b"`.
        """
        parts = raw.split()
        if not parts:
            return None
        return cls(command=parts[0], args=tuple(parts[1:]))

    def display(self) -> str:
        return " ".join([self.command, *self.args])


@dataclass(frozen=True, slots=True)
class Instruction:
    """One dependent project to validate.

    Attributes:
        url: Git URL of the dependent project.
        name: Directory name created by cloning the project.
        rev: Optional branch or tag; the default branch is used when absent.
        package: Optional workspace member receiving the substituted dependency.
        before_action: Optional pre-action run before and after substitution.
    """

    url: str
    name: str
    rev: str | None = None
    package: str | None = None
    before_action: PreAction | None = None


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Execution policy shared by every pipeline step."""

    action: Action = Action.CHECK
    root_dir: Path | None = None
    continue_on_error: bool = False
    stream_output: bool = True
    cargo: str = "cargo"


@dataclass(slots=True)
class InstructionOutcome:
    """Result of driving one instruction through the pipeline."""

    instruction: Instruction
    status: OutcomeStatus
    failed_step: StepName | None = None
    project_dir: Path | None = None
    head_sha: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.COMPLETED


@dataclass(slots=True)
class RunReport:
    """Aggregate result of a full run."""

    target_dir: Path | None = None
    target_ok: bool = True
    outcomes: list[InstructionOutcome] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        """Whether the run stopped before attempting every instruction."""
        if not self.target_ok:
            return True
        return any(outcome.status == OutcomeStatus.SKIPPED for outcome in self.outcomes)

    @property
    def success(self) -> bool:
        return self.target_ok and all(outcome.ok for outcome in self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)
