"""Workspace directories for cloned projects."""

from __future__ import annotations

import shutil
import tempfile
import weakref
from pathlib import Path

from downstream.errors import ProvisioningError

WORKSPACE_PREFIX = "downstream-"


class Workspace:
    """A uniquely named directory owning one cloned project.

    Workspaces start scoped: the directory is removed when the object is
    garbage collected, when `cleanup()` is called or when a `with` block
    exits. `persist()` detaches the removal so the directory outlives the
    process. Persisting cannot be undone.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._finalizer = weakref.finalize(self, shutil.rmtree, str(path), ignore_errors=True)

    def __repr__(self) -> str:
        state = "persisted" if self.persisted else "scoped"
        return f"Workspace({str(self.path)!r}, {state})"

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()

    def __truediv__(self, other: str) -> Path:
        return self.path / other

    @property
    def persisted(self) -> bool:
        return not self._finalizer.alive and self.path.exists()

    def persist(self) -> Path:
        """Keep the directory on disk after the process exits."""
        self._finalizer.detach()
        return self.path

    def cleanup(self) -> None:
        """Remove the directory unless it was persisted."""
        self._finalizer()


def provision(root: str | Path | None = None) -> Workspace:
    """Create a fresh scoped workspace.

    Args:
        root: Optional parent directory, created when missing. The system
            temporary area is used when omitted.

    Returns:
        New scoped workspace.

    Raises:
        ProvisioningError: If the directory cannot be created.
    """
    parent: str | None = None
    if root is not None:
        root_path = Path(root).expanduser()
        try:
            root_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ProvisioningError(f"Cannot create workspace root: {root_path}") from exc
        parent = str(root_path)
    try:
        created = tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent)
    except OSError as exc:
        raise ProvisioningError(f"Cannot create workspace in {parent or tempfile.gettempdir()}") from exc
    return Workspace(Path(created))
