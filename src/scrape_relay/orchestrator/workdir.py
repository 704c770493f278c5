"""Per-task workspace directories under a shared output root."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from scrape_relay.orchestrator.models import WorkItem
from scrape_relay.orchestrator.sanitization import (
    MAX_NAME_BYTES,
    identifier_dirname,
    truncate_utf8,
)

logger = logging.getLogger(__name__)


class WorkspaceBusyError(RuntimeError):
    """Raised when a workspace is entered while another one is still active."""


@dataclass(slots=True, frozen=True)
class Workspace:
    """Isolated output directory for one task."""

    name: str
    path: Path


class TaskWorkspaceManager:
    """Creates deterministic per-task directories and tracks the active one.

    The process working directory is never changed; callers receive the
    workspace path and pass it to every I/O call they make.
    """

    def __init__(self, root_dir: Path, *, numbered: bool = False) -> None:
        self.root_dir = root_dir
        self.numbered = numbered
        self._used_names: set[str] = set()
        self._active: Workspace | None = None
        if not self.root_dir.exists():
            logger.debug("creating output directory: %s", self.root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    @property
    def active(self) -> Workspace | None:
        return self._active

    def acquire(self, item: WorkItem) -> Workspace:
        """Create (if absent) and return the workspace for ``item``."""

        name = self._unique_name(self._base_name(item))
        path = self.root_dir / name
        if not path.exists():
            logger.debug("creating output directory: %s", path)
        path.mkdir(parents=True, exist_ok=True)
        return Workspace(name=name, path=path)

    def enter(self, workspace: Workspace) -> None:
        if self._active is not None and self._active != workspace:
            raise WorkspaceBusyError(
                f"Cannot enter {workspace.name!r}: {self._active.name!r} is still active",
            )
        self._active = workspace

    def leave(self, workspace: Workspace) -> None:
        if self._active != workspace:
            logger.warning("leaving workspace %s which is not the active one", workspace.name)
        logger.debug("returning to top-level directory %s", self.root_dir)
        self._active = None

    def _base_name(self, item: WorkItem) -> str:
        if self.numbered:
            return str(item.ordinal)
        return identifier_dirname(item.identifier) or str(item.ordinal)

    def _unique_name(self, base: str) -> str:
        name = base
        counter = 2
        while name in self._used_names:
            suffix = f"-{counter}"
            name = truncate_utf8(base, MAX_NAME_BYTES - len(suffix)) + suffix
            counter += 1
        self._used_names.add(name)
        return name
