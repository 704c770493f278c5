"""Domain models for the scrape queue and its execution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class TaskStatus(str, Enum):
    """Per-task lifecycle states. Transitions only move forward."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"


class TaskOutcome(str, Enum):
    """How a done task ended."""

    COMPLETED = "completed"
    ENGINE_FAILED = "engine_failed"
    TIMED_OUT = "timed_out"
    WRITE_FAILED = "write_failed"


class SchedulerState(str, Enum):
    """States of the rate-limited dispatch loop."""

    IDLE = "idle"
    WAITING = "waiting"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    FINISHED = "finished"


@dataclass(slots=True, frozen=True)
class WorkItem:
    """One queued identifier with its position in the queue."""

    index: int
    identifier: str

    @property
    def ordinal(self) -> int:
        return self.index + 1


@dataclass(slots=True)
class TaskState:
    """Mutable execution state of one dispatched work item."""

    index: int
    identifier: str
    workspace_path: Path
    status: TaskStatus = TaskStatus.PENDING
    captures_failed: int = 0
    outcome: TaskOutcome | None = None
    key_collisions: int = 0

    @property
    def done(self) -> bool:
        return self.status is TaskStatus.DONE


@dataclass(slots=True)
class RateLimitState:
    """Minimum spacing between dispatches, owned by the scheduler."""

    min_interval_seconds: float
    last_dispatch_at: float | None = None

    def elapsed(self, now: float) -> float:
        if self.last_dispatch_at is None:
            return float("inf")
        return now - self.last_dispatch_at

    def window_open(self, now: float) -> bool:
        return self.elapsed(now) >= self.min_interval_seconds


@dataclass(slots=True)
class RunSummary:
    """Aggregate counters for CLI reporting."""

    dispatched: int = 0
    completed: int = 0
    failed: int = 0
    timed_out: int = 0
    captures_failed: int = 0
    key_collisions: int = 0

    def record(self, task: TaskState) -> None:
        self.captures_failed += task.captures_failed
        self.key_collisions += task.key_collisions
        if task.outcome is TaskOutcome.COMPLETED:
            self.completed += 1
        elif task.outcome is TaskOutcome.TIMED_OUT:
            self.timed_out += 1
        else:
            self.failed += 1
