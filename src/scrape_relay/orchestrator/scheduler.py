"""Rate-limited, strictly sequential dispatch of scrape sessions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from scrape_relay.orchestrator.models import (
    RateLimitState,
    RunSummary,
    SchedulerState,
    TaskState,
    WorkItem,
)
from scrape_relay.orchestrator.session import ScrapeSession
from scrape_relay.orchestrator.workdir import TaskWorkspaceManager, Workspace

logger = logging.getLogger(__name__)

SessionFactory = Callable[[TaskState, Workspace], ScrapeSession]


class LifecycleController:
    """Fires once the final task is done and the grace period has elapsed."""

    def __init__(self, *, grace_seconds: float) -> None:
        self.grace_seconds = grace_seconds
        self.armed_at: float | None = None

    @property
    def armed(self) -> bool:
        return self.armed_at is not None

    def arm(self, now: float) -> None:
        if self.armed_at is None:
            logger.debug("last task done, exiting in %.1fs", self.grace_seconds)
            self.armed_at = now

    def should_exit(self, now: float) -> bool:
        if self.armed_at is None:
            return False
        return now - self.armed_at >= self.grace_seconds


class RateLimitedScheduler:
    """Polls on a fixed period and dispatches the next item when allowed.

    A new item is dispatched only when the rate window is open and the
    previous task is done, so at most one session runs at a time.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        items: Sequence[WorkItem],
        workspaces: TaskWorkspaceManager,
        session_factory: SessionFactory,
        min_interval_seconds: float,
        poll_interval_seconds: float = 0.1,
        grace_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.items = list(items)
        self.workspaces = workspaces
        self.session_factory = session_factory
        self.poll_interval_seconds = poll_interval_seconds
        self.clock = clock
        self.sleep = sleep
        self.rate = RateLimitState(min_interval_seconds=min_interval_seconds)
        self.lifecycle = LifecycleController(grace_seconds=grace_seconds)
        self.state = SchedulerState.IDLE
        self.summary = RunSummary()
        self.dispatch_times: list[float] = []
        self._cursor = 0
        self._current: ScrapeSession | None = None
        self._recorded = False

    @property
    def current(self) -> ScrapeSession | None:
        return self._current

    def run(self) -> RunSummary:
        """Tick until the lifecycle controller fires."""

        logger.info("urls to scrape: %d", len(self.items))
        while self.state is not SchedulerState.FINISHED:
            self.tick()
            if self.state is SchedulerState.FINISHED:
                break
            self.sleep(self.poll_interval_seconds)
        logger.info("all tasks completed")
        return self.summary

    def tick(self) -> None:
        now = self.clock()
        if self.state is SchedulerState.FINISHED:
            return
        if self._current is not None:
            self._current.pump()
            self._record_if_done()

        if self.state is SchedulerState.DRAINING:
            self._drain(now)
            return

        if not self.rate.window_open(now):
            self.state = SchedulerState.WAITING
            return
        if self._current is not None and not self._current.done:
            return

        if self._cursor < len(self.items):
            self._dispatch(self.items[self._cursor], now)
            self._cursor += 1
            if self._cursor == len(self.items):
                self.state = SchedulerState.DRAINING
                self._drain(now)
            return

        self.state = SchedulerState.DRAINING
        self._drain(now)

    def _dispatch(self, item: WorkItem, now: float) -> None:
        self.rate.last_dispatch_at = now
        self.dispatch_times.append(now)
        self.state = SchedulerState.DISPATCHING

        workspace = self.workspaces.acquire(item)
        self.workspaces.enter(workspace)
        task = TaskState(
            index=item.index,
            identifier=item.identifier,
            workspace_path=workspace.path,
        )
        logger.info("processing URL: %s", item.identifier)
        self._current = self.session_factory(task, workspace)
        self._recorded = False
        self.summary.dispatched += 1
        self._current.start()

    def _record_if_done(self) -> None:
        if self._current is None or self._recorded or not self._current.done:
            return
        self.summary.record(self._current.task)
        self._recorded = True

    def _drain(self, now: float) -> None:
        if self._current is not None and not self._current.done:
            return
        self.lifecycle.arm(now)
        if self.lifecycle.should_exit(now):
            self.state = SchedulerState.FINISHED
