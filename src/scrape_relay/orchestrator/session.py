"""One engine invocation for one task, from dispatch to durable output."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable

from scrape_relay.orchestrator.backend import (
    CaptureEvent,
    EngineEvent,
    EngineFailure,
    RendererEvent,
    ResultEvent,
    ScrapeRequest,
    ScraperEngine,
)
from scrape_relay.orchestrator.contracts import ScrapeResult, inject_identifier
from scrape_relay.orchestrator.definitions import ScraperDefinition
from scrape_relay.orchestrator.models import TaskOutcome, TaskState, TaskStatus
from scrape_relay.orchestrator.workdir import TaskWorkspaceManager, Workspace
from scrape_relay.orchestrator.writer import ResultWriter

logger = logging.getLogger(__name__)

CANCEL_JOIN_SECONDS = 10.0

_CAPTURE_LEVELS = {
    "elementCaptured": logging.INFO,
    "elementCaptureFailed": logging.WARNING,
    "downloadSaved": logging.INFO,
    "downloadError": logging.WARNING,
    "scraperError": logging.ERROR,
}


class EventChannel:
    """Session-scoped event queue; events put after ``close()`` are dropped."""

    def __init__(self) -> None:
        self._queue: queue.Queue[EngineEvent] = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: EngineEvent) -> None:
        if self._closed.is_set():
            logger.debug("dropping %s received after session end", type(event).__name__)
            return
        self._queue.put(event)

    def drain(self) -> list[EngineEvent]:
        events: list[EngineEvent] = []
        while not self._closed.is_set():
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events

    def close(self) -> None:
        self._closed.set()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return


class ScrapeSession:
    """Runs the engine for one task and turns its events into output.

    The blocking engine call runs on a daemon thread and only feeds the
    channel; every state change happens in :meth:`pump` on the caller's
    thread.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        task: TaskState,
        workspace: Workspace,
        workspaces: TaskWorkspaceManager,
        engine: ScraperEngine,
        definitions: tuple[ScraperDefinition, ...],
        writer: ResultWriter,
        headless: bool = False,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.task = task
        self.workspace = workspace
        self.workspaces = workspaces
        self.engine = engine
        self.definitions = definitions
        self.writer = writer
        self.headless = headless
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.channel = EventChannel()
        self.started_at: float | None = None
        self._thread: threading.Thread | None = None
        self._request: ScrapeRequest | None = None

    @property
    def done(self) -> bool:
        return self.task.done

    @property
    def engine_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self.task.status = TaskStatus.RUNNING
        self.started_at = self.clock()
        self._request = request = ScrapeRequest(
            url=self.task.identifier,
            definitions=self.definitions,
            workdir=self.workspace.path,
            headless=self.headless,
        )
        self._thread = threading.Thread(
            target=self._run_engine,
            args=(request,),
            daemon=True,
            name=f"scrape-session-{self.task.index + 1}",
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def pump(self) -> None:
        """Handle every queued event, then enforce the optional timeout."""

        for event in self.channel.drain():
            if self.done:
                break
            self._handle(event)
        if not self.done and self._timed_out():
            logger.error(
                "no result for %s after %.1fs, abandoning task",
                self.task.identifier,
                self.timeout_seconds,
            )
            self._cancel_engine()
            self._finish(TaskOutcome.TIMED_OUT)

    def _run_engine(self, request: ScrapeRequest) -> None:
        produced_result = False

        def emit(event: EngineEvent) -> None:
            nonlocal produced_result
            if isinstance(event, ResultEvent):
                produced_result = True
            self.channel.put(event)

        try:
            self.engine.scrape(request, emit)
        except Exception as error:  # noqa: BLE001
            if produced_result:
                logger.warning("engine raised after its result for %s: %s", request.url, error)
                return
            self.channel.put(EngineFailure(message=f"{type(error).__name__}: {error}"))
            return
        if not produced_result:
            self.channel.put(EngineFailure(message="engine returned without a result"))

    def _cancel_engine(self) -> None:
        if self._request is None:
            return
        self.engine.cancel(self._request)
        self.join(timeout=CANCEL_JOIN_SECONDS)
        if self.engine_running:
            logger.warning("engine for %s is still running after cancel", self.task.identifier)

    def _handle(self, event: EngineEvent) -> None:
        if isinstance(event, CaptureEvent):
            if event.failed:
                self.task.captures_failed += 1
            level = _CAPTURE_LEVELS.get(event.name, logging.DEBUG)
            logger.log(level, "scraper.%s %s", event.name, _format_args(event.args))
        elif isinstance(event, RendererEvent):
            logger.info("scraper.renderer.%s %s", event.name, _format_args(event.args))
        elif isinstance(event, ResultEvent):
            self._complete(ScrapeResult(raw=dict(event.raw), structured=dict(event.structured)))
        elif isinstance(event, EngineFailure):
            logger.error("scraping %s failed: %s", self.task.identifier, event.message)
            self._finish(TaskOutcome.ENGINE_FAILED)

    def _complete(self, result: ScrapeResult) -> None:
        total = len(result.raw)
        failed = self.task.captures_failed
        logger.info(
            "URL processed: captured %d/%d elements (%d captures failed)",
            total - failed,
            total,
            failed,
        )
        self.task.key_collisions = inject_identifier(result, self.task.identifier)
        try:
            self.writer.write(self.workspace.path, result)
        except (OSError, UnicodeError):
            logger.exception("writing results for %s failed", self.task.identifier)
            self._finish(TaskOutcome.WRITE_FAILED)
            return
        self._finish(TaskOutcome.COMPLETED)

    def _finish(self, outcome: TaskOutcome) -> None:
        self.workspaces.leave(self.workspace)
        self.channel.close()
        self.task.outcome = outcome
        self.task.status = TaskStatus.DONE

    def _timed_out(self) -> bool:
        if not self.timeout_seconds or self.started_at is None:
            return False
        return self.clock() - self.started_at >= self.timeout_seconds


def _format_args(args: tuple[object, ...]) -> str:
    return " ".join(str(arg) for arg in args)
