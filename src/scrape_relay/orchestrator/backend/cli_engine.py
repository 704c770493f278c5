"""Subprocess-based scraper engine speaking JSON lines on stdout."""

from __future__ import annotations

import json
import logging
import shlex
import shutil
import subprocess
import threading

from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.backend.base import (
    EmitEvent,
    ResultEvent,
    ScrapeRequest,
    event_from_payload,
)

logger = logging.getLogger(__name__)

STDERR_FILENAME = "engine_stderr.log"
TERMINATE_WAIT_SECONDS = 5.0


class EngineRunError(RuntimeError):
    """Engine process could not be run or ended without a result."""


class CliScraperEngine:
    """Run an external engine command once per request.

    The request is written to the process stdin as one JSON object; the
    process answers with one JSON event per stdout line and must end with a
    ``result`` event. It runs with the task workspace as working directory so
    any files it saves land there.

    :meth:`cancel` terminates the process of a request that overran its session.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        self.args = shlex.split(command)
        self._lock = threading.Lock()
        self._active: tuple[ScrapeRequest, subprocess.Popen[str]] | None = None
        self._cancelled: ScrapeRequest | None = None

    def check_available(self) -> None:
        if not self.args:
            raise ConfigurationError("Engine command is empty.")
        if shutil.which(self.args[0]) is None:
            raise ConfigurationError(f"Scraper engine command not found: {self.args[0]}")

    def scrape(self, request: ScrapeRequest, emit: EmitEvent) -> None:
        stderr_path = request.workdir / STDERR_FILENAME
        payload = {
            "url": request.url,
            "headless": request.headless,
            "scrapers": [definition.payload for definition in request.definitions],
        }
        try:
            with stderr_path.open("w", encoding="utf-8") as stderr_handle:
                with self._lock:
                    if self._cancelled is request:
                        raise EngineRunError(f"Scrape of {request.url} was cancelled before start")
                    process = subprocess.Popen(  # noqa: S603
                        self.args,
                        cwd=request.workdir,
                        stdin=subprocess.PIPE,
                        stdout=subprocess.PIPE,
                        stderr=stderr_handle,
                        text=True,
                        encoding="utf-8",
                    )
                    self._active = (request, process)
                try:
                    got_result = self._stream_events(process, json.dumps(payload), emit)
                    exit_code = process.wait()
                finally:
                    with self._lock:
                        self._active = None
                    if process.poll() is None:
                        process.kill()
                        process.wait()
        except FileNotFoundError as error:
            raise EngineRunError(f"Scraper engine command not found: {self.args[0]}") from error
        except OSError as error:
            raise EngineRunError(f"Scraper engine failed to start: {error}") from error

        if not got_result:
            raise EngineRunError(
                f"Scraper engine exited with code {exit_code} without a result "
                f"(see {stderr_path})",
            )

    def cancel(self, request: ScrapeRequest) -> None:
        """Terminate the engine process for ``request``, or keep it from starting."""

        with self._lock:
            self._cancelled = request
            active = self._active
        if active is None or active[0] is not request:
            return
        process = active[1]
        if process.poll() is not None:
            return
        logger.warning("terminating scraper engine (pid %d) for %s", process.pid, request.url)
        process.terminate()
        try:
            process.wait(timeout=TERMINATE_WAIT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("scraper engine (pid %d) ignored terminate, killing it", process.pid)
            process.kill()
            process.wait()

    def _stream_events(
        self,
        process: subprocess.Popen[str],
        request_json: str,
        emit: EmitEvent,
    ) -> bool:
        if process.stdin is None or process.stdout is None:
            raise EngineRunError("Scraper engine pipes were not opened")
        try:
            process.stdin.write(request_json)
            process.stdin.close()
        except BrokenPipeError:
            logger.debug("engine closed stdin before reading the request")

        got_result = False
        for line in process.stdout:
            text = line.strip()
            if not text:
                continue
            try:
                event = event_from_payload(json.loads(text))
            except (json.JSONDecodeError, ValueError) as error:
                logger.warning("ignoring malformed engine line %r: %s", text[:200], error)
                continue
            if isinstance(event, ResultEvent):
                if got_result:
                    logger.warning("ignoring extra result event from engine")
                    continue
                got_result = True
            emit(event)
        return got_result
