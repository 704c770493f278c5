"""Shared test fixtures."""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from scrape_relay.orchestrator.backend import (
    CaptureEvent,
    EngineEvent,
    RendererEvent,
    ResultEvent,
    ScrapeRequest,
)
from scrape_relay.orchestrator.backend.base import EmitEvent

ECHO_ENGINE_COMMAND = f"{sys.executable} -m scrape_relay.orchestrator.backend.echo_engine"

DEFINITION = {
    "url": "example\\.com",
    "elements": {
        "title": {"selector": "//h1", "value": "Example title"},
        "author": {"selector": "//meta[@name='author']", "value": ["Ada", "Grace"]},
        "missing": {"selector": "//nope", "fail": True},
    },
}


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds
        # Let session threads make progress.
        time.sleep(0.001)


class ScriptedEngine:
    """In-process engine that replays a fixed event script per URL."""

    def __init__(
        self,
        script: Callable[[str], list[EngineEvent]] | None = None,
        gate: threading.Event | None = None,
        error: Exception | None = None,
    ) -> None:
        self.script = script or default_script
        self.gate = gate
        self.error = error
        self.requests: list[ScrapeRequest] = []
        self.cancelled: list[ScrapeRequest] = []

    def scrape(self, request: ScrapeRequest, emit: EmitEvent) -> None:
        self.requests.append(request)
        if self.gate is not None:
            self.gate.wait()
        if self.error is not None:
            raise self.error
        for event in self.script(request.url):
            emit(event)

    def cancel(self, request: ScrapeRequest) -> None:
        self.cancelled.append(request)
        if self.gate is not None:
            self.gate.set()


def default_script(url: str) -> list[EngineEvent]:
    return [
        RendererEvent(name="rendering", args=("basic", url)),
        CaptureEvent(name="elementCaptured", args=("title", "Title")),
        CaptureEvent(name="elementCaptureFailed", args=("date",)),
        ResultEvent(
            raw={"title": "Title", "date": {"error": "no match"}},
            structured={"title": {"value": "Title"}},
        ),
    ]


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    package_logger = logging.getLogger("scrape_relay")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def definition_path(tmp_path: Path) -> Path:
    path = tmp_path / "scrapers" / "example.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(DEFINITION), "utf-8")
    return path


@pytest.fixture()
def echo_engine_env(monkeypatch, tmp_path: Path) -> Path:
    """Point the CLI at the local echo engine with fast pacing."""

    output_dir = tmp_path / "out"
    monkeypatch.setenv("SCRAPE_RELAY_ENGINE_COMMAND", ECHO_ENGINE_COMMAND)
    monkeypatch.setenv("SCRAPE_RELAY_POLL_INTERVAL_SECONDS", "0.01")
    monkeypatch.setenv("SCRAPE_RELAY_GRACE_SECONDS", "0")
    monkeypatch.setenv("SCRAPE_RELAY_OUTPUT_DIR", str(output_dir))
    return output_dir
