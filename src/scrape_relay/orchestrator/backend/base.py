"""Engine interface for scrape task execution."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from scrape_relay.orchestrator.definitions import ScraperDefinition

CAPTURE_FAILED = "elementCaptureFailed"


@dataclass(slots=True, frozen=True)
class ScrapeRequest:
    """Inputs required to scrape one identifier."""

    url: str
    definitions: tuple[ScraperDefinition, ...]
    workdir: Path
    headless: bool = False


@dataclass(slots=True, frozen=True)
class CaptureEvent:
    """Per-element capture progress (``scraper.<name>``)."""

    name: str
    args: tuple[Any, ...] = ()

    @property
    def failed(self) -> bool:
        return self.name == CAPTURE_FAILED


@dataclass(slots=True, frozen=True)
class RendererEvent:
    """Renderer lifecycle progress (``scraper.renderer.<name>``)."""

    name: str
    args: tuple[Any, ...] = ()


@dataclass(slots=True, frozen=True)
class ResultEvent:
    """Terminal event carrying the raw and structured result maps."""

    raw: dict[str, Any]
    structured: dict[str, Any]


@dataclass(slots=True, frozen=True)
class EngineFailure:
    """The engine call ended without producing a result."""

    message: str


EngineEvent = CaptureEvent | RendererEvent | ResultEvent | EngineFailure
EmitEvent = Callable[[EngineEvent], None]


class ScraperEngine(Protocol):
    """Protocol implemented by scraper engines."""

    def scrape(self, request: ScrapeRequest, emit: EmitEvent) -> None:
        """Scrape ``request.url``, emitting events until one ``ResultEvent``."""

    def cancel(self, request: ScrapeRequest) -> None:
        """Stop work for ``request``, whether it is running or not yet started."""


def event_from_payload(payload: dict[str, Any]) -> EngineEvent:
    """Decode one wire event: ``{"event": "...", "args": [...]}``."""

    name = payload.get("event")
    if not isinstance(name, str):
        raise ValueError("event payload must have a string 'event' field")
    if name == "result":
        raw = payload.get("raw", {})
        structured = payload.get("structured", {})
        if not isinstance(raw, dict) or not isinstance(structured, dict):
            raise ValueError("result event must carry 'raw' and 'structured' objects")
        return ResultEvent(raw=raw, structured=structured)

    args = payload.get("args", [])
    if not isinstance(args, list):
        args = [args]
    if name.startswith("scraper.renderer."):
        return RendererEvent(name=name.removeprefix("scraper.renderer."), args=tuple(args))
    if name.startswith("scraper."):
        return CaptureEvent(name=name.removeprefix("scraper."), args=tuple(args))
    raise ValueError(f"unknown event category: {name!r}")
