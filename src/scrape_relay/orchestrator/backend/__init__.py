"""Scraper engine implementations."""

from scrape_relay.orchestrator.backend.base import (
    CaptureEvent,
    EngineEvent,
    EngineFailure,
    RendererEvent,
    ResultEvent,
    ScrapeRequest,
    ScraperEngine,
)
from scrape_relay.orchestrator.backend.cli_engine import CliScraperEngine, EngineRunError

__all__ = [
    "CaptureEvent",
    "CliScraperEngine",
    "EngineEvent",
    "EngineFailure",
    "EngineRunError",
    "RendererEvent",
    "ResultEvent",
    "ScrapeRequest",
    "ScraperEngine",
]
