"""Controller for the scrape CLI command."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from scrape_relay import __version__
from scrape_relay.config import Settings
from scrape_relay.logs import configure_logging
from scrape_relay.orchestrator.backend import CliScraperEngine
from scrape_relay.orchestrator.definitions import ScraperDefinition, resolve_definitions
from scrape_relay.orchestrator.formats import resolve_formatter
from scrape_relay.orchestrator.models import RunSummary, TaskState, WorkItem
from scrape_relay.orchestrator.queue_loader import load_work_items
from scrape_relay.orchestrator.scheduler import RateLimitedScheduler
from scrape_relay.orchestrator.session import ScrapeSession
from scrape_relay.orchestrator.workdir import TaskWorkspaceManager, Workspace
from scrape_relay.orchestrator.writer import ResultWriter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScrapeRunCommand:
    """CLI input for a scrape run. ``None`` means "use the environment"."""

    url: str | None
    url_list: Path | None
    scraper: Path | None
    scraper_dir: Path | None
    output_dir: Path | None = None
    stdout_results: bool = False
    number_dirs: bool = False
    rate_limit: float | None = None
    headless: bool = False
    log_level: str | None = None
    out_format: str | None = None


@dataclass(slots=True)
class PreparedRun:
    """Everything validated up front, before any task is scheduled."""

    settings: Settings
    items: list[WorkItem]
    definitions: tuple[ScraperDefinition, ...]
    engine: CliScraperEngine
    writer: ResultWriter


class ScrapeCliController:
    """CLI controller for scrape runs."""

    def run(self, command: ScrapeRunCommand) -> list[str]:
        """Validate configuration, then scrape every queued URL."""

        prepared = self.prepare(command)
        settings = prepared.settings
        workspaces = TaskWorkspaceManager(
            settings.output.output_dir,
            numbered=settings.output.number_dirs,
        )
        timeout = settings.scheduler.session_timeout_seconds or None

        def _session(task: TaskState, workspace: Workspace) -> ScrapeSession:
            return ScrapeSession(
                task=task,
                workspace=workspace,
                workspaces=workspaces,
                engine=prepared.engine,
                definitions=prepared.definitions,
                writer=prepared.writer,
                headless=settings.engine.headless,
                timeout_seconds=timeout,
            )

        scheduler = RateLimitedScheduler(
            items=prepared.items,
            workspaces=workspaces,
            session_factory=_session,
            min_interval_seconds=settings.scheduler.min_interval_seconds,
            poll_interval_seconds=settings.scheduler.poll_interval_seconds,
            grace_seconds=settings.scheduler.grace_seconds,
        )
        return _summary_lines(scheduler.run())

    def prepare(self, command: ScrapeRunCommand) -> PreparedRun:
        """Resolve settings, queue, definitions and collaborators.

        Raises:
            ConfigurationError: On any missing, conflicting or invalid input.
        """

        settings = _apply_overrides(Settings.from_env(), command)
        settings.validate()
        configure_logging(settings.log_level)
        logger.info("logging to stderr")

        items = load_work_items(url=command.url, url_list=command.url_list)
        definitions = resolve_definitions(scraper=command.scraper, scraper_dir=command.scraper_dir)
        formatter = resolve_formatter(command.out_format) if command.out_format else None
        engine = CliScraperEngine(settings.engine.command)
        engine.check_available()

        logger.info("scrape-relay %s launched with...", __version__)
        if command.url:
            logger.info("- URL: %s", command.url)
        else:
            logger.info("- URLs from file: %s", command.url_list)
        if command.scraper:
            logger.info("- Scraper: %s", command.scraper)
        else:
            logger.info("- Scraperdir: %s (%d scrapers)", command.scraper_dir, len(definitions))
        logger.info("- Rate limit: %s per minute", settings.scheduler.rate_limit)
        logger.info("- Log level: %s", settings.log_level)

        writer = ResultWriter(
            stream=sys.stdout if settings.output.stdout_results else None,
            formatter=formatter,
            format_name=command.out_format,
        )
        return PreparedRun(
            settings=settings,
            items=items,
            definitions=definitions,
            engine=engine,
            writer=writer,
        )


def _apply_overrides(settings: Settings, command: ScrapeRunCommand) -> Settings:
    if command.output_dir is not None:
        settings.output.output_dir = command.output_dir
    if command.rate_limit is not None:
        settings.scheduler.rate_limit = command.rate_limit
    if command.log_level is not None:
        settings.log_level = command.log_level
    settings.output.stdout_results = command.stdout_results
    settings.output.number_dirs = command.number_dirs
    settings.output.out_format = command.out_format
    settings.engine.headless = command.headless
    return settings


def _summary_lines(summary: RunSummary) -> list[str]:
    return [
        "Run summary: "
        f"dispatched={summary.dispatched} completed={summary.completed} "
        f"failed={summary.failed} timed_out={summary.timed_out} "
        f"captures_failed={summary.captures_failed} key_collisions={summary.key_collisions}",
    ]
