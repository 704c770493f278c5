"""Runtime configuration for scrape runs."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

LOG_LEVELS = ("debug", "info", "warning", "error")
_LOG_LEVEL_ALIASES = {"warn": "warning"}


class ConfigurationError(ValueError):
    """Invalid or conflicting run configuration, detected before scheduling."""


@dataclass(slots=True)
class SchedulerSettings:
    """Dispatch pacing and shutdown settings."""

    rate_limit: float = 3.0
    poll_interval_seconds: float = 0.1
    grace_seconds: float = 3.0
    session_timeout_seconds: float = 0.0

    @property
    def min_interval_seconds(self) -> float:
        return 60.0 / self.rate_limit


@dataclass(slots=True)
class EngineSettings:
    """External scraper engine settings."""

    command: str = "scrape-engine"
    headless: bool = False


@dataclass(slots=True)
class OutputSettings:
    """Where and how results are written."""

    output_dir: Path = Path("output")
    stdout_results: bool = False
    number_dirs: bool = False
    out_format: str | None = None


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    log_level: str = "info"
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    engine: EngineSettings = field(default_factory=EngineSettings)
    output: OutputSettings = field(default_factory=OutputSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults suitable for local runs."""

        return cls(
            log_level=os.getenv("SCRAPE_RELAY_LOG_LEVEL", "info"),
            scheduler=SchedulerSettings(
                rate_limit=_env_float("SCRAPE_RELAY_RATE_LIMIT", 3.0),
                poll_interval_seconds=_env_float("SCRAPE_RELAY_POLL_INTERVAL_SECONDS", 0.1),
                grace_seconds=_env_float("SCRAPE_RELAY_GRACE_SECONDS", 3.0),
                session_timeout_seconds=_env_float("SCRAPE_RELAY_SESSION_TIMEOUT_SECONDS", 0.0),
            ),
            engine=EngineSettings(
                command=os.getenv("SCRAPE_RELAY_ENGINE_COMMAND", "scrape-engine"),
            ),
            output=OutputSettings(
                output_dir=Path(os.getenv("SCRAPE_RELAY_OUTPUT_DIR", "output")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any setting is out of range."""

        if normalize_log_level(self.log_level) not in LOG_LEVELS:
            raise ConfigurationError(
                f"Log level must be one of: {', '.join(LOG_LEVELS)} (got {self.log_level!r}).",
            )
        if self.scheduler.rate_limit <= 0:
            raise ConfigurationError("Rate limit must be a positive number of scrapes per minute.")
        if self.scheduler.poll_interval_seconds <= 0:
            raise ConfigurationError("SCRAPE_RELAY_POLL_INTERVAL_SECONDS must be > 0.")
        if self.scheduler.grace_seconds < 0:
            raise ConfigurationError("SCRAPE_RELAY_GRACE_SECONDS must be >= 0.")
        if self.scheduler.session_timeout_seconds < 0:
            raise ConfigurationError("SCRAPE_RELAY_SESSION_TIMEOUT_SECONDS must be >= 0.")
        if not self.engine.command.strip():
            raise ConfigurationError("SCRAPE_RELAY_ENGINE_COMMAND must not be empty.")


def normalize_log_level(value: str) -> str:
    normalized = value.strip().lower()
    return _LOG_LEVEL_ALIASES.get(normalized, normalized)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ConfigurationError(f"Invalid numeric value for {name}: {raw!r}") from error
