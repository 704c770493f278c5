"""Work queue loading from a single URL or a newline-delimited URL list."""

from __future__ import annotations

from pathlib import Path

from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.models import WorkItem


def load_work_items(url: str | None = None, url_list: Path | None = None) -> list[WorkItem]:
    """Build the ordered work queue from exactly one identifier source."""

    url = url.strip() if url else None
    if bool(url) == bool(url_list):
        raise ConfigurationError("You must provide a URL xor a list of URLs to scrape.")
    identifiers = [url] if url else read_url_list(Path(str(url_list)))
    return [WorkItem(index=index, identifier=value) for index, value in enumerate(identifiers)]


def read_url_list(path: Path) -> list[str]:
    """Read non-empty, stripped lines in file order."""

    try:
        text = path.read_text("utf-8")
    except OSError as error:
        raise ConfigurationError(f"Cannot read URL list {str(path)!r}: {error}") from error
    return parse_url_list(text)


def parse_url_list(text: str) -> list[str]:
    stripped = (line.strip() for line in text.split("\n"))
    return [line for line in stripped if line]
