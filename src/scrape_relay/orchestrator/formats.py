"""Output-format converters applied to structured results after they are written."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.contracts import write_json

Formatter = Callable[[dict[str, Any], Path], Path]


def structured_values(structured: dict[str, Any], key: str) -> list[Any]:
    """Flatten ``structured[key]["value"]`` into a list (empty when absent)."""

    entry = structured.get(key)
    if not isinstance(entry, dict):
        return []
    value = entry.get("value")
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item not in (None, "")]
    return [] if value == "" else [value]


def _first(structured: dict[str, Any], key: str) -> Any:
    values = structured_values(structured, key)
    return values[0] if values else None


def to_bibjson(structured: dict[str, Any]) -> dict[str, Any]:
    """Map a structured scrape result onto a BibJSON record."""

    record: dict[str, Any] = {
        "title": _first(structured, "title"),
        "author": [{"name": name} for name in structured_values(structured, "author")],
        "publisher": _first(structured, "publisher"),
        "abstract": _first(structured, "abstract"),
        "date": {"published": _first(structured, "date")},
    }

    links = [{"url": url} for url in structured_values(structured, "url")]
    for key in ("fulltext_html", "fulltext_pdf", "fulltext_xml", "supplementary_file"):
        links.extend({"url": url, "type": key} for url in structured_values(structured, key))
    record["link"] = links

    identifiers = [{"type": "doi", "id": doi} for doi in structured_values(structured, "doi")]
    record["identifier"] = identifiers

    journal = {
        "name": _first(structured, "journal"),
        "volume": _first(structured, "volume"),
        "issue": _first(structured, "issue"),
        "firstpage": _first(structured, "firstpage"),
        "lastpage": _first(structured, "lastpage"),
    }
    record["journal"] = {key: value for key, value in journal.items() if value is not None}
    return _drop_empty(record)


def write_bibjson(structured: dict[str, Any], workdir: Path) -> Path:
    path = workdir / "bib.json"
    write_json(path, to_bibjson(structured))
    return path


FORMATTERS: dict[str, Formatter] = {
    "bibjson": write_bibjson,
}


def resolve_formatter(name: str) -> Formatter:
    """Return the converter registered under ``name`` (case-insensitive)."""

    formatter = FORMATTERS.get(name.strip().lower())
    if formatter is None:
        raise ConfigurationError(
            f"Outformat {name!r} is not valid. Supported: {', '.join(sorted(FORMATTERS))}.",
        )
    return formatter


def _drop_empty(record: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in record.items():
        if isinstance(value, dict):
            value = {k: v for k, v in value.items() if v is not None}
        if value in (None, [], {}):
            continue
        cleaned[key] = value
    return cleaned
