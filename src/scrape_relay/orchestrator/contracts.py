"""File contracts for scrape results."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "results.json"
IDENTIFIER_KEY = "url"


@dataclass(slots=True)
class ScrapeResult:
    """Raw and structured maps produced by the engine for one page."""

    raw: dict[str, Any]
    structured: dict[str, Any]


@dataclass(slots=True)
class OutputArtifact:
    """Files and stream lines produced for one completed task."""

    results_path: Path
    formatted_path: Path | None = None
    echoed: bool = False


def inject_identifier(result: ScrapeResult, identifier: str) -> int:
    """Add the task identifier under the reserved key of both maps.

    An existing key is never overwritten. Returns the number of maps in
    which the key already existed.
    """

    collisions = 0
    if IDENTIFIER_KEY in result.raw:
        logger.error(
            "expected unstructured result to not have key %r for url %s",
            IDENTIFIER_KEY,
            identifier,
        )
        collisions += 1
    else:
        result.raw[IDENTIFIER_KEY] = identifier

    if IDENTIFIER_KEY in result.structured:
        logger.error(
            "expected structured result to not have key %r for url %s",
            IDENTIFIER_KEY,
            identifier,
        )
        collisions += 1
    else:
        result.structured[IDENTIFIER_KEY] = {"value": identifier}
    return collisions


def dump_canonical(payload: dict[str, Any]) -> str:
    """Serialize to single-line JSON with deterministic key order."""

    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Persist JSON payload using deterministic formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True), "utf-8")

