"""Local deterministic engine for CLI engine integration tests.

Reads a scrape request from stdin and answers with JSON-line events. Each
element of the first scraper whose ``url`` pattern matches is "captured" with
its ``value`` field (or a generated value); elements marked ``"fail": true``
are reported as failed captures.
"""

from __future__ import annotations

import json
import re
import sys
from typing import Any, TextIO


def _emit(out: TextIO, event: str, **fields: Any) -> None:
    out.write(json.dumps({"event": event, **fields}) + "\n")
    out.flush()


def _pick_scraper(scrapers: list[dict[str, Any]], url: str) -> dict[str, Any] | None:
    for scraper in scrapers:
        if re.search(str(scraper.get("url", "")), url):
            return scraper
    return None


def run(request: dict[str, Any], out: TextIO) -> None:
    url = str(request.get("url", ""))
    renderer = "headless" if request.get("headless") else "basic"
    _emit(out, "scraper.renderer.rendering", args=[renderer, url])

    raw: dict[str, Any] = {}
    structured: dict[str, Any] = {}
    scraper = _pick_scraper(list(request.get("scrapers", [])), url)
    if scraper is None:
        _emit(out, "scraper.scraperError", args=[f"no scraper matches {url}"])
    else:
        for name, element in scraper.get("elements", {}).items():
            if element.get("fail"):
                raw[name] = {"error": "no match"}
                _emit(out, "scraper.elementCaptureFailed", args=[name])
                continue
            value = element.get("value", f"{name} of {url}")
            raw[name] = value
            structured[name] = {"value": value}
            _emit(out, "scraper.elementCaptured", args=[name, value])

    _emit(out, "scraper.renderer.finished", args=[renderer])
    _emit(out, "result", raw=raw, structured=structured)


def main() -> int:
    """Run one deterministic scrape from a stdin request."""

    request = json.loads(sys.stdin.read() or "{}")
    run(request, sys.stdout)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
