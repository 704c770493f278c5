"""Loading of scraper definitions handed to the engine.

Only the envelope is checked here (a JSON object with a ``url`` pattern and a
non-empty ``elements`` map); element semantics are the engine's business.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from scrape_relay.config import ConfigurationError

logger = logging.getLogger(__name__)


class InvalidDefinitionError(ConfigurationError):
    """Scraper definition failed validation; ``problems`` lists every reason."""

    def __init__(self, path: Path, problems: list[str]) -> None:
        self.path = path
        self.problems = problems
        details = "".join(f"\n\t- {problem}" for problem in problems)
        super().__init__(
            f"the scraper provided ({path}) was not valid for the following reason(s):{details}",
        )


@dataclass(slots=True, frozen=True)
class ScraperDefinition:
    """One validated scraper definition."""

    path: Path
    payload: dict[str, Any]

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def url_pattern(self) -> str:
        return str(self.payload["url"])


def validate_definition(payload: object) -> list[str]:
    if not isinstance(payload, dict):
        return ["definition must be a JSON object"]

    problems: list[str] = []
    url = payload.get("url")
    if not isinstance(url, str) or not url:
        problems.append("definition must have a 'url' regex string")
    else:
        try:
            re.compile(url)
        except re.error as error:
            problems.append(f"'url' is not a valid regular expression: {error}")

    elements = payload.get("elements")
    if not isinstance(elements, dict) or not elements:
        problems.append("definition must have a non-empty 'elements' object")
    else:
        for name, element in elements.items():
            if not isinstance(element, dict):
                problems.append(f"element {name!r} must be an object")
    return problems


def load_definition(path: Path) -> ScraperDefinition:
    try:
        payload = json.loads(path.read_text("utf-8"))
    except OSError as error:
        raise InvalidDefinitionError(path, [f"cannot read file: {error}"]) from error
    except json.JSONDecodeError as error:
        raise InvalidDefinitionError(path, [f"invalid JSON: {error}"]) from error

    problems = validate_definition(payload)
    if problems:
        raise InvalidDefinitionError(path, problems)
    return ScraperDefinition(path=path.resolve(), payload=payload)


def load_definition_dir(directory: Path) -> list[ScraperDefinition]:
    """Load every valid ``*.json`` definition; invalid files are skipped."""

    if not directory.is_dir():
        raise ConfigurationError(f"Scraper directory {str(directory)!r} does not exist.")

    definitions: list[ScraperDefinition] = []
    for path in sorted(directory.glob("*.json")):
        try:
            definitions.append(load_definition(path))
        except InvalidDefinitionError as error:
            logger.warning("skipping scraper %s: %s", path.name, "; ".join(error.problems))
    if not definitions:
        raise ConfigurationError(
            "the scraper directory provided did not contain any valid scrapers",
        )
    return definitions


def resolve_definitions(
    scraper: Path | None = None,
    scraper_dir: Path | None = None,
) -> tuple[ScraperDefinition, ...]:
    """Resolve exactly one definition source into the definitions for this run."""

    if scraper is not None and scraper_dir is not None:
        raise ConfigurationError("Please use either --scraper or --scraper-dir, not both.")
    if scraper is None and scraper_dir is None:
        raise ConfigurationError("You must provide a scraper definition.")
    if scraper is not None:
        return (load_definition(scraper),)
    return tuple(load_definition_dir(Path(str(scraper_dir))))
