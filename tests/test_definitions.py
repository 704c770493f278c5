from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.definitions import (
    InvalidDefinitionError,
    load_definition,
    resolve_definitions,
    validate_definition,
)
from tests.conftest import DEFINITION

pytestmark = [
    allure.epic("Scrape Orchestration"),
    allure.feature("Scraper Definitions"),
]


def _write(path: Path, payload: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), "utf-8")
    return path


def test_single_definition_is_loaded(definition_path: Path) -> None:
    definitions = resolve_definitions(scraper=definition_path)

    assert len(definitions) == 1
    assert definitions[0].name == "example"
    assert definitions[0].url_pattern == "example\\.com"
    assert definitions[0].path.is_absolute()


def test_validate_definition_lists_every_problem() -> None:
    problems = validate_definition({"url": "(unclosed", "elements": {"a": "not-an-object"}})

    assert len(problems) == 2
    assert "regular expression" in problems[0]
    assert "'a'" in problems[1]


def test_validate_definition_rejects_non_object() -> None:
    assert validate_definition(["url"]) == ["definition must be a JSON object"]


def test_invalid_single_definition_is_fatal(tmp_path: Path) -> None:
    path = _write(tmp_path / "bad.json", {"url": "x"})

    with pytest.raises(InvalidDefinitionError) as info:
        resolve_definitions(scraper=path)

    assert info.value.problems == ["definition must have a non-empty 'elements' object"]
    assert "was not valid" in str(info.value)


def test_unparseable_definition_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", "utf-8")

    with pytest.raises(InvalidDefinitionError, match="invalid JSON"):
        load_definition(path)


def test_directory_skips_invalid_and_keeps_valid(tmp_path: Path) -> None:
    directory = tmp_path / "scrapers"
    _write(directory / "a.json", DEFINITION)
    _write(directory / "b.json", {"elements": {}})
    (directory / "notes.txt").write_text("ignored", "utf-8")

    definitions = resolve_definitions(scraper_dir=directory)

    assert [definition.name for definition in definitions] == ["a"]


def test_directory_without_valid_definitions_is_fatal(tmp_path: Path) -> None:
    directory = tmp_path / "scrapers"
    _write(directory / "b.json", {"elements": {}})

    with pytest.raises(ConfigurationError, match="did not contain any valid scrapers"):
        resolve_definitions(scraper_dir=directory)


def test_missing_directory_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="does not exist"):
        resolve_definitions(scraper_dir=tmp_path / "absent")


def test_both_sources_rejected(definition_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not both"):
        resolve_definitions(scraper=definition_path, scraper_dir=definition_path.parent)


def test_no_source_rejected() -> None:
    with pytest.raises(ConfigurationError, match="must provide a scraper definition"):
        resolve_definitions()
