from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from scrape_relay.main import scrape_relay

pytestmark = [
    allure.epic("Scrape Orchestration"),
    allure.feature("CLI"),
]


def _result_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def _invoke(*args: str):
    return CliRunner().invoke(scrape_relay, ["run", "--rate-limit", "6000", *args])


def test_run_single_url_writes_results(echo_engine_env: Path, definition_path: Path) -> None:
    result = _invoke("--url", "http://example.com/a", "--scraper", str(definition_path), "-t")

    assert result.exit_code == 0, result.output
    results_path = echo_engine_env / "http_example.com_a" / "results.json"
    payload = json.loads(results_path.read_text("utf-8"))
    assert payload["url"] == {"value": "http://example.com/a"}
    assert payload["author"] == {"value": ["Ada", "Grace"]}
    assert _result_lines(result.output) == [payload]
    assert "completed=1" in result.output


def test_run_url_list_numbered_with_bibjson(
    echo_engine_env: Path,
    definition_path: Path,
    tmp_path: Path,
) -> None:
    url_list = tmp_path / "urls.txt"
    url_list.write_text("http://example.com/a\n\nhttp://example.com/b\n", "utf-8")

    result = _invoke(
        "--url-list",
        str(url_list),
        "--scraper-dir",
        str(definition_path.parent),
        "--number-dirs",
        "--out-format",
        "bibjson",
    )

    assert result.exit_code == 0, result.output
    assert sorted(path.name for path in echo_engine_env.iterdir()) == ["1", "2"]
    record = json.loads((echo_engine_env / "2" / "bib.json").read_text("utf-8"))
    assert record["title"] == "Example title"
    assert {"url": "http://example.com/b"} in record["link"]
    assert _result_lines(result.output) == []


def test_both_scraper_sources_rejected_before_output(
    echo_engine_env: Path,
    definition_path: Path,
) -> None:
    result = _invoke(
        "--url",
        "http://example.com/a",
        "--scraper",
        str(definition_path),
        "--scraper-dir",
        str(definition_path.parent),
    )

    assert result.exit_code == 1
    assert "not both" in result.output
    assert not echo_engine_env.exists()


@pytest.mark.parametrize("extra", [[], ["--url-list", "urls.txt"]])
def test_url_sources_must_be_exclusive(
    echo_engine_env: Path,
    definition_path: Path,
    extra: list[str],
) -> None:
    url_args = [] if extra == [] else ["--url", "http://example.com/a", *extra]

    result = _invoke(*url_args, "--scraper", str(definition_path))

    assert result.exit_code == 1
    assert "URL xor a list of URLs" in result.output


def test_unknown_out_format_rejected(echo_engine_env: Path, definition_path: Path) -> None:
    result = _invoke(
        "--url",
        "http://example.com/a",
        "--scraper",
        str(definition_path),
        "--out-format",
        "ris",
    )

    assert result.exit_code == 1
    assert "Outformat 'ris' is not valid" in result.output
    assert not echo_engine_env.exists()


def test_missing_engine_rejected(echo_engine_env: Path, definition_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SCRAPE_RELAY_ENGINE_COMMAND", "definitely-not-a-scrape-engine-binary")

    result = _invoke("--url", "http://example.com/a", "--scraper", str(definition_path))

    assert result.exit_code == 1
    assert "not found" in result.output
