from __future__ import annotations

from pathlib import Path

import allure
import pytest

from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.models import WorkItem
from scrape_relay.orchestrator.queue_loader import load_work_items, parse_url_list

pytestmark = [
    allure.epic("Scrape Orchestration"),
    allure.feature("Work Queue"),
]


def test_parse_url_list_drops_blank_lines_and_keeps_order() -> None:
    assert parse_url_list("http://a\n\nhttp://b\n") == ["http://a", "http://b"]


def test_parse_url_list_strips_whitespace_and_crlf() -> None:
    assert parse_url_list("  http://a  \r\n\t\r\nhttp://b") == ["http://a", "http://b"]


def test_load_from_file_keeps_duplicates(tmp_path: Path) -> None:
    url_list = tmp_path / "urls.txt"
    url_list.write_text("http://a\nhttp://b\nhttp://a\n", "utf-8")

    items = load_work_items(url_list=url_list)

    assert items == [
        WorkItem(index=0, identifier="http://a"),
        WorkItem(index=1, identifier="http://b"),
        WorkItem(index=2, identifier="http://a"),
    ]
    assert [item.ordinal for item in items] == [1, 2, 3]


def test_load_single_url() -> None:
    assert load_work_items(url="  http://example.com/x ") == [
        WorkItem(index=0, identifier="http://example.com/x"),
    ]


def test_empty_file_yields_empty_queue(tmp_path: Path) -> None:
    url_list = tmp_path / "urls.txt"
    url_list.write_text("\n\n", "utf-8")

    assert load_work_items(url_list=url_list) == []


@pytest.mark.parametrize(
    ("url", "use_list"),
    [(None, False), ("   ", False), ("http://a", True)],
    ids=["neither", "blank-url", "both"],
)
def test_requires_exactly_one_source(tmp_path: Path, url: str | None, use_list: bool) -> None:
    url_list = tmp_path / "urls.txt"
    url_list.write_text("http://b\n", "utf-8")

    with pytest.raises(ConfigurationError, match="URL xor a list of URLs"):
        load_work_items(url=url, url_list=url_list if use_list else None)


def test_missing_url_list_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Cannot read URL list"):
        load_work_items(url_list=tmp_path / "absent.txt")
