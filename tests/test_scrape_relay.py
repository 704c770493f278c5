import allure
from click.testing import CliRunner

from scrape_relay import __version__
from scrape_relay.main import scrape_relay

pytestmark = [
    allure.epic("Scrape Orchestration"),
    allure.feature("CLI"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(scrape_relay, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_help_lists_short_flags():
    runner = CliRunner()
    result = runner.invoke(scrape_relay, ["run", "--help"])
    assert result.exit_code == 0
    for flag in ("--url-list", "--scraper-dir", "--rate-limit", "--out-format"):
        assert flag in result.output
