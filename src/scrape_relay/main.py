"""CLI entrypoint for scrape-relay."""

from pathlib import Path

import rich_click as click

from scrape_relay import __version__
from scrape_relay.config import ConfigurationError
from scrape_relay.orchestrator.controllers import ScrapeCliController, ScrapeRunCommand

click.rich_click.USE_MARKDOWN = True
SCRAPE_CONTROLLER = ScrapeCliController()


@click.group()
@click.version_option(version=__version__, prog_name="scrape-relay")
def scrape_relay() -> None:
    """Rate-limited scraping of URL lists through an external engine."""


@scrape_relay.command("run")
@click.option("-u", "--url", default=None, help="URL to scrape.")
@click.option(
    "-r",
    "--url-list",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to file with list of URLs to scrape (one per line).",
)
@click.option(
    "-s",
    "--scraper",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to scraper definition (JSON).",
)
@click.option(
    "-d",
    "--scraper-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to directory containing scraper definitions (JSON).",
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Where to write results (created if missing). Default: SCRAPE_RELAY_OUTPUT_DIR or output.",
)
@click.option(
    "-t",
    "--stdout-results",
    is_flag=True,
    help="Also write each results.json to stdout, one per line.",
)
@click.option(
    "-n",
    "--number-dirs",
    is_flag=True,
    help="Use a number instead of the URL to name output subdirectories.",
)
@click.option(
    "-i",
    "--rate-limit",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Maximum number of scrapes per minute. Default: SCRAPE_RELAY_RATE_LIMIT or 3.",
)
@click.option("-h", "--headless", is_flag=True, help="Render all pages in a headless browser.")
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "warning", "error"], case_sensitive=False),
    default=None,
    help="Amount of information to log. Default: SCRAPE_RELAY_LOG_LEVEL or info.",
)
@click.option(
    "-f",
    "--out-format",
    default=None,
    help="Extra format to convert results into (currently only bibjson).",
)
def run(  # noqa: PLR0913
    url: str | None,
    url_list: Path | None,
    scraper: Path | None,
    scraper_dir: Path | None,
    output_dir: Path | None,
    stdout_results: bool,
    number_dirs: bool,
    rate_limit: float | None,
    headless: bool,
    log_level: str | None,
    out_format: str | None,
) -> None:
    """Scrape each URL in turn, no faster than the rate limit."""

    try:
        lines = SCRAPE_CONTROLLER.run(
            ScrapeRunCommand(
                url=url,
                url_list=url_list,
                scraper=scraper,
                scraper_dir=scraper_dir,
                output_dir=output_dir,
                stdout_results=stdout_results,
                number_dirs=number_dirs,
                rate_limit=rate_limit,
                headless=headless,
                log_level=log_level,
                out_format=out_format,
            ),
        )
    except ConfigurationError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    # stdout carries results only.
    for line in lines:
        click.echo(line, err=True)


if __name__ == "__main__":  # pragma: no cover
    scrape_relay()
