"""Durable output for completed scrape tasks."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from scrape_relay.orchestrator.contracts import (
    RESULTS_FILENAME,
    OutputArtifact,
    ScrapeResult,
    dump_canonical,
)
from scrape_relay.orchestrator.formats import Formatter

logger = logging.getLogger(__name__)


class ResultWriter:
    """Writes results.json, echoes to a shared stream and runs a converter."""

    def __init__(
        self,
        *,
        stream: TextIO | None = None,
        formatter: Formatter | None = None,
        format_name: str | None = None,
    ) -> None:
        self.stream = stream
        self.formatter = formatter
        self.format_name = format_name

    def write(self, workdir: Path, result: ScrapeResult) -> OutputArtifact:
        output = dump_canonical(result.structured)
        logger.debug("unstructured result: %s", dump_canonical(result.raw))
        logger.debug("structured result: %s", output)

        results_path = workdir / RESULTS_FILENAME
        logger.debug("writing results to file: %s", results_path)
        # Encoded before the file is opened; an unencodable result leaves no file.
        results_path.write_bytes(output.encode("utf-8"))
        artifact = OutputArtifact(results_path=results_path)

        if self.stream is not None:
            logger.debug("also writing results to stdout")
            # One result per line for line-oriented consumers.
            self.stream.write(output + "\n")
            self.stream.flush()
            artifact.echoed = True

        if self.formatter is not None:
            logger.debug("converting results to %s", self.format_name)
            artifact.formatted_path = self.formatter(result.structured, workdir)
        return artifact
