from __future__ import annotations

from dataclasses import dataclass
import logging

from ccdb.citnames.output import deduplicate, filter_entries, read_database, write_database
from ccdb.citnames.semantic import recognize_events
from ccdb.config import CitnamesConfig
from ccdb.exceptions import CitnamesError
from ccdb.intercept.events import read_events
from ccdb.result import Err, Ok, Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CitnamesCommand:
    config: CitnamesConfig

    def execute(self) -> Result[int]:
        try:
            count = self._translate()
        except CitnamesError as exc:
            return Err(exc)
        logger.info("%d entries written to %s", count, self.config.output_file)
        return Ok(0)

    def _translate(self) -> int:
        config = self.config
        if not config.input_file.is_file():
            raise CitnamesError(f"input file not found: {config.input_file}")
        try:
            entries = recognize_events(read_events(config.input_file), config.compilation)
        except (OSError, UnicodeError) as exc:
            raise CitnamesError(f"cannot read events from {config.input_file}: {exc}") from exc
        content = config.output.content
        entries = filter_entries(entries, content, check_sources=config.run_checks)
        if config.append and config.output_file.is_file():
            entries = read_database(config.output_file) + entries
        entries = deduplicate(entries, content.duplicate_filter_fields)
        write_database(config.output_file, entries, config.output.format)
        return len(entries)
