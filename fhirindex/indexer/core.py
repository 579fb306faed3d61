"""Core functionality for streaming NDJSON input.

Records are read one line at a time and never held in memory all at once.
What happens to a line that is not a JSON object is decided by the
``on_bad_line`` policy: "fail" (default) raises MalformedRecordError,
"skip" logs a warning and moves on.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from fhirindex.utils.logging import logger

from .exceptions import MalformedRecordError

ON_BAD_LINE_FAIL = "fail"
ON_BAD_LINE_SKIP = "skip"


class NdjsonReader:
    """Iterates JSON objects from a newline-delimited JSON file.

    Args:
        path: NDJSON file
        on_bad_line: "fail" or "skip"
    """

    def __init__(self, path: str | Path, on_bad_line: str = ON_BAD_LINE_FAIL):
        if on_bad_line not in (ON_BAD_LINE_FAIL, ON_BAD_LINE_SKIP):
            raise ValueError(f"on_bad_line must be 'fail' or 'skip', got {on_bad_line!r}")
        self.path = Path(path)
        self.on_bad_line = on_bad_line
        self.lines_read = 0
        self.skipped_lines = 0

    def _bad_line(self, message: str, line_number: int) -> None:
        error = MalformedRecordError(message, str(self.path), line_number)
        if self.on_bad_line == ON_BAD_LINE_FAIL:
            raise error
        self.skipped_lines += 1
        logger.warning(f"Skipping malformed line: {error}")

    def __iter__(self) -> Iterator[dict[str, Any]]:
        with open(self.path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                self.lines_read = line_number
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    self._bad_line(f"invalid JSON: {e.msg}", line_number)
                    continue
                if not isinstance(record, dict):
                    self._bad_line(
                        f"expected a JSON object, got {type(record).__name__}", line_number
                    )
                    continue
                yield record


def read_ndjson(path: str | Path, on_bad_line: str = ON_BAD_LINE_FAIL) -> Iterator[dict[str, Any]]:
    """Yield each JSON object of an NDJSON file."""
    yield from NdjsonReader(path, on_bad_line)
