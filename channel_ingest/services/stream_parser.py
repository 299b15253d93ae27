"""
stream_parser.py — Split captured yt-dlp stdout into decoded records.

yt-dlp with --dump-json prints one JSON object per line, but informational
lines, partial writes and blank lines can be interleaved. Lines that don't
decode to a JSON object are skipped and logged at DEBUG; they never abort
the remaining lines and never reach the caller as an error.

Only newline characters separate records. JSON written without ASCII escaping
may carry a raw U+0085 or U+2028 inside a string, which str.splitlines() cuts.
"""

import json
import logging
from typing import Any, Iterator

logger = logging.getLogger(__name__)


def iter_records(output: str) -> Iterator[dict[str, Any]]:
    """Yield each decodable JSON-object line of *output*, in emission order."""
    for lineno, line in enumerate(output.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except ValueError as exc:
            logger.debug("Skipping undecodable line %d: %s", lineno, exc)
            continue
        if not isinstance(record, dict):
            logger.debug("Skipping line %d: not a JSON object", lineno)
            continue
        yield record

