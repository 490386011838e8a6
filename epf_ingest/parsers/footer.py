"""
Footer parser for export files.

The last line of a file records how many data rows were written:

    #recordsWritten:9981278^B

Only the count after the ``:`` can change length, so a fixed 28-byte
window from the end of the file always holds the whole line and no
backwards line scan is needed. The window is read with random access;
the forward read position of the source is left untouched.
"""

from __future__ import annotations

import logging
import re

from epf_ingest.constants import FOOTER_TAIL_SIZE, LABEL_SEPARATOR, NEWLINE, RECORD_TERMINATOR
from epf_ingest.exceptions import FooterUnreadableError, NumericFormatError
from epf_ingest.source import CharSource

logger = logging.getLogger(__name__)

_COUNT_PATTERN = re.compile(r"[0-9]+\Z")


def parse_footer_tail(tail: str) -> int:
    """Extract the record count from the decoded tail of a file.

    Only the last line of the tail is looked at. In a file with no data
    rows the window also reaches into the export mode header line, whose
    ``:`` must not count.

    Raises:
        FooterUnreadableError: If the last line does not hold exactly one ``:``.
        NumericFormatError: If the text after ``:`` is not a
            non-negative decimal integer.
    """
    body = tail.rstrip(RECORD_TERMINATOR + NEWLINE)
    line = body[body.rfind(RECORD_TERMINATOR) + 1:].lstrip(NEWLINE)

    parts = line.split(LABEL_SEPARATOR)
    if len(parts) != 2:
        raise FooterUnreadableError(
            f"Cannot read footer info: expected one '{LABEL_SEPARATOR}' in "
            f"footer line, found {len(parts) - 1} ({line!r})"
        )

    count_text = parts[1].strip(RECORD_TERMINATOR + NEWLINE)
    if not _COUNT_PATTERN.match(count_text):
        raise NumericFormatError(count_text, "record count")
    return int(count_text)


def read_footer(source: CharSource, tail_size: int = FOOTER_TAIL_SIZE) -> int:
    """Read the declared record count from the end of *source*.

    Sources shorter than *tail_size* are read whole.
    """
    size = source.size()
    offset = max(size - tail_size, 0)
    raw = source.read_at(offset, size - offset)
    # The window may start inside a multi-byte character
    tail = raw.decode("utf-8", errors="replace")

    total = parse_footer_tail(tail)
    logger.debug("%s: footer declares %d record(s)", source.name, total)
    return total
