"""
Header parser for export files.

The header is a block of comment lines at the top of the file:

    #export_date^Aartist_id^Aname^B
    #primaryKey:artist_id^B
    #dbTypes:BIGINT^AINTEGER^AVARCHAR(1000)^B
    #exportMode:FULL^B
    #<optional comment>^B

It is read with a finite-state machine whose states run in a fixed
order and never go back:

    FIELDS -> PRIMARY_KEY -> TYPES -> EXPORT_MODE -> TRAILING_COMMENT -> DONE

Each of the first four states consumes exactly one line. The labelled
lines (primary key, types, export mode) drop everything up to the first
``:``; the label text itself is not checked. TRAILING_COMMENT loops on
itself while lines start with ``#``; the first character of a non-comment
line is pushed back to the source so the record tokenizer sees it.

End of stream before TRAILING_COMMENT is not an error: parsing stops and
whatever complete values were read are kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from epf_ingest.constants import COMMENT_CHAR, FIELD_SEPARATOR, LABEL_SEPARATOR
from epf_ingest.exceptions import FormatError
from epf_ingest.metadata import ExportMode
from epf_ingest.source import CharSource

logger = logging.getLogger(__name__)


class HeaderState(Enum):
    """States of the header machine, in the order they are visited."""

    FIELDS = "fields"
    PRIMARY_KEY = "primary_key"
    TYPES = "types"
    EXPORT_MODE = "export_mode"
    TRAILING_COMMENT = "trailing_comment"
    DONE = "done"


_TRANSITIONS: dict[HeaderState, HeaderState] = {
    HeaderState.FIELDS: HeaderState.PRIMARY_KEY,
    HeaderState.PRIMARY_KEY: HeaderState.TYPES,
    HeaderState.TYPES: HeaderState.EXPORT_MODE,
    HeaderState.EXPORT_MODE: HeaderState.TRAILING_COMMENT,
    HeaderState.TRAILING_COMMENT: HeaderState.DONE,
}


def next_state(state: HeaderState) -> HeaderState:
    """Return the state that follows *state* (``KeyError`` for DONE)."""
    return _TRANSITIONS[state]


@dataclass
class HeaderInfo:
    """Values collected from the header block.

    ``complete`` is False when the stream ended before the export mode
    line was finished.
    """
    fields: list[str] = field(default_factory=list)
    primary_key: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    export_mode: ExportMode = ExportMode.INCREMENTAL
    complete: bool = False


class _EndOfStream(Exception):
    """Internal: the source ran dry while a header line was being read."""


class HeaderParser:
    """Reads the header block from a ``CharSource``.

    The parser consumes the header and any trailing comment lines, and
    nothing else: the source is left positioned on the first character
    of the first data record.
    """

    def __init__(self, source: CharSource) -> None:
        self._source = source
        self.info = HeaderInfo()
        self._handlers: dict[HeaderState, Callable[[], HeaderState]] = {
            HeaderState.FIELDS: self._on_fields,
            HeaderState.PRIMARY_KEY: self._on_primary_key,
            HeaderState.TYPES: self._on_types,
            HeaderState.EXPORT_MODE: self._on_export_mode,
            HeaderState.TRAILING_COMMENT: self._on_trailing_comment,
        }

    def parse(self) -> HeaderInfo:
        """Run the machine to completion and return the collected values.

        Raises:
            FormatError: If a header line does not start with ``#`` or a
                labelled line has no ``:``.
            OSError: Propagated unchanged from the source.
        """
        state = HeaderState.FIELDS
        while state is not HeaderState.DONE:
            try:
                state = self._handlers[state]()
            except _EndOfStream:
                if state is not HeaderState.TRAILING_COMMENT:
                    logger.warning(
                        "%s: stream ended in header state %s",
                        self._source.name, state.value,
                    )
                break

        if self.info.complete and len(self.info.fields) != len(self.info.types):
            logger.warning(
                "%s: header declares %d field(s) but %d type(s)",
                self._source.name, len(self.info.fields), len(self.info.types),
            )
        logger.debug(
            "Parsed header: %d fields, primary_key=%s, export_mode=%s",
            len(self.info.fields), self.info.primary_key, self.info.export_mode.value,
        )
        return self.info

    # -- State handlers -----------------------------------------------------

    def _on_fields(self) -> HeaderState:
        self._expect_comment(HeaderState.FIELDS)
        self._read_values(self.info.fields)
        return next_state(HeaderState.FIELDS)

    def _on_primary_key(self) -> HeaderState:
        self._expect_comment(HeaderState.PRIMARY_KEY)
        self._skip_label(HeaderState.PRIMARY_KEY)
        self._read_values(self.info.primary_key)
        # A bare label means no primary key
        if self.info.primary_key == [""]:
            self.info.primary_key = []
        return next_state(HeaderState.PRIMARY_KEY)

    def _on_types(self) -> HeaderState:
        self._expect_comment(HeaderState.TYPES)
        self._skip_label(HeaderState.TYPES)
        self._read_values(self.info.types)
        return next_state(HeaderState.TYPES)

    def _on_export_mode(self) -> HeaderState:
        self._expect_comment(HeaderState.EXPORT_MODE)
        self._skip_label(HeaderState.EXPORT_MODE)
        values: list[str] = []
        self._read_values(values)
        # The value is a single token; separators are kept as text
        self.info.export_mode = ExportMode.from_header(FIELD_SEPARATOR.join(values))
        self.info.complete = True
        return next_state(HeaderState.EXPORT_MODE)

    def _on_trailing_comment(self) -> HeaderState:
        ch = self._source.read_char()
        if ch is None:
            return next_state(HeaderState.TRAILING_COMMENT)
        if ch != COMMENT_CHAR:
            self._source.unread(ch)
            return next_state(HeaderState.TRAILING_COMMENT)
        while not self._source.end_of_line(self._next()):
            pass
        return HeaderState.TRAILING_COMMENT

    # -- Line primitives ----------------------------------------------------

    def _next(self) -> str:
        ch = self._source.read_char()
        if ch is None:
            raise _EndOfStream
        return ch

    def _expect_comment(self, state: HeaderState) -> None:
        ch = self._next()
        if ch != COMMENT_CHAR:
            raise FormatError(
                f"{self._source.name}: expected '{COMMENT_CHAR}' at start of "
                f"{state.value} header line, found {ch!r}"
            )

    def _skip_label(self, state: HeaderState) -> None:
        while True:
            ch = self._next()
            if ch == LABEL_SEPARATOR:
                return
            if self._source.end_of_line(ch):
                raise FormatError(
                    f"{self._source.name}: {state.value} header line has no "
                    f"'{LABEL_SEPARATOR}' before its end"
                )

    def _read_values(self, into: list[str]) -> None:
        """Append the separator-delimited values of the current line to *into*."""
        buf: list[str] = []
        while True:
            ch = self._next()
            if ch == FIELD_SEPARATOR:
                into.append("".join(buf))
                buf = []
            elif self._source.end_of_line(ch):
                into.append("".join(buf))
                return
            else:
                buf.append(ch)
