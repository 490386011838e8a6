"""
Parser session for export files.

``EpfParser`` ties a ``CharSource`` to the header, footer and record
parsers:

- ``metadata()`` runs the header parser then the footer parser, once,
  on first use. Later calls return the same ``Metadata`` object. The
  header result (or its error) is kept even when the footer fails.
- ``read()`` returns the next row, loading metadata first if needed,
  and raises ``EndOfData`` when the data section is over.
- Iterating a session yields complete rows and applies the
  ``on_partial_record`` policy to a record cut short by end of stream.

A session is not thread-safe. Independent sessions over independent
handles share nothing and may run in parallel.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Literal

from epf_ingest.exceptions import EndOfData, EpfIngestError, TruncatedRecordError
from epf_ingest.metadata import Metadata
from epf_ingest.parsers.footer import read_footer
from epf_ingest.parsers.header import HeaderInfo, HeaderParser
from epf_ingest.parsers.records import RecordTokenizer, Row
from epf_ingest.source import CharSource

logger = logging.getLogger(__name__)

PartialRecordPolicy = Literal["error", "warn", "drop"]

_PARTIAL_POLICIES = ("error", "warn", "drop")


class EpfParser:
    """Streaming reader for one export file.

    Usage:
        with EpfParser.from_path("artist") as parser:
            meta = parser.metadata()
            for row in parser:
                ...

    Args:
        source: The character source to read from. The session owns it
            and closes it in ``close()``.
        on_partial_record: What iteration does with a record cut short
            by end of stream: ``"error"`` raises ``TruncatedRecordError``,
            ``"warn"`` logs and yields it, ``"drop"`` logs and skips it.
            ``read()`` itself always surfaces the partial row on the
            ``EndOfData`` signal.
    """

    def __init__(
        self,
        source: CharSource,
        on_partial_record: PartialRecordPolicy = "error",
    ) -> None:
        if on_partial_record not in _PARTIAL_POLICIES:
            raise ValueError(
                f"Unsupported on_partial_record: '{on_partial_record}'. "
                f"Supported: {list(_PARTIAL_POLICIES)}"
            )
        self._source = source
        self._metadata: Metadata | None = None
        self._header: HeaderInfo | None = None
        self._header_error: EpfIngestError | None = None
        self._tokenizer: RecordTokenizer | None = None
        self.on_partial_record = on_partial_record
        self.rows_read = 0

    @classmethod
    def from_path(cls, path: str | Path, **kwargs) -> EpfParser:
        """Open *path* and start a session over it."""
        return cls(CharSource.from_path(path), **kwargs)

    @property
    def name(self) -> str:
        return self._source.name

    # -- Metadata -----------------------------------------------------------

    def metadata(self) -> Metadata:
        """Return the file's metadata, parsing header and footer on first call.

        The header is read once. Because it is consumed from the forward
        stream, a header failure is kept and raised again on later calls.
        A footer failure is not cached; the footer is read with random
        access, so a retry reads it again.

        Raises:
            FormatError: If the header is malformed.
            FooterUnreadableError: If the footer tail has no single ``:``.
            NumericFormatError: If the footer count is not an integer.
            OSError: Propagated unchanged from the source.
        """
        if self._metadata is None:
            header = self._parse_header()
            total_items = read_footer(self._source)
            metadata = Metadata(
                fields=tuple(header.fields),
                primary_key=tuple(header.primary_key),
                types=tuple(header.types),
                export_mode=header.export_mode,
                total_items=total_items,
            )
            self._tokenizer = RecordTokenizer(self._source, metadata)
            self._metadata = metadata
            logger.info(
                "Loaded metadata from %s: %d fields, export_mode=%s, total_items=%d",
                self.name, len(metadata.fields), metadata.export_mode.value,
                metadata.total_items,
            )
        return self._metadata

    def _parse_header(self) -> HeaderInfo:
        if self._header_error is not None:
            raise self._header_error
        if self._header is None:
            try:
                self._header = HeaderParser(self._source).parse()
            except EpfIngestError as exc:
                self._header_error = exc
                raise
        return self._header

    def _records(self) -> RecordTokenizer:
        """Tokenizer for the data section, loading metadata first if needed."""
        if self._tokenizer is None:
            self.metadata()
        return self._tokenizer

    # -- Rows ---------------------------------------------------------------

    def read(self) -> Row:
        """Return the next row.

        Raises:
            EndOfData: When the footer or the end of stream is reached.
                ``.row`` holds any fields decoded from an unterminated
                record.
            OutOfRangeError: If the record has more fields than declared.
            NumericFormatError: If a numeric field is malformed.
            OSError: Propagated unchanged from the source.
        """
        row = self._records().read()
        self.rows_read += 1
        return row

    def __iter__(self) -> Iterator[Row]:
        while True:
            try:
                row = self.read()
            except EndOfData as end:
                if end.partial and self._accept_partial(end):
                    self.rows_read += 1
                    yield end.row
                logger.debug(
                    "%s: end of data (%s) after %d row(s)",
                    self.name, end.reason, self.rows_read,
                )
                return
            yield row

    def _accept_partial(self, end: EndOfData) -> bool:
        """Apply the partial-record policy. True if the row should be yielded."""
        if self.on_partial_record == "error":
            raise TruncatedRecordError(end.row)
        logger.warning(
            "%s: stream ended inside record %d (%d field(s) decoded), %s",
            self.name, self.rows_read + 1, len(end.row),
            "keeping it" if self.on_partial_record == "warn" else "dropping it",
        )
        return self.on_partial_record == "warn"

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._source.close()

    def __enter__(self) -> EpfParser:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"EpfParser(name={self.name!r}, rows_read={self.rows_read})"
