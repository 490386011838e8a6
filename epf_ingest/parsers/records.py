"""
Record tokenizer for the data section of export files.

Each call to ``RecordTokenizer.read()`` consumes one record:

    <value>^A<value>^A...^B[\n]

Characters pile up in a buffer until a field separator (close the field,
move to the next column) or a record terminator (close the field, return
the row). Closed fields are coerced with the declared type of their
column.

A ``#`` as the first character of a record is the footer: the tokenizer
puts it back and signals ``EndOfData`` without reading further. Running
out of stream also signals ``EndOfData``; if that happens inside a
record, the fields closed so far travel on the signal.
"""

from __future__ import annotations

from typing import Any

from epf_ingest.constants import COMMENT_CHAR, FIELD_SEPARATOR
from epf_ingest.exceptions import EndOfData, OutOfRangeError
from epf_ingest.metadata import Metadata
from epf_ingest.source import CharSource
from epf_ingest.transforms.coerce import coerce

Row = dict[str, Any]


class RecordTokenizer:
    """Turns the data section of a source into rows, one per ``read()``."""

    def __init__(self, source: CharSource, metadata: Metadata) -> None:
        self._source = source
        self._fields = metadata.fields
        self._types = metadata.types

    def read(self) -> Row:
        """Read and decode the next record.

        Raises:
            EndOfData: At the footer or at end of stream.
            OutOfRangeError: If the record has more fields than declared.
            NumericFormatError: If a BIGINT / INTEGER field is malformed.
        """
        row: Row = {}
        ch = self._source.read_char()
        if ch is None:
            raise EndOfData(row, reason="eof")
        if ch == COMMENT_CHAR:
            self._source.unread(ch)
            raise EndOfData(row, reason="footer")

        index = 0
        buf: list[str] = []
        while True:
            if ch == FIELD_SEPARATOR:
                self._close_field(row, index, buf)
                index += 1
                buf = []
            elif self._source.end_of_line(ch):
                self._close_field(row, index, buf)
                return row
            else:
                buf.append(ch)

            ch = self._source.read_char()
            if ch is None:
                raise EndOfData(row, reason="eof", partial=True)

    def _close_field(self, row: Row, index: int, buf: list[str]) -> None:
        if index >= len(self._fields):
            raise OutOfRangeError(index, len(self._fields))
        declared = self._types[index] if index < len(self._types) else ""
        row[self._fields[index]] = coerce("".join(buf), declared)
