"""
Custom exception hierarchy for epf-ingest.

Why a custom hierarchy:
- Callers can catch specific exceptions (e.g., FormatError vs
  OutOfRangeError) without relying on generic ValueError/RuntimeError.
- Failures from the underlying file handle are NOT wrapped: ``OSError``
  reaches the caller unchanged.

``EndOfData`` lives here too, but it is not an ``EpfIngestError``.
Reaching the footer or the end of the stream is the normal way a read
loop finishes, so a bare ``except EpfIngestError`` never swallows it.
"""

from __future__ import annotations

from typing import Any


class EpfIngestError(Exception):
    """Base exception for all epf-ingest errors."""


class FormatError(EpfIngestError):
    """Raised when a header line does not have the expected structure.

    Typically a line that should start with the comment marker does not,
    or a labelled header line has no ``:`` before its end-of-line.
    """


class OutOfRangeError(EpfIngestError):
    """Raised when a record holds more fields than the header declares."""

    def __init__(self, index: int, field_count: int) -> None:
        super().__init__(
            f"Field index {index} out of range: header declares "
            f"{field_count} field(s)"
        )
        self.index = index
        self.field_count = field_count


class NumericFormatError(EpfIngestError, ValueError):
    """Raised when numeric text cannot be parsed.

    Used both for typed field coercion (BIGINT / INTEGER) and for the
    record count in the footer.
    """

    def __init__(self, value: str, declared_type: str) -> None:
        super().__init__(f"Cannot parse {value!r} as {declared_type}")
        self.value = value
        self.declared_type = declared_type


class FooterUnreadableError(EpfIngestError):
    """Raised when the footer tail does not contain exactly one ``:``."""


class TruncatedRecordError(EpfIngestError):
    """Raised when the stream ends in the middle of a record.

    The partially decoded row is kept on ``.row`` so callers can inspect
    what was recovered.
    """

    def __init__(self, row: dict[str, Any]) -> None:
        super().__init__(
            f"Stream ended inside a record after {len(row)} field(s)"
        )
        self.row = row


class ConfigValidationError(EpfIngestError):
    """Raised when epfconfig.yaml fails validation.

    This can happen if:
    - The config file is empty.
    - The source file's schema no longer matches the schema recorded
      in the config (fields or declared types changed).
    """


class ExportError(EpfIngestError):
    """Raised when the exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """


class EndOfData(Exception):
    """Signals that a session has no more records to give.

    Attributes:
        row: Fields closed before the data ran out. Empty when the
            signal arrives at a record boundary.
        reason: ``"footer"`` when a comment line closed the data section,
            ``"eof"`` when the stream itself ran out.
        partial: True if a record had been started but not terminated.
    """

    def __init__(
        self,
        row: dict[str, Any] | None = None,
        reason: str = "eof",
        partial: bool = False,
    ) -> None:
        super().__init__(f"End of data ({reason})")
        self.row: dict[str, Any] = row if row is not None else {}
        self.reason = reason
        self.partial = partial
