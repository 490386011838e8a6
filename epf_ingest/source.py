"""
Character source for the export parser.

Wraps a seekable binary handle and offers what the state machines need:

- ``read_char()``: next decoded character, or ``None`` at end of stream.
- ``unread(ch)``: a single pushback slot. The header parser uses it to
  hand the first byte of data back to the record tokenizer.
- ``read_at(offset, length)`` / ``size()``: random access for the footer.
  The forward cursor is restored afterwards, so a footer read between
  two record reads does not disturb streaming.

Decoding is incremental (``codecs`` incremental UTF-8 decoder fed in
fixed-size chunks), so memory stays bounded and a multi-byte character
split across two chunks still decodes as one character. Invalid bytes
decode to U+FFFD instead of failing the read.
"""

from __future__ import annotations

import codecs
import io
import logging
from pathlib import Path
from typing import BinaryIO

from epf_ingest.constants import DEFAULT_CHUNK_SIZE, NEWLINE, RECORD_TERMINATOR

logger = logging.getLogger(__name__)


class CharSource:
    """Forward character stream with one-character pushback.

    Args:
        handle: A readable, seekable binary handle. The source takes
            ownership and closes it in ``close()``.
        chunk_size: Bytes read per refill of the decode buffer.
        name: Label used in log messages (defaults to the handle name).
    """

    def __init__(
        self,
        handle: BinaryIO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        name: str | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._handle = handle
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pos = 0
        self._pushback: str | None = None
        self._exhausted = False
        self.name = name or str(getattr(handle, "name", "<stream>"))

    # -- Constructors -------------------------------------------------------

    @classmethod
    def from_path(cls, path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> CharSource:
        """Open *path* for binary reading and wrap it."""
        path = Path(path)
        return cls(open(path, "rb"), chunk_size=chunk_size, name=str(path))

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> CharSource:
        """Wrap an in-memory payload (handy for tests and small files)."""
        return cls(io.BytesIO(data), chunk_size=chunk_size, name="<bytes>")

    # -- Forward reading ----------------------------------------------------

    def _fill(self) -> bool:
        """Decode the next chunk into the buffer. False once nothing is left."""
        while self._pos >= len(self._buffer):
            if self._exhausted:
                return False
            chunk = self._handle.read(self._chunk_size)
            if not chunk:
                self._exhausted = True
                # Flush the decoder; a dangling partial sequence becomes U+FFFD
                self._buffer = self._decoder.decode(b"", final=True)
            else:
                self._buffer = self._decoder.decode(chunk)
            self._pos = 0
        return True

    def read_char(self) -> str | None:
        """Return the next character, or ``None`` at end of stream."""
        if self._pushback is not None:
            ch, self._pushback = self._pushback, None
            return ch
        if self._pos >= len(self._buffer) and not self._fill():
            return None
        ch = self._buffer[self._pos]
        self._pos += 1
        return ch

    def unread(self, ch: str) -> None:
        """Push *ch* back so the next ``read_char()`` returns it."""
        if self._pushback is not None:
            raise RuntimeError("Pushback slot already holds a character")
        self._pushback = ch

    def end_of_line(self, ch: str) -> bool:
        """Decide whether *ch* ends the current line.

        A record terminator always closes the line. One character of
        lookahead decides what happens next: end of stream or a newline
        confirms a plain line break (the newline is consumed); any other
        character is pushed back and starts the next token.
        """
        if ch != RECORD_TERMINATOR:
            return False
        nxt = self.read_char()
        if nxt is not None and nxt != NEWLINE:
            self.unread(nxt)
        return True

    # -- Random access ------------------------------------------------------

    def size(self) -> int:
        """Total size of the underlying handle in bytes."""
        current = self._handle.tell()
        try:
            return self._handle.seek(0, io.SEEK_END)
        finally:
            self._handle.seek(current)

    def read_at(self, offset: int, length: int) -> bytes:
        """Read up to *length* bytes at absolute *offset*.

        The forward cursor is restored before returning.
        """
        current = self._handle.tell()
        try:
            self._handle.seek(offset)
            return self._handle.read(length)
        finally:
            self._handle.seek(current)

    # -- Lifecycle ----------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def close(self) -> None:
        if not self._handle.closed:
            logger.debug("Closing source %s", self.name)
            self._handle.close()

    def __enter__(self) -> CharSource:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CharSource(name={self.name!r})"
