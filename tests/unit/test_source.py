"""
Unit tests for the character source (epf_ingest.source).

Covers forward reads across chunk boundaries (including split UTF-8
sequences), the single pushback slot, end-of-line detection and random
access that leaves the forward cursor alone.
"""

from __future__ import annotations

import io

import pytest

from epf_ingest.source import CharSource


def _drain(source: CharSource) -> str:
    chars = []
    while (ch := source.read_char()) is not None:
        chars.append(ch)
    return "".join(chars)


class TestReadChar:
    def test_reads_all_then_none(self):
        source = CharSource.from_bytes(b"abc")
        assert _drain(source) == "abc"
        assert source.read_char() is None
        assert source.read_char() is None

    def test_empty_source(self):
        assert CharSource.from_bytes(b"").read_char() is None

    def test_small_chunks(self):
        source = CharSource.from_bytes(b"hello world", chunk_size=2)
        assert _drain(source) == "hello world"

    def test_multibyte_split_across_chunks(self):
        text = "Björk été 東京"
        source = CharSource.from_bytes(text.encode("utf-8"), chunk_size=1)
        assert _drain(source) == text

    def test_invalid_byte_becomes_replacement_char(self):
        source = CharSource.from_bytes(b"o\xffk", chunk_size=1)
        assert _drain(source) == "o\ufffdk"

    def test_truncated_sequence_at_end_is_replaced(self):
        source = CharSource.from_bytes("é".encode("utf-8")[:1])
        assert _drain(source) == "\ufffd"

    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ValueError):
            CharSource(io.BytesIO(b""), chunk_size=0)


class TestUnread:
    def test_unread_returns_same_char(self):
        source = CharSource.from_bytes(b"ab")
        ch = source.read_char()
        source.unread(ch)
        assert source.read_char() == "a"
        assert source.read_char() == "b"

    def test_unread_at_end_of_stream(self):
        source = CharSource.from_bytes(b"z")
        ch = source.read_char()
        assert source.read_char() is None
        source.unread(ch)
        assert source.read_char() == "z"
        assert source.read_char() is None

    def test_double_unread_is_an_error(self):
        source = CharSource.from_bytes(b"ab")
        source.unread("x")
        with pytest.raises(RuntimeError):
            source.unread("y")


class TestEndOfLine:
    def test_non_terminator(self):
        source = CharSource.from_bytes(b"x")
        assert source.end_of_line("a") is False
        assert source.read_char() == "x"

    def test_terminator_consumes_newline(self):
        source = CharSource.from_bytes(b"\nnext")
        assert source.end_of_line("\x02") is True
        assert source.read_char() == "n"

    def test_terminator_at_end_of_stream(self):
        source = CharSource.from_bytes(b"")
        assert source.end_of_line("\x02") is True
        assert source.read_char() is None

    def test_terminator_without_newline_keeps_lookahead(self):
        source = CharSource.from_bytes(b"next")
        assert source.end_of_line("\x02") is True
        assert source.read_char() == "n"


class TestRandomAccess:
    def test_size(self):
        assert CharSource.from_bytes(b"0123456789").size() == 10

    def test_read_at_does_not_move_cursor(self):
        source = CharSource.from_bytes(b"0123456789", chunk_size=4)
        assert source.read_char() == "0"
        assert source.read_at(7, 3) == b"789"
        assert source.size() == 10
        assert _drain(source) == "123456789"

    def test_read_at_past_end_is_short(self):
        source = CharSource.from_bytes(b"abc")
        assert source.read_at(1, 28) == b"bc"


class TestLifecycle:
    def test_from_path_and_close(self, tmp_path):
        path = tmp_path / "data"
        path.write_bytes(b"ok")
        with CharSource.from_path(path) as source:
            assert source.name == str(path)
            assert _drain(source) == "ok"
        assert source.closed

    def test_close_is_idempotent(self):
        source = CharSource.from_bytes(b"")
        source.close()
        source.close()
        assert source.closed
