"""
Shared test fixtures for epf-ingest tests.

All export files used by the tests are synthetic: built in memory by
``build_export()`` and written to ``tmp_path`` where a file is needed.
Control characters are spelled out (``\\x01`` field separator,
``\\x02`` record terminator) so fixtures read like the raw format.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest

FS = "\x01"
RT = "\x02"

# The example file from the format description: one record, three fields
SAMPLE_EXPORT = (
    "#a\x01b\x01c\x02\n"
    "#pk:id\x02\n"
    "#types:BIGINT\x01VARCHAR(10)\x01BOOLEAN\x02\n"
    "#exportMode:FULL\x02\n"
    "100\x011\x01hello\x02\n"
    "#recordsWritten:1\x02"
)


def build_export(
    fields: Sequence[str],
    types: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    primary_key: Sequence[str] = (),
    export_mode: str = "FULL",
    comments: Sequence[str] = (),
    total: int | None = None,
    newline: bool = True,
    footer: bool = True,
) -> bytes:
    """Build the bytes of an export file.

    Args:
        fields: Field names for the first header line.
        types: Declared types for the types line.
        rows: Raw field text per record.
        primary_key: Primary key fields.
        export_mode: Raw export mode value.
        comments: Extra comment lines after the export mode line.
        total: Footer count; defaults to ``len(rows)``.
        newline: If False, terminators are not followed by ``\\n``.
        footer: If False, the footer line is omitted.
    """
    eol = RT + ("\n" if newline else "")
    lines = [
        "#" + FS.join(fields) + eol,
        "#primaryKey:" + FS.join(primary_key) + eol,
        "#dbTypes:" + FS.join(types) + eol,
        "#exportMode:" + export_mode + eol,
    ]
    lines += ["#" + c + eol for c in comments]
    lines += [FS.join(r) + eol for r in rows]
    if footer:
        count = len(rows) if total is None else total
        lines.append(f"#recordsWritten:{count}" + eol)
    return "".join(lines).encode("utf-8")


@pytest.fixture()
def write_export(tmp_path) -> Callable[..., Path]:
    """Factory fixture: ``write_export(payload_or_kwargs, name=...)`` -> path.

    Accepts either raw ``bytes`` / ``str`` or the keyword arguments of
    ``build_export()``.
    """

    def _write(payload: bytes | str | None = None, *, name: str = "export", **kwargs) -> Path:
        if payload is None:
            payload = build_export(**kwargs)
        elif isinstance(payload, str):
            payload = payload.encode("utf-8")
        path = tmp_path / name
        path.write_bytes(payload)
        return path

    return _write


@pytest.fixture()
def artist_export() -> bytes:
    """A small, well-formed artist export with four records."""
    return build_export(
        fields=["export_date", "artist_id", "name", "is_actual_artist", "view_url", "artist_type_id"],
        types=["BIGINT", "INTEGER", "VARCHAR(1000)", "BOOLEAN", "VARCHAR(1000)", "INTEGER"],
        primary_key=["artist_id"],
        rows=[
            ["1490173201020", "318519", "William Boyce", "1", "http://itunes.apple.com/artist/william-boyce/id318519?uo=5", "1"],
            ["1490173201020", "320301", "K. Mills", "1", "http://itunes.apple.com/artist/k-mills/id320301?uo=5", "1"],
            ["1490173201020", "320355", "J. Morris", "0", "http://itunes.apple.com/artist/j-morris/id320355?uo=5", "1"],
            ["1490173201020", "320417", "C. Levine", "1", "", ""],
        ],
    )


@pytest.fixture()
def make_export() -> Callable[..., bytes]:
    """The ``build_export()`` builder, for tests that need raw bytes."""
    return build_export


@pytest.fixture()
def sample_export() -> bytes:
    return SAMPLE_EXPORT.encode("utf-8")


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs the full init/ingest pipeline)",
    )
