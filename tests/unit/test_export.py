"""
Unit tests for the exporter (epf_ingest.export).

Tests chunked CSV and Parquet writing, empty tables, _meta export and
error handling using pytest's tmp_path fixture.
"""

from __future__ import annotations

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from epf_ingest.exceptions import ExportError
from epf_ingest.export import TableWriter, export_meta

SCHEMA = pa.schema([
    pa.field("id", pa.int64()),
    pa.field("name", pa.string()),
    pa.field("active", pa.bool_()),
])


def _chunk(ids: list[int]) -> pd.DataFrame:
    return pd.DataFrame({
        "id": pd.array(ids, dtype="Int64"),
        "name": pd.array([f"item {i}" for i in ids], dtype="string"),
        "active": pd.array([i % 2 == 0 for i in ids], dtype="boolean"),
    })


# ---------------------------------------------------------------------------
# TableWriter
# ---------------------------------------------------------------------------

class TestTableWriterParquet:
    def test_multiple_chunks(self, tmp_path):
        with TableWriter(tmp_path, "artist", "parquet", SCHEMA) as writer:
            writer.write(_chunk([1, 2]))
            writer.write(_chunk([3]))

        assert writer.rows_written == 3
        assert writer.chunks_written == 2
        table = pq.read_table(tmp_path / "artist.parquet")
        assert table.schema.equals(SCHEMA)
        assert table.column("id").to_pylist() == [1, 2, 3]
        assert pq.ParquetFile(tmp_path / "artist.parquet").num_row_groups == 2

    def test_nulls_survive(self, tmp_path):
        df = pd.DataFrame({
            "id": pd.array([None, 5], dtype="Int64"),
            "name": pd.array([None, "x"], dtype="string"),
            "active": pd.array([None, True], dtype="boolean"),
        })
        with TableWriter(tmp_path, "t", "parquet", SCHEMA) as writer:
            writer.write(df)
        table = pq.read_table(tmp_path / "t.parquet")
        assert table.column("id").to_pylist() == [None, 5]
        assert table.column("active").to_pylist() == [None, True]

    def test_empty_table_still_written(self, tmp_path):
        with TableWriter(tmp_path, "empty", "parquet", SCHEMA) as writer:
            pass
        table = pq.read_table(tmp_path / "empty.parquet")
        assert table.num_rows == 0
        assert table.schema.names == ["id", "name", "active"]
        assert writer.rows_written == 0

    def test_creates_output_dir(self, tmp_path):
        out = tmp_path / "a" / "b"
        with TableWriter(out, "t", "parquet", SCHEMA) as writer:
            writer.write(_chunk([1]))
        assert (out / "t.parquet").exists()


class TestTableWriterCSV:
    def test_header_written_once(self, tmp_path):
        with TableWriter(tmp_path, "artist", "csv", SCHEMA) as writer:
            writer.write(_chunk([1, 2]))
            writer.write(_chunk([3]))

        lines = (tmp_path / "artist.csv").read_text(encoding="utf-8-sig").splitlines()
        assert lines[0] == "id,name,active"
        assert len(lines) == 4
        df = pd.read_csv(tmp_path / "artist.csv", encoding="utf-8-sig")
        assert df["id"].tolist() == [1, 2, 3]

    def test_single_bom(self, tmp_path):
        with TableWriter(tmp_path, "t", "csv", SCHEMA) as writer:
            writer.write(_chunk([1]))
            writer.write(_chunk([2]))
        raw = (tmp_path / "t.csv").read_bytes()
        assert raw.count(b"\xef\xbb\xbf") == 1

    def test_empty_table_has_header(self, tmp_path):
        with TableWriter(tmp_path, "t", "csv", SCHEMA):
            pass
        text = (tmp_path / "t.csv").read_text(encoding="utf-8-sig")
        assert text.strip() == "id,name,active"


class TestTableWriterErrors:
    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ExportError, match="Unsupported"):
            TableWriter(tmp_path, "t", "xlsx", SCHEMA)

    def test_write_after_close(self, tmp_path):
        writer = TableWriter(tmp_path, "t", "parquet", SCHEMA)
        writer.close()
        with pytest.raises(ExportError, match="closed"):
            writer.write(_chunk([1]))

    def test_incompatible_chunk(self, tmp_path):
        bad = pd.DataFrame({"id": ["not a number"], "name": ["x"], "active": [True]})
        with pytest.raises(ExportError, match="chunk 1"):
            with TableWriter(tmp_path, "t", "parquet", SCHEMA) as writer:
                writer.write(bad)

    def test_close_is_idempotent(self, tmp_path):
        writer = TableWriter(tmp_path, "t", "parquet", SCHEMA)
        writer.close()
        writer.close()


# ---------------------------------------------------------------------------
# export_meta
# ---------------------------------------------------------------------------

class TestExportMeta:
    @pytest.mark.parametrize("fmt", ["csv", "parquet"])
    def test_written(self, tmp_path, fmt):
        meta_df = pd.DataFrame({"table_name": ["artist"], "field": ["artist_id"]})
        path = export_meta(meta_df, tmp_path, fmt)
        assert path == str(tmp_path / f"_meta.{fmt}")
        if fmt == "csv":
            loaded = pd.read_csv(path, encoding="utf-8-sig")
        else:
            loaded = pd.read_parquet(path)
        assert loaded["field"].tolist() == ["artist_id"]

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ExportError):
            export_meta(pd.DataFrame(), tmp_path, "json")
