"""
Exporter for epf-ingest.

Writes decoded records and the _meta table to the output directory in
the configured format (CSV or Parquet).

Output file naming convention:
  {table_name}.{format}  -- e.g., "artist.parquet", "collection.csv"
  "_meta.{format}"       -- always written alongside the data table.

Export files can hold millions of rows, so the data table is written
chunk by chunk through ``TableWriter`` instead of from one DataFrame:
- **Parquet**: one ``pyarrow.parquet.ParquetWriter`` per table, one row
  group per chunk, schema fixed up front from the declared types.
- **CSV**: the header is written with the first chunk, later chunks
  are appended.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from epf_ingest.exceptions import ExportError

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet"}


def _check_format(output_format: str) -> None:
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )


def _write_dataframe(
    df: pd.DataFrame,
    path: Path,
    output_format: str,
) -> None:
    """Write a single DataFrame to disk in the specified format.

    Args:
        df: The DataFrame to write.
        path: Full file path (including extension).
        output_format: "csv" or "parquet".

    Raises:
        ExportError: If writing fails for any reason.
    """
    try:
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8-sig")
        else:  # parquet
            df.to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc


class TableWriter:
    """Streams DataFrame chunks into one output table.

    Usage:
        with TableWriter(out_dir, "artist", "parquet", schema) as writer:
            for df in frames:
                writer.write(df)
        writer.rows_written

    The file is created even when no chunk is written, with the columns
    of *schema* and zero rows.

    Args:
        output_dir: Directory to write into (created if needed).
        table_name: Table name; the file is ``{table_name}.{output_format}``.
        output_format: "csv" or "parquet".
        schema: Arrow schema every chunk is converted to.
    """

    def __init__(
        self,
        output_dir: str | Path,
        table_name: str,
        output_format: Literal["csv", "parquet"],
        schema: pa.Schema,
    ) -> None:
        _check_format(output_format)
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        self.path = out / f"{table_name}.{output_format}"
        self.output_format = output_format
        self.schema = schema
        self.rows_written = 0
        self.chunks_written = 0
        self._parquet: pq.ParquetWriter | None = None
        self._closed = False

    def write(self, df: pd.DataFrame) -> None:
        """Append one chunk to the table.

        Raises:
            ExportError: If the writer is closed or writing fails.
        """
        if self._closed:
            raise ExportError(f"Writer for {self.path.name} is already closed")
        try:
            if self.output_format == "csv":
                first = self.chunks_written == 0
                df.to_csv(
                    self.path,
                    mode="w" if first else "a",
                    header=first,
                    index=False,
                    # BOM only at the very start of the file
                    encoding="utf-8-sig" if first else "utf-8",
                )
            else:
                table = pa.Table.from_pandas(df, schema=self.schema, preserve_index=False)
                if self._parquet is None:
                    self._parquet = pq.ParquetWriter(self.path, self.schema)
                self._parquet.write_table(table)
        except Exception as exc:
            raise ExportError(
                f"Failed to write chunk {self.chunks_written + 1} of "
                f"{self.path.name}: {exc}"
            ) from exc

        self.chunks_written += 1
        self.rows_written += len(df)
        logger.debug(
            "Wrote chunk %d to %s (%d rows)",
            self.chunks_written, self.path.name, len(df),
        )

    def close(self) -> None:
        if self._closed:
            return
        if self.chunks_written == 0:
            self.write(self.schema.empty_table().to_pandas())
        self._closed = True
        if self._parquet is not None:
            self._parquet.close()
            self._parquet = None
        logger.info(
            "Exported table -> %s (%d rows, %d cols)",
            self.path.name, self.rows_written, len(self.schema),
        )

    def __enter__(self) -> TableWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        elif self._parquet is not None:
            # Release the file handle; the table is left incomplete
            self._parquet.close()
            self._parquet = None
            self._closed = True


def export_meta(
    meta_df: pd.DataFrame,
    output_dir: str | Path,
    output_format: Literal["csv", "parquet"] = "parquet",
) -> str:
    """Write the _meta table to ``{output_dir}/_meta.{format}``.

    Returns:
        The path written, as a string.

    Raises:
        ExportError: If *output_format* is unsupported, or if the write fails.
    """
    _check_format(output_format)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    meta_path = out / f"_meta.{output_format}"
    _write_dataframe(meta_df, meta_path, output_format)
    logger.info(
        "Exported _meta -> %s (%d rows)",
        meta_path.name,
        len(meta_df),
    )
    return str(meta_path)
