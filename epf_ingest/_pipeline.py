"""
Internal pipeline orchestration for epf-ingest.

Extracted from ``__init__.py`` so that both ``init()`` and ``ingest()``
reuse the same stream -> export -> meta sequence.

This module is **not** part of the public API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from epf_ingest.config import IngestConfig
from epf_ingest.export import TableWriter, export_meta
from epf_ingest.meta import build_meta_table
from epf_ingest.metadata import Metadata
from epf_ingest.parser import EpfParser
from epf_ingest.transforms.frames import arrow_schema, iter_frames

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ``init()`` / ``ingest()``.

    Attributes:
        config: The config the run used.
        config_path: Where the config lives on disk.
        metadata: Metadata of the source file.
        written: Output files written, data table first then ``_meta``.
            Empty when ``init()`` ran without ``run_immediately``.
        rows_written: Data rows exported.
    """
    config: IngestConfig
    config_path: Path
    metadata: Metadata
    written: list[str] = field(default_factory=list)
    rows_written: int = 0


def check_total_items(metadata: Metadata, rows_written: int, source_name: str) -> bool:
    """Compare the exported row count with the footer. Logs a mismatch."""
    if rows_written == metadata.total_items:
        return True
    logger.warning(
        "%s: footer declares %d record(s) but %d were read",
        source_name, metadata.total_items, rows_written,
    )
    return False


def run_ingest_and_export(
    config: IngestConfig,
    parser: EpfParser,
) -> tuple[list[str], int]:
    """Stream all rows to the output table, then write ``_meta``.

    Steps:
      1. Fix the Arrow schema from the declared types.
      2. Stream rows in ``chunk_size`` DataFrames into the table writer.
      3. Optionally compare the row count with the footer.
      4. Build and export the ``_meta`` table.

    Args:
        config: The validated IngestConfig.
        parser: An open session over the source file.

    Returns:
        Tuple of (written file paths, rows written).
    """
    metadata = parser.metadata()
    out = config.output

    # 1-2. Stream data table
    with TableWriter(
        out.output_dir,
        config.source.resolved_table_name,
        out.output_format,
        arrow_schema(metadata),
    ) as writer:
        for frame in iter_frames(parser, metadata, out.chunk_size):
            writer.write(frame)
    rows_written = writer.rows_written

    # 3. Row count check
    if config.read.verify_total_items:
        check_total_items(metadata, rows_written, parser.name)

    # 4. _meta
    meta_df = build_meta_table(config, metadata, rows_written)
    meta_path = export_meta(meta_df, out.output_dir, out.output_format)

    written = [str(writer.path), meta_path]
    logger.info("Pipeline complete: wrote %d files, %d rows", len(written), rows_written)
    return written, rows_written
