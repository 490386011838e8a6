"""
Meta table builder for epf-ingest.

Builds the flat _meta table that is output alongside the data table.
One row per field of the source file.

Purpose:
  The _meta table is DESCRIPTIVE -- it records what the pipeline did,
  providing data lineage and processing statistics. This complements
  epfconfig.yaml which is PRESCRIPTIVE (records what the user wants).

  Key information captured:
  - Source-level: filename, hash, export mode, declared row count.
  - Field-level: position, declared type, primary key membership.
  - Processing: rows actually written, timestamp.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from epf_ingest.config import IngestConfig
from epf_ingest.metadata import Metadata
from epf_ingest.transforms.coerce import base_type

logger = logging.getLogger(__name__)

META_COLUMNS = [
    "table_name", "source_file", "source_hash", "field", "position",
    "declared_type", "base_type", "is_primary_key", "export_mode",
    "total_items", "rows_written", "processed_at",
]


def _compute_file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file for reproducibility tracking."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def build_meta_table(
    config: IngestConfig,
    metadata: Metadata,
    rows_written: int,
) -> pd.DataFrame:
    """Build the flat _meta table.

    Args:
        config: The IngestConfig used for this pipeline run.
        metadata: Metadata of the source file.
        rows_written: Number of data rows actually exported.

    Returns:
        DataFrame with one row per field, columns as in ``META_COLUMNS``.
    """
    source_path = Path(config.source.input_path)

    # Compute hash; gracefully handle missing files (e.g. in unit tests with
    # synthetic metadata where the source file doesn't exist on disk).
    try:
        source_hash = _compute_file_hash(source_path)
    except FileNotFoundError:
        logger.warning(
            "Source file not found for hashing: %s (using empty hash)",
            source_path,
        )
        source_hash = ""

    processed_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    primary_key = set(metadata.primary_key)

    rows: list[dict] = []
    for position, field in enumerate(metadata.fields):
        declared = metadata.types[position] if position < len(metadata.types) else ""
        rows.append(
            {
                "table_name": config.source.resolved_table_name,
                "source_file": source_path.name,
                "source_hash": source_hash,
                "field": field,
                "position": position,
                "declared_type": declared,
                "base_type": base_type(declared),
                "is_primary_key": field in primary_key,
                "export_mode": metadata.export_mode.value,
                "total_items": metadata.total_items,
                "rows_written": rows_written,
                "processed_at": processed_at,
            }
        )

    logger.info("Built _meta table: %d rows", len(rows))

    # Explicit column order ensures a consistent schema even when rows is
    # empty (pd.DataFrame([]) would produce zero columns otherwise).
    return pd.DataFrame(rows, columns=META_COLUMNS)
