"""
DataFrame building for decoded records.

Rows come out of the tokenizer as dicts of Python values. This module
batches them into pandas DataFrames with one column per declared field,
in header order, and a nullable dtype chosen from the declared type:

    BIGINT / INTEGER -> Int64
    BOOLEAN          -> boolean
    anything else    -> string

Nullable dtypes keep ``None`` (empty text in the file) as ``<NA>``
instead of turning integer columns into floats. The matching Arrow
schema is exposed for the Parquet writer so every chunk of one file has
the same schema.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Iterable, Iterator

import pandas as pd
import pyarrow as pa

from epf_ingest.metadata import Metadata
from epf_ingest.transforms.coerce import BOOLEAN_TYPES, INTEGER_TYPES, base_type

logger = logging.getLogger(__name__)


def pandas_dtype(declared_type: str) -> str:
    """Nullable pandas dtype for a declared field type."""
    name = base_type(declared_type)
    if name in INTEGER_TYPES:
        return "Int64"
    if name in BOOLEAN_TYPES:
        return "boolean"
    return "string"


def arrow_type(declared_type: str) -> pa.DataType:
    """Arrow type for a declared field type."""
    name = base_type(declared_type)
    if name in INTEGER_TYPES:
        return pa.int64()
    if name in BOOLEAN_TYPES:
        return pa.bool_()
    return pa.string()


def _declared_types(metadata: Metadata) -> list[str]:
    # Fields without a declared type are kept as text
    return [
        metadata.types[i] if i < len(metadata.types) else ""
        for i in range(len(metadata.fields))
    ]


def arrow_schema(metadata: Metadata) -> pa.Schema:
    """Arrow schema with one column per declared field."""
    return pa.schema([
        pa.field(name, arrow_type(declared), nullable=True)
        for name, declared in zip(metadata.fields, _declared_types(metadata))
    ])


def rows_to_frame(rows: Iterable[dict[str, Any]], metadata: Metadata) -> pd.DataFrame:
    """Build a typed DataFrame from decoded rows.

    Fields missing from a row (short records) become ``<NA>``.

    Args:
        rows: Row dicts as returned by ``EpfParser.read()``.
        metadata: Metadata of the file the rows came from.

    Returns:
        DataFrame with columns in header order and nullable dtypes.
    """
    rows = list(rows)
    columns = list(metadata.fields)
    # Built column by column so BIGINT values never pass through float64
    data = {
        name: pd.array([row.get(name) for row in rows], dtype=pandas_dtype(declared))
        for name, declared in zip(columns, _declared_types(metadata))
    }
    return pd.DataFrame(data, columns=columns)


def iter_frames(rows: Iterable[dict[str, Any]], metadata: Metadata, chunk_size: int) -> Iterator[pd.DataFrame]:
    """Yield typed DataFrames of at most *chunk_size* rows.

    Memory use is bounded by the chunk size, not by the file size.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    iterator = iter(rows)
    chunk_no = 0
    while True:
        batch = list(itertools.islice(iterator, chunk_size))
        if not batch:
            return
        chunk_no += 1
        logger.debug("Built chunk %d (%d rows)", chunk_no, len(batch))
        yield rows_to_frame(batch, metadata)
