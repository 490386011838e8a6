"""
epf-ingest: Python library for reading delimited, self-describing table exports.

The export format is a header block of ``#`` comment lines declaring the
schema, records whose fields are separated by ``\\x01`` and terminated by
``\\x02``, and a footer line recording the row count.

Public API surface:

- ``open(path, ...)`` -- **streaming entry point**. Returns an
  ``EpfParser`` session: ``metadata()`` for the schema, ``read()`` or
  iteration for typed rows.

- ``init(...)`` -- First-run workflow. Reads the metadata, generates
  ``epfconfig.yaml``, and optionally exports the data to Parquet/CSV.

- ``ingest(...)`` -- Subsequent-run workflow. Loads ``epfconfig.yaml``,
  checks the file's schema against it, then re-exports the data.
"""

from __future__ import annotations

import logging
from pathlib import Path

from epf_ingest._pipeline import IngestResult, run_ingest_and_export
from epf_ingest.config import (
    IngestConfig,
    generate_default_config,
    load_config,
    save_config,
    validate_schema_against_metadata,
)
from epf_ingest.exceptions import (
    ConfigValidationError,
    EndOfData,
    EpfIngestError,
    ExportError,
    FooterUnreadableError,
    FormatError,
    NumericFormatError,
    OutOfRangeError,
    TruncatedRecordError,
)
from epf_ingest.metadata import ExportMode, Metadata
from epf_ingest.parser import EpfParser, PartialRecordPolicy
from epf_ingest.transforms.coerce import coerce

__all__ = [
    "open", "init", "ingest",
    "EpfParser", "Metadata", "ExportMode", "IngestConfig", "IngestResult", "coerce",
    "EpfIngestError", "FormatError", "OutOfRangeError", "NumericFormatError",
    "FooterUnreadableError", "TruncatedRecordError", "ConfigValidationError",
    "ExportError", "EndOfData",
]

logger = logging.getLogger(__name__)


def open(path: str | Path, on_partial_record: PartialRecordPolicy = "error") -> EpfParser:
    """Open an export file for streaming.

    Nothing is parsed until ``metadata()``, ``read()`` or iteration.

    Examples::

        with epf_ingest.open("itunes/artist") as parser:
            meta = parser.metadata()
            for row in parser:
                print(row["artist_id"], row["name"])

    Args:
        path: Path to the export file.
        on_partial_record: Iteration policy for a record cut short by end
            of file (``"error"``, ``"warn"`` or ``"drop"``).

    Returns:
        An ``EpfParser`` session; close it (or use ``with``) when done.
    """
    return EpfParser.from_path(path, on_partial_record=on_partial_record)


def init(
    input_path: str,
    output_dir: str = "outputs/",
    config_path: str = "epfconfig.yaml",
    run_immediately: bool = True,
) -> IngestResult:
    """First-run entry point: read metadata, generate config, optionally export.

    Orchestration:
      1. ``EpfParser.metadata()`` -> ``Metadata`` (header + footer).
      2. ``generate_default_config()`` -> ``IngestConfig``
      3. ``save_config()`` to *config_path*
      4. If *run_immediately* is True, stream the rows out via
         ``run_ingest_and_export()``.

    Args:
        input_path: Path to the export file.
        output_dir: Directory where the output table will be written.
        config_path: Where to write the generated epfconfig.yaml.
        run_immediately: If True, also export the data after config
            generation.  If False, only generate the config file and stop.

    Returns:
        An ``IngestResult``.

    Raises:
        FormatError: If the header is malformed.
        FooterUnreadableError: If the footer cannot be read.
        pydantic.ValidationError: If fields and types are not aligned.
    """
    logger.info("init() -- input_path=%s, output_dir=%s", input_path, output_dir)

    with EpfParser.from_path(input_path) as parser:
        metadata = parser.metadata()

        config = generate_default_config(
            input_path=input_path,
            metadata=metadata,
            output_dir=output_dir,
        )
        save_config(config, config_path)

        result = IngestResult(config=config, config_path=Path(config_path), metadata=metadata)
        if run_immediately:
            logger.info("run_immediately=True -- exporting rows")
            parser.on_partial_record = config.read.on_partial_record
            result.written, result.rows_written = run_ingest_and_export(config, parser)

    return result


def ingest(config_path: str = "epfconfig.yaml") -> IngestResult:
    """Subsequent-run entry point: load config, validate, re-export.

    Orchestration:
      1. ``load_config()`` -> ``IngestConfig`` (Pydantic validation on load).
      2. ``EpfParser.metadata()`` on the source file.
      3. ``validate_schema_against_metadata()`` -- fields and types must
         still match the config.
      4. ``run_ingest_and_export()`` -- stream rows, export, build ``_meta``.

    Args:
        config_path: Path to epfconfig.yaml (must already exist).

    Returns:
        An ``IngestResult``.

    Raises:
        FileNotFoundError: If *config_path* does not exist.
        pydantic.ValidationError: If config fails Pydantic validation.
        ConfigValidationError: If the file's schema drifted from the config.
        TruncatedRecordError: If the file ends mid-record and the policy
            is ``"error"``.
    """
    logger.info("ingest() -- config_path=%s", config_path)

    config = load_config(config_path)

    with EpfParser.from_path(
        config.source.input_path,
        on_partial_record=config.read.on_partial_record,
    ) as parser:
        metadata = parser.metadata()
        validate_schema_against_metadata(config, metadata)
        written, rows_written = run_ingest_and_export(config, parser)

    return IngestResult(
        config=config,
        config_path=Path(config_path),
        metadata=metadata,
        written=written,
        rows_written=rows_written,
    )
