"""
Configuration models and YAML I/O for epf-ingest.

This module defines the Pydantic models that map 1:1 to epfconfig.yaml,
plus helper functions for loading, saving, and auto-generating the config.

Key models:
- IngestConfig: Top-level config (source + metadata + read + output).
- SourceConfig: Input file path and output table name.
- MetadataConfig: Schema discovered from the file header and footer.
- ReadConfig: How the reader treats truncated records and row counts.
- OutputConfig: Output directory, format and chunk size.

Key functions:
- load_config(path) -> IngestConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.
- generate_default_config(...) -> IngestConfig: Build config from parsed metadata.
- validate_schema_against_metadata(config, metadata): Cross-check config vs file.

Why Pydantic + YAML:
- Pydantic gives us strict validation, type coercion, and clear error messages.
- YAML is human-editable (output format, chunk size, partial-record policy).
- Round-trip fidelity: load -> modify -> save preserves structure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from epf_ingest.exceptions import ConfigValidationError
from epf_ingest.metadata import Metadata

logger = logging.getLogger(__name__)


class SourceConfig(BaseModel):
    """Source file information."""

    input_path: str = Field(..., description="Path to the export file")
    table_name: str | None = Field(
        None,
        description="Name of the output table; defaults to the input file name",
    )

    @property
    def resolved_table_name(self) -> str:
        return self.table_name or Path(self.input_path).name


class MetadataConfig(BaseModel):
    """Schema discovered from the export file header and footer.

    These values are discovered from the file, not user-configured.
    They are stored in the config for reference and to detect schema
    drift on later runs.
    """

    fields: list[str] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    export_mode: Literal["full", "incremental"] = "incremental"
    total_items: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _check_types_aligned(self) -> MetadataConfig:
        """Validate that every field has exactly one declared type."""
        if len(self.fields) != len(self.types):
            raise ValueError(
                f"Metadata declares {len(self.fields)} field(s) but "
                f"{len(self.types)} type(s)"
            )
        return self

    @classmethod
    def from_metadata(cls, metadata: Metadata) -> MetadataConfig:
        return cls(**metadata.as_dict())


class ReadConfig(BaseModel):
    """Reader behaviour."""

    on_partial_record: Literal["error", "warn", "drop"] = Field(
        "error",
        description="What to do with a record cut short by end of file",
    )
    verify_total_items: bool = Field(
        True, description="If True, compare rows read against the footer count"
    )


class OutputConfig(BaseModel):
    """Output settings."""

    output_dir: str = Field("outputs/", description="Directory for output files")
    output_format: Literal["csv", "parquet"] = Field(
        "parquet", description="Output format"
    )
    chunk_size: int = Field(
        50_000, gt=0, description="Rows per DataFrame chunk while streaming"
    )


class IngestConfig(BaseModel):
    """Top-level configuration for epf-ingest.

    Maps 1:1 to epfconfig.yaml. This is the single source of truth
    for the pipeline on subsequent runs.
    """

    source: SourceConfig
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    read: ReadConfig = Field(default_factory=ReadConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path) -> IngestConfig:
    """Load and validate epfconfig.yaml into an IngestConfig model.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the config file is empty.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    logger.info("Loaded config from %s", path)
    return IngestConfig.model_validate(raw)


def save_config(config: IngestConfig, path: str | Path) -> None:
    """Serialize an IngestConfig to YAML.

    Writes a human-readable YAML file with a header comment.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# epf-ingest configuration\n")
        f.write(
            "# Edit this file to change output format, chunk size, etc.\n\n"
        )
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved config to %s", path)


def generate_default_config(
    input_path: str,
    metadata: Metadata,
    output_dir: str = "outputs/",
) -> IngestConfig:
    """Build an IngestConfig from parsed metadata (used on first run).

    Args:
        input_path: Path to the source file.
        metadata: Metadata read from the file header and footer.
        output_dir: Where output files should be written.

    Returns:
        A fully populated IngestConfig with default read/output settings.
    """
    return IngestConfig(
        source=SourceConfig(input_path=input_path),
        metadata=MetadataConfig.from_metadata(metadata),
        output=OutputConfig(output_dir=output_dir),
    )


def validate_schema_against_metadata(
    config: IngestConfig, metadata: Metadata
) -> None:
    """Cross-validate that the file's schema matches the one in the config.

    Called on subsequent runs to catch a source file that was replaced
    by an export with different columns or types. The row count and
    export mode may legitimately change between exports and are not
    compared.

    Raises:
        ConfigValidationError: If fields or declared types differ.
    """
    expected = config.metadata
    problems: list[str] = []
    if expected.fields != list(metadata.fields):
        problems.append(
            f"  fields: config={expected.fields} file={list(metadata.fields)}"
        )
    if expected.types != list(metadata.types):
        problems.append(
            f"  types: config={expected.types} file={list(metadata.types)}"
        )

    if problems:
        details = "\n".join(problems)
        raise ConfigValidationError(
            f"The schema of {config.source.input_path} does not match epfconfig.yaml:\n"
            f"{details}\n"
            f"Delete the config and run init() again to accept the new schema."
        )
    logger.info(
        "Config validation passed: %d fields match source file",
        len(expected.fields),
    )
