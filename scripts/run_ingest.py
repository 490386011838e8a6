"""
Demo script: export one or more export files to Parquet via the public API.

Usage:
    uv run python scripts/run_ingest.py inputs/artist inputs/collection
    uv run python scripts/run_ingest.py inputs/artist --force    # regenerate config

Each input file gets its own output subdirectory and epfconfig.yaml under outputs/.
On first run, init() reads the header, generates the config, and exports the rows.
On subsequent runs, ingest() reuses the config and re-exports (failing loudly if
the file's schema changed). Pass --force to regenerate the config from scratch.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

OUTPUT_ROOT = Path("outputs")

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_ingest")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    import epf_ingest

    args = sys.argv[1:]
    force = "--force" in args
    input_files = [a for a in args if not a.startswith("--")]

    if not input_files:
        log.error("Usage: run_ingest.py <export file> [<export file> ...] [--force]")
        sys.exit(2)

    for input_path in input_files:
        if not Path(input_path).exists():
            log.warning("SKIP  %s  (file not found)", input_path)
            continue

        name = Path(input_path).name
        output_dir = str(OUTPUT_ROOT / name)
        config_path = OUTPUT_ROOT / f"{name}.yaml"

        log.info("=" * 70)
        log.info("Processing: %s", input_path)
        log.info("  output_dir  : %s", output_dir)
        log.info("  config_path : %s", config_path)
        log.info("=" * 70)

        if config_path.exists() and not force:
            result = epf_ingest.ingest(str(config_path))
        else:
            result = epf_ingest.init(
                input_path,
                output_dir=output_dir,
                config_path=str(config_path),
            )

        meta = result.metadata
        log.info(
            "  %s export, %d fields, primary key %s",
            meta.export_mode.value, len(meta.fields), list(meta.primary_key),
        )
        log.info("  Rows: %s written / %s declared", f"{result.rows_written:,}", f"{meta.total_items:,}")
        log.info("Done: %s\n", name)

    log.info("All files processed.")


if __name__ == "__main__":
    main()
