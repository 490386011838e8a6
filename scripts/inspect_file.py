"""
Print the metadata and the first rows of an export file.

Reads only the header, the footer and the first N records, so it is
fast even on multi-gigabyte exports.

Usage:
    uv run python scripts/inspect_file.py inputs/artist          # 5 rows
    uv run python scripts/inspect_file.py inputs/artist 20       # 20 rows
"""

from __future__ import annotations

import logging
import sys

import pandas as pd

import epf_ingest
from epf_ingest.transforms.frames import rows_to_frame

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("inspect_file")


def main() -> None:
    if len(sys.argv) < 2:
        log.error("Usage: inspect_file.py <export file> [n_rows]")
        sys.exit(2)

    path = sys.argv[1]
    n_rows = int(sys.argv[2]) if len(sys.argv) > 2 else 5

    with epf_ingest.open(path, on_partial_record="warn") as parser:
        meta = parser.metadata()

        print(f"File        : {path}")
        print(f"Export mode : {meta.export_mode.value}")
        print(f"Total items : {meta.total_items:,}")
        print(f"Primary key : {', '.join(meta.primary_key) or '-'}")
        print("Fields:")
        for name, declared in zip(meta.fields, meta.types):
            marker = "*" if name in meta.primary_key else " "
            print(f"  {marker} {name:<30} {declared}")

        rows = []
        for row in parser:
            rows.append(row)
            if len(rows) >= n_rows:
                break

    with pd.option_context("display.max_columns", None, "display.width", 200):
        print()
        print(rows_to_frame(rows, meta))


if __name__ == "__main__":
    main()
