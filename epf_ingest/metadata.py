"""
Metadata model for a parsed export file.

``Metadata`` is built once per session (header + footer) and never
changes afterwards, so it is a frozen dataclass holding tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from epf_ingest.constants import FULL_EXPORT_VALUE


class ExportMode(str, Enum):
    """Whether the file is a complete snapshot or a delta."""

    FULL = "full"
    INCREMENTAL = "incremental"

    @classmethod
    def from_header(cls, value: str) -> ExportMode:
        """Map the raw header value to a mode.

        Only the exact, case-sensitive text ``FULL`` means a full export.
        Anything else, including an empty value, is incremental.
        """
        if value == FULL_EXPORT_VALUE:
            return cls.FULL
        return cls.INCREMENTAL


@dataclass(frozen=True)
class Metadata:
    """Schema, export mode and declared row count of one export file.

    Attributes:
        fields: Field names in column order.
        primary_key: Fields forming the primary key, in header order.
        types: Declared type per field, aligned with ``fields``.
        export_mode: ``ExportMode.FULL`` or ``ExportMode.INCREMENTAL``.
        total_items: Row count recorded in the footer.
    """

    fields: tuple[str, ...]
    primary_key: tuple[str, ...]
    types: tuple[str, ...]
    export_mode: ExportMode
    total_items: int

    def type_of(self, field: str) -> str:
        """Declared type of *field* (``KeyError`` if unknown)."""
        try:
            index = self.fields.index(field)
        except ValueError:
            raise KeyError(field) from None
        return self.types[index] if index < len(self.types) else ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "fields": list(self.fields),
            "primary_key": list(self.primary_key),
            "types": list(self.types),
            "export_mode": self.export_mode.value,
            "total_items": self.total_items,
        }
