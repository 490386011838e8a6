"""
Type coercion for export field values.

Maps a field's raw text and its declared type (e.g. ``BIGINT``,
``VARCHAR(1000)``) to a Python value:

- Empty text is ``None`` whatever the declared type.
- ``BIGINT`` / ``INTEGER``: signed 64-bit integer. Parsing is strict
  (optional sign, ASCII digits only). Python's ``int()`` would also accept
  whitespace, underscores and non-ASCII digits, which the format never
  produces.
- ``BOOLEAN``: ``"1"`` is True, any other text is False.
- Anything else (``VARCHAR``, ``LONGTEXT``, unknown names): the raw text.

Only the part of the declared type before ``(`` is looked at.
"""

from __future__ import annotations

import re
from typing import Union

from epf_ingest.exceptions import NumericFormatError

Value = Union[int, bool, str, None]

_INT_PATTERN = re.compile(r"[+-]?[0-9]+\Z")

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

INTEGER_TYPES = frozenset({"BIGINT", "INTEGER"})
BOOLEAN_TYPES = frozenset({"BOOLEAN"})


def base_type(declared_type: str) -> str:
    """Strip the length/precision suffix: ``VARCHAR(1000)`` -> ``VARCHAR``."""
    return declared_type.split("(", 1)[0]


def parse_int64(text: str, declared_type: str = "BIGINT") -> int:
    """Parse *text* as a signed 64-bit decimal integer.

    Raises:
        NumericFormatError: If the text is not a plain decimal integer or
            does not fit in 64 bits.
    """
    if not _INT_PATTERN.match(text):
        raise NumericFormatError(text, declared_type)
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise NumericFormatError(text, declared_type)
    return value


def coerce(raw: str, declared_type: str) -> Value:
    """Convert one field's raw text according to its declared type.

    Args:
        raw: Text between separators, exactly as read.
        declared_type: Type string from the header's types line.

    Returns:
        ``None``, ``int``, ``bool`` or ``str``.

    Raises:
        NumericFormatError: For malformed BIGINT / INTEGER text.
    """
    if raw == "":
        return None

    name = base_type(declared_type)
    if name in INTEGER_TYPES:
        return parse_int64(raw, name)
    if name in BOOLEAN_TYPES:
        return raw == "1"
    return raw
