"""Cell addressing: column letters, cell keys, references and ranges.

Coordinates are zero-based ``(row, col)`` pairs. Keys use bijective base-26
column letters and one-based rows, so ``(0, 0)`` is ``"A1"`` and ``(11, 27)``
is ``"AB12"``.
"""

from __future__ import annotations

import re

_REF_RE = re.compile(r"^([A-Za-z]+)(\d+)$", re.ASCII)

# Leading numeric prefix, parsed after thousands separators are removed.
_NUMBER_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def column_to_letter(col: int) -> str:
    """Convert a zero-based column index to its letter sequence (0 -> "A")."""
    if col < 0:
        raise ValueError(f"Column index must be non-negative, got {col}")
    letters = ""
    while col >= 0:
        letters = chr(col % 26 + 65) + letters
        col = col // 26 - 1
    return letters


def letter_to_column(letters: str) -> int:
    """Convert a letter sequence back to a zero-based column index ("A" -> 0)."""
    if not letters or not letters.isascii() or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    result = 0
    for ch in letters.upper():
        result = result * 26 + (ord(ch) - 64)
    return result - 1


def cell_key(row: int, col: int) -> str:
    """Canonical key for a zero-based coordinate: ``cell_key(0, 1) == "B1"``."""
    if row < 0:
        raise ValueError(f"Row index must be non-negative, got {row}")
    return f"{column_to_letter(col)}{row + 1}"


def parse_cell_reference(ref: str) -> tuple[int, int] | None:
    """Parse ``"b7"`` into ``(6, 1)``.

    Returns None for anything that is not a single reference, including
    ranges, function names and row zero (``"A0"``).
    """
    m = _REF_RE.match(ref.strip())
    if not m:
        return None
    row = int(m.group(2)) - 1
    if row < 0:
        return None
    return row, letter_to_column(m.group(1))


def parse_range(range_ref: str) -> list[tuple[int, int]] | None:
    """Expand ``"A1:B2"`` into every coordinate of the rectangle, row-major.

    Corners may be given in any order. Returns None unless the text is
    exactly two valid references joined by ``:``.
    """
    parts = range_ref.split(":")
    if len(parts) != 2:
        return None
    start = parse_cell_reference(parts[0])
    end = parse_cell_reference(parts[1])
    if start is None or end is None:
        return None

    r_min, r_max = min(start[0], end[0]), max(start[0], end[0])
    c_min, c_max = min(start[1], end[1]), max(start[1], end[1])
    return [
        (r, c)
        for r in range(r_min, r_max + 1)
        for c in range(c_min, c_max + 1)
    ]


def parse_number(text: str) -> float | None:
    """Locale-tolerant number parsing: ``"1,234.5"`` -> 1234.5.

    Thousands separators are stripped and the longest numeric prefix is
    used, so ``"12 kg"`` parses as 12.0. Returns None when no number leads
    the text.
    """
    m = _NUMBER_PREFIX_RE.match(text.replace(",", ""))
    if not m:
        return None
    return float(m.group(1))
