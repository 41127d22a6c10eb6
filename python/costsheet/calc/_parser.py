"""Formula reference extraction: regex scan of the cells a formula reads."""

from __future__ import annotations

import re

from costsheet._utils import cell_key, parse_range
from costsheet.calc._errors import MalformedReferenceError

# ---------------------------------------------------------------------------
# Regex patterns for reference extraction
# ---------------------------------------------------------------------------

# Single cell ref: A1, $A$1, $A1, A$1. Not part of a longer identifier and
# not followed by "(" (that would be a function name such as LOG10).
_CELL_REF = r"\$?([A-Z]+)\$?(\d+)"
_SINGLE_REF_RE = re.compile(
    rf"(?<![A-Z0-9_]){_CELL_REF}(?![A-Z0-9_(])",
    re.IGNORECASE | re.ASCII,
)

# Range: A1:B5
_RANGE_REF_RE = re.compile(
    rf"(?<![A-Z0-9_]){_CELL_REF}\s*:\s*{_CELL_REF}(?![A-Z0-9_(])",
    re.IGNORECASE | re.ASCII,
)


# ---------------------------------------------------------------------------
# Reference extraction
# ---------------------------------------------------------------------------


def parse_references(formula: str) -> list[str]:
    """Extract all single cell references from a formula.

    Returns canonical keys (no dollar signs, upper case) in order of first
    appearance. Does NOT include range references - use
    parse_range_references for those.
    """
    range_spans = [(m.start(), m.end()) for m in _RANGE_REF_RE.finditer(formula)]
    refs: list[str] = []
    seen: set[str] = set()

    for m in _SINGLE_REF_RE.finditer(formula):
        pos = m.start()
        if any(s <= pos < e for s, e in range_spans):
            continue
        canonical = f"{m.group(1).upper()}{m.group(2)}"
        if canonical not in seen:
            refs.append(canonical)
            seen.add(canonical)

    return refs


def parse_range_references(formula: str) -> list[str]:
    """Extract all range references from a formula as ``"A1:B5"`` strings."""
    ranges: list[str] = []
    seen: set[str] = set()

    for m in _RANGE_REF_RE.finditer(formula):
        canonical = (
            f"{m.group(1).upper()}{m.group(2)}:{m.group(3).upper()}{m.group(4)}"
        )
        if canonical not in seen:
            ranges.append(canonical)
            seen.add(canonical)

    return ranges


def expand_range(range_ref: str) -> list[str]:
    """Expand a range like ``"A1:A3"`` into ``["A1", "A2", "A3"]``."""
    coords = parse_range(range_ref.replace("$", ""))
    if coords is None:
        raise MalformedReferenceError(range_ref)
    return [cell_key(r, c) for r, c in coords]


def all_references(formula: str) -> list[str]:
    """Extract every cell a formula reads, with ranges fully expanded."""
    refs: list[str] = []
    seen: set[str] = set()

    for ref in parse_references(formula):
        if ref not in seen:
            refs.append(ref)
            seen.add(ref)

    for rng in parse_range_references(formula):
        for ref in expand_range(rng):
            if ref not in seen:
                refs.append(ref)
                seen.add(ref)

    return refs
