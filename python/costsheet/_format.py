"""Display formatting for computed values. Has no effect on evaluation."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

from costsheet._cell import Cell
from costsheet._utils import parse_number
from costsheet.calc._errors import ERROR_SENTINEL


def format_number(
    value: Any,
    decimals: int = 2,
    *,
    thousands_sep: str = ",",
    decimal_sep: str = ".",
) -> str:
    """Format *value* with grouped thousands and a fixed number of decimals.

    ``format_number(1234.5)`` -> ``"1,234.50"``. Numeric strings are parsed
    first; anything that is not a number comes back as ``str(value)``. The
    default separators are the es-GT conventions the cost sheets are
    displayed in.
    """
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        num: float | None = float(value)
    elif isinstance(value, str):
        num = parse_number(value)
    else:
        num = None
    if num is None or not math.isfinite(num):
        return str(value)

    quantum = Decimal(1).scaleb(-decimals)
    # Wide enough for every finite float at any sensible decimals.
    rounded = Decimal(repr(num)).quantize(
        quantum, rounding=ROUND_HALF_UP, context=Context(prec=400)
    )
    text = f"{rounded:,.{decimals}f}"
    if (thousands_sep, decimal_sep) != (",", "."):
        text = text.translate(str.maketrans({",": thousands_sep, ".": decimal_sep}))
    return text


def display_value(cell: Cell | None, decimals: int = 2) -> str:
    """Text a grid shows for *cell*: sentinel, formatted number or raw text."""
    if cell is None:
        return ""
    if cell.error:
        return ERROR_SENTINEL
    val = cell.computed_value
    if val is None:
        return cell.formula or cell.value
    if isinstance(val, (int, float)):
        return format_number(val, decimals)
    return str(val)
