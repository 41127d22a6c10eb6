"""Formula evaluation against a grid snapshot.

``evaluate_formula`` never raises for a bad formula: every
:class:`~costsheet.calc._errors.FormulaError` is turned into an
``EvalResult`` carrying the ``#ERROR`` sentinel and a message. All cell
lookups read the grid passed in, so a given grid state always evaluates
the same way.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from costsheet._utils import cell_key, parse_number, parse_range
from costsheet.calc._arithmetic import ArithmeticParser
from costsheet.calc._errors import (
    ERROR_SENTINEL,
    CircularReferenceError,
    ExpressionError,
    FormulaError,
    MalformedReferenceError,
    UnknownFunctionError,
)
from costsheet.calc._functions import BUILTIN_FUNCTIONS, FunctionRegistry, Reducer
from costsheet.calc._protocol import EvalResult

if TYPE_CHECKING:
    from costsheet._grid import Grid

logger = logging.getLogger(__name__)

RESULT_DECIMALS = 2

FunctionLookup = FunctionRegistry | Mapping[str, Reducer]


def round_half_up(value: float, decimals: int = RESULT_DECIMALS) -> float:
    """Round to *decimals* places with ties away from zero (2.345 -> 2.35)."""
    if abs(value) >= 1e15:
        # No fractional digits left to round at this magnitude.
        return value
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def cell_numeric_value(grid: Grid, key: str) -> float:
    """Numeric reading of a cell: computed value first, then raw text.

    Untouched cells, text and error sentinels read as 0.
    """
    cell = grid.get(key)
    if cell is None:
        return 0.0
    val = cell.computed_value if cell.computed_value is not None else cell.value
    if isinstance(val, (int, float)):
        return float(val) if math.isfinite(val) else 0.0
    num = parse_number(val) if isinstance(val, str) else None
    return num if num is not None else 0.0


class GridResolver:
    """Resolves references and calls for one formula cell."""

    def __init__(
        self,
        grid: Grid,
        current_key: str,
        functions: FunctionLookup | None = None,
    ) -> None:
        self._grid = grid
        self._current_key = current_key.upper()
        self._functions = functions if functions is not None else BUILTIN_FUNCTIONS

    def cell(self, ref: str) -> float:
        if ref == self._current_key:
            raise CircularReferenceError([ref])
        return cell_numeric_value(self._grid, ref)

    def range(self, ref: str) -> list[float]:
        coords = parse_range(ref)
        if coords is None:
            raise MalformedReferenceError(ref)
        keys = [cell_key(r, c) for r, c in coords]
        if self._current_key in keys:
            raise CircularReferenceError([self._current_key])
        return [cell_numeric_value(self._grid, k) for k in keys]

    def call(self, name: str, args: list[float]) -> float:
        func = self._functions.get(name)
        if func is None:
            raise UnknownFunctionError(name)
        return float(func(args))


def evaluate_formula(
    formula: str,
    grid: Grid,
    current_key: str,
    functions: FunctionLookup | None = None,
) -> EvalResult:
    """Evaluate *formula* as the content of cell *current_key*.

    Text without a leading ``=`` is not a formula and comes back unchanged.
    Numeric results are rounded half-up to two decimals; a result that is
    not finite (division by zero) evaluates to 0.
    """
    if not formula.startswith("="):
        return EvalResult(value=formula)

    resolver = GridResolver(grid, current_key, functions)
    try:
        value = ArithmeticParser(formula[1:].strip(), resolver).evaluate()
    except RecursionError:
        exc = ExpressionError("formula is nested too deeply")
        logger.debug("Cannot evaluate formula %r in %s: %s", formula, current_key, exc)
        return EvalResult(value=ERROR_SENTINEL, error=str(exc))
    except FormulaError as exc:
        logger.debug("Cannot evaluate formula %r in %s: %s", formula, current_key, exc)
        return EvalResult(value=ERROR_SENTINEL, error=str(exc))
    except Exception as exc:
        # Typically a failing registered function.
        logger.debug("Error evaluating %r in %s: %s", formula, current_key, exc)
        return EvalResult(value=ERROR_SENTINEL, error=f"Calculation error: {exc}")

    if not math.isfinite(value):
        value = 0.0
    return EvalResult(value=round_half_up(value))
