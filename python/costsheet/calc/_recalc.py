"""Grid recalculation.

The default mode runs two passes over the grid in storage order, which
settles one level of formula-to-formula dependency per call and only
detects a formula that reads its own cell. ``strict=True`` instead orders
formula cells by their dependencies and flags every cell on, or
downstream of, a reference cycle.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from costsheet._cell import NUMERIC_CELL_TYPES, Cell
from costsheet._utils import parse_number
from costsheet.calc._errors import ERROR_SENTINEL, CircularReferenceError
from costsheet.calc._evaluator import FunctionLookup, evaluate_formula
from costsheet.calc._graph import DependencyGraph
from costsheet.calc._protocol import CellDelta

if TYPE_CHECKING:
    from costsheet._grid import Grid

logger = logging.getLogger(__name__)


def _plain_result(cell: Cell) -> Cell:
    """Computed value of a cell without a formula."""
    num = parse_number(cell.value)
    if cell.cell_type in NUMERIC_CELL_TYPES or num is not None:
        return cell.with_result(num if num is not None else 0.0)
    return cell.with_result(cell.value)


def _formula_result(
    grid: Grid,
    key: str,
    cell: Cell,
    functions: FunctionLookup | None,
) -> Cell:
    result = evaluate_formula(cell.formula, grid, key, functions)
    return cell.with_result(result.value, result.error)


def _two_pass(grid: Grid, functions: FunctionLookup | None) -> None:
    # Pass 1: later cells already see values written for earlier ones.
    for key, cell in list(grid.items()):
        if cell.has_formula:
            grid.put(_formula_result(grid, key, cell, functions))
        else:
            grid.put(_plain_result(cell))

    # Pass 2: formulas again, now against the pass-1 results.
    for key, cell in list(grid.items()):
        if cell.has_formula:
            grid.put(_formula_result(grid, key, cell, functions))


def _ordered(grid: Grid, functions: FunctionLookup | None) -> None:
    for cell in list(grid.values()):
        if not cell.has_formula:
            grid.put(_plain_result(cell))

    graph = DependencyGraph.from_grid(grid)
    order, blocked = graph.evaluation_order()

    if blocked:
        message = str(CircularReferenceError(blocked))
        logger.debug("Reference cycle blocks %d cell(s): %s", len(blocked), sorted(blocked))
        for key in blocked:
            grid.put(grid[key].with_result(ERROR_SENTINEL, message))

    for key in order:
        grid.put(_formula_result(grid, key, grid[key], functions))


def recalculate_grid(
    grid: Grid,
    *,
    strict: bool = False,
    functions: FunctionLookup | None = None,
) -> Grid:
    """Return a copy of *grid* with every computed value and error re-derived.

    The input grid is not modified. *functions* replaces the builtin
    function table (pass a :class:`FunctionRegistry` to add functions).
    """
    new_grid = grid.copy()
    if strict:
        _ordered(new_grid, functions)
    else:
        _two_pass(new_grid, functions)

    logger.debug(
        "Recalculated %d cell(s) (%s mode), %d error(s)",
        len(new_grid),
        "strict" if strict else "two-pass",
        len(new_grid.errors()),
    )
    return new_grid


def apply_edit(
    grid: Grid,
    row: int,
    col: int,
    text: str,
    *,
    strict: bool = False,
    functions: FunctionLookup | None = None,
) -> Grid:
    """Set the content of one cell on a copy of *grid* and recalculate it."""
    edited = grid.copy()
    edited.set_content(row, col, text)
    return recalculate_grid(edited, strict=strict, functions=functions)


def _values_differ(a: float | str | None, b: float | str | None, tolerance: float) -> bool:
    """Check if two computed values differ beyond tolerance."""
    if a is None and b is None:
        return False
    if a is None or b is None:
        return True
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return abs(float(a) - float(b)) > tolerance
    return a != b


def diff_grids(before: Grid, after: Grid, tolerance: float = 1e-9) -> tuple[CellDelta, ...]:
    """Cells whose computed value or error differs between two grid states.

    Keys present in only one grid compare against a missing value.
    """
    deltas: list[CellDelta] = []
    seen: set[str] = set()

    for key in [*after.keys(), *before.keys()]:
        if key in seen:
            continue
        seen.add(key)
        old = before.get(key)
        new = after.get(key)
        old_value = old.computed_value if old is not None else None
        new_value = new.computed_value if new is not None else None
        old_error = old.error if old is not None else None
        new_error = new.error if new is not None else None
        if _values_differ(old_value, new_value, tolerance) or old_error != new_error:
            deltas.append(CellDelta(
                key=key,
                old_value=old_value,
                new_value=new_value,
                old_error=old_error,
                new_error=new_error,
                formula=new.formula if new is not None else None,
            ))

    return tuple(deltas)
