"""Error types raised while evaluating a formula.

All of them are caught at the per-cell boundary and turned into an
``#ERROR`` result; none escapes a recalculation.
"""

from __future__ import annotations

from collections.abc import Iterable

ERROR_SENTINEL = "#ERROR"


class FormulaError(Exception):
    """Base class for all formula evaluation errors."""


class UnknownFunctionError(FormulaError):
    """Formula calls a name that is not in the function registry."""

    def __init__(self, func_name: str) -> None:
        self.func_name = func_name
        super().__init__(f"Unknown function: {func_name}")


class MalformedReferenceError(FormulaError):
    """A token shaped like a reference or range does not parse."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Malformed reference: {ref!r}")


class CircularReferenceError(FormulaError):
    """A formula depends on its own cell.

    Attributes:
        cells: Sorted keys of the cells involved.
    """

    def __init__(self, cells: Iterable[str]) -> None:
        self.cells = sorted(cells)
        super().__init__(f"Circular reference detected: {', '.join(self.cells)}")


class ExpressionError(FormulaError):
    """Arithmetic that cannot be reduced to a number."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Invalid expression: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)
