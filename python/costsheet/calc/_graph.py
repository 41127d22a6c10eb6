"""Dependency graph for formula cells with topological ordering."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from costsheet.calc._errors import CircularReferenceError, FormulaError
from costsheet.calc._parser import all_references

if TYPE_CHECKING:
    from costsheet._grid import Grid


class DependencyGraph:
    """Tracks formula cell dependencies for evaluation ordering.

    All cell references use canonical "A1" keys.
    """

    __slots__ = ("dependencies", "dependents", "formulas")

    def __init__(self) -> None:
        # cell -> set of cells it reads from
        self.dependencies: dict[str, set[str]] = {}
        # cell -> set of cells that read from it (reverse edges)
        self.dependents: dict[str, set[str]] = {}
        # cell -> formula string
        self.formulas: dict[str, str] = {}

    def add_formula(self, key: str, formula: str) -> None:
        """Register a formula cell and its dependencies.

        A formula whose references do not parse gets no edges; evaluating it
        reports the problem.
        """
        self.formulas[key] = formula
        try:
            refs = all_references(formula)
        except FormulaError:
            refs = []

        self.dependencies[key] = set(refs)
        for ref in refs:
            self.dependents.setdefault(ref, set()).add(key)

    def evaluation_order(self) -> tuple[list[str], set[str]]:
        """Split formula cells into an evaluation order and the unorderable rest.

        Uses Kahn's algorithm over formula cells only. The second element
        holds cells on a reference cycle and every formula cell downstream
        of one; it is empty for an acyclic graph.
        """
        formula_cells = set(self.formulas)
        if not formula_cells:
            return [], set()

        # Only count deps that are themselves formula cells
        in_degree: dict[str, int] = {
            cell: len(self.dependencies.get(cell, set()) & formula_cells)
            for cell in formula_cells
        }

        # Seed in insertion order so the result is deterministic
        queue: deque[str] = deque(c for c in self.formulas if in_degree[c] == 0)

        order: list[str] = []
        while queue:
            cell = queue.popleft()
            order.append(cell)
            for dep in sorted(self.dependents.get(cell, set())):
                if dep in formula_cells:
                    in_degree[dep] -= 1
                    if in_degree[dep] == 0:
                        queue.append(dep)

        return order, formula_cells - set(order)

    def topological_order(self) -> list[str]:
        """Return formula cells in evaluation order.

        Raises CircularReferenceError if a circular reference is detected.
        """
        order, blocked = self.evaluation_order()
        if blocked:
            raise CircularReferenceError(blocked)
        return order

    @classmethod
    def from_grid(cls, grid: Grid) -> DependencyGraph:
        """Build a dependency graph by scanning a grid for formula cells."""
        graph = cls()
        for key, cell in grid.items():
            if cell.has_formula:
                graph.add_formula(key, cell.formula)
        return graph
