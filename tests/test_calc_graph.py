"""Tests for costsheet.calc dependency graph and topological ordering."""

from __future__ import annotations

import pytest

from costsheet import Grid
from costsheet.calc._errors import CircularReferenceError
from costsheet.calc._graph import DependencyGraph


class TestAddFormula:
    def test_simple_dependency(self) -> None:
        g = DependencyGraph()
        g.add_formula("B1", "=A1+1")
        assert "A1" in g.dependencies["B1"]
        assert "B1" in g.dependents["A1"]

    def test_range_dependency(self) -> None:
        g = DependencyGraph()
        g.add_formula("A4", "=SUM(A1:A3)")
        assert g.dependencies["A4"] == {"A1", "A2", "A3"}

    def test_malformed_range_has_no_edges(self) -> None:
        g = DependencyGraph()
        g.add_formula("B1", "=SUM(A0:A3)")
        assert g.dependencies["B1"] == set()
        assert g.formulas["B1"] == "=SUM(A0:A3)"


class TestTopologicalOrder:
    def test_empty(self) -> None:
        assert DependencyGraph().topological_order() == []

    def test_linear_chain(self) -> None:
        """C1 -> B1 -> A1 registered in reverse order."""
        g = DependencyGraph()
        g.add_formula("C1", "=B1*2")
        g.add_formula("B1", "=A1+1")
        order = g.topological_order()
        assert order.index("B1") < order.index("C1")

    def test_diamond(self) -> None:
        g = DependencyGraph()
        g.add_formula("D1", "=B1+C1")
        g.add_formula("B1", "=A1+1")
        g.add_formula("C1", "=A1*2")
        order = g.topological_order()
        assert order.index("B1") < order.index("D1")
        assert order.index("C1") < order.index("D1")

    def test_direct_cycle(self) -> None:
        g = DependencyGraph()
        g.add_formula("A1", "=A1+1")
        with pytest.raises(CircularReferenceError, match="A1"):
            g.topological_order()

    def test_indirect_cycle(self) -> None:
        g = DependencyGraph()
        g.add_formula("A1", "=B1+1")
        g.add_formula("B1", "=A1+1")
        with pytest.raises(CircularReferenceError) as excinfo:
            g.topological_order()
        assert excinfo.value.cells == ["A1", "B1"]


class TestEvaluationOrder:
    def test_acyclic_has_no_blocked_cells(self) -> None:
        g = DependencyGraph()
        g.add_formula("B1", "=A1")
        order, blocked = g.evaluation_order()
        assert order == ["B1"]
        assert blocked == set()

    def test_downstream_of_cycle_is_blocked(self) -> None:
        g = DependencyGraph()
        g.add_formula("A1", "=B1")
        g.add_formula("B1", "=A1")
        g.add_formula("C1", "=B1+1")
        g.add_formula("D1", "=5")
        order, blocked = g.evaluation_order()
        assert order == ["D1"]
        assert blocked == {"A1", "B1", "C1"}


class TestFromGrid:
    def test_only_formula_cells(self) -> None:
        grid = Grid()
        grid.set_content_at("A1", "10")
        grid.set_content_at("B1", "=A1*2")
        g = DependencyGraph.from_grid(grid)
        assert list(g.formulas) == ["B1"]
        assert g.dependencies["B1"] == {"A1"}
