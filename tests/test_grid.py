"""Tests for costsheet Cell, Grid and sheet layout."""

from __future__ import annotations

import pytest

from costsheet import (
    Cell,
    CellType,
    Grid,
    ReadOnlyCellError,
    SheetMetadata,
    create_empty_grid,
)


class TestCell:
    def test_key(self) -> None:
        assert Cell(row=4, col=27).key == "AB5"

    def test_has_formula(self) -> None:
        assert Cell(row=0, col=0, formula="=1+1").has_formula
        assert not Cell(row=0, col=0, formula="1+1").has_formula
        assert not Cell(row=0, col=0).has_formula

    def test_is_empty(self) -> None:
        assert Cell(row=0, col=0).is_empty
        assert not Cell(row=0, col=0, value="x").is_empty

    def test_frozen(self) -> None:
        cell = Cell(row=0, col=0)
        with pytest.raises(AttributeError):
            cell.value = "x"  # type: ignore[misc]

    def test_with_result_copies(self) -> None:
        cell = Cell(row=0, col=0, formula="=1")
        done = cell.with_result(1.0)
        assert done.computed_value == 1.0
        assert cell.computed_value is None

    def test_cell_type_is_str(self) -> None:
        assert CellType.PRICE == "price"


class TestGridMapping:
    def test_lookup_is_case_insensitive(self) -> None:
        grid = Grid()
        grid.set_content_at("b2", "x")
        assert grid["B2"].value == "x"
        assert grid["b2"] is grid["B2"]
        assert "b2" in grid

    def test_missing_key(self) -> None:
        grid = Grid()
        with pytest.raises(KeyError):
            grid["A1"]
        assert grid.get("A1") is None
        assert "A1" not in grid
        assert 5 not in grid

    def test_untouched_cell_is_blank(self) -> None:
        cell = Grid().cell(3, 2)
        assert cell.key == "C4"
        assert cell.is_empty

    def test_setitem_checks_key(self) -> None:
        grid = Grid()
        grid["A1"] = Cell(row=0, col=0, value="ok")
        with pytest.raises(ValueError, match="does not match"):
            grid["B1"] = Cell(row=0, col=0)

    def test_put_grows_extent(self) -> None:
        grid = Grid(2, 2)
        grid.set_content_at("C5", "x")
        assert (grid.rows, grid.cols) == (5, 3)

    def test_negative_extent(self) -> None:
        with pytest.raises(ValueError):
            Grid(-1, 3)

    def test_iteration_order_is_insertion_order(self) -> None:
        grid = Grid()
        for key in ("C1", "A1", "B1"):
            grid.set_content_at(key, "x")
        assert list(grid) == ["C1", "A1", "B1"]
        assert len(grid) == 3

    def test_invalid_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid cell key"):
            Grid().set_content_at("A1:B2", "x")

    def test_copy_is_independent(self) -> None:
        grid = Grid()
        grid.set_content_at("A1", "1")
        clone = grid.copy()
        assert clone == grid
        clone.set_content_at("A1", "2")
        assert grid["A1"].value == "1"
        assert clone != grid

    def test_errors(self) -> None:
        grid = Grid()
        grid.put(Cell(row=0, col=0).with_result("#ERROR", "boom"))
        grid.put(Cell(row=0, col=1).with_result(1.0))
        assert grid.errors() == {"A1": "boom"}
        assert grid.computed_values() == {"A1": "#ERROR", "B1": 1.0}


class TestSetContent:
    def test_formula(self) -> None:
        grid = Grid()
        cell = grid.set_content(0, 0, "=B1*2")
        assert cell.formula == "=B1*2"
        assert cell.value == ""
        assert cell.cell_type == CellType.FORMULA

    def test_number(self) -> None:
        assert Grid().set_content(0, 0, "1,250.00").cell_type == CellType.NUMBER

    def test_text(self) -> None:
        assert Grid().set_content(0, 0, "Freight").cell_type == CellType.TEXT

    def test_plain_value_clears_formula(self) -> None:
        grid = Grid()
        grid.set_content(0, 0, "=1+1")
        cell = grid.set_content(0, 0, "7")
        assert cell.formula is None
        assert cell.value == "7"
        assert cell.cell_type == CellType.NUMBER

    def test_header_type_kept(self) -> None:
        grid = create_empty_grid(2, 2)
        assert grid.set_content(0, 0, "Item").cell_type == CellType.HEADER

    def test_reserved_type_kept(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        assert grid.set_content(1, 3, "12.50").cell_type == CellType.PRICE
        assert grid.set_content(1, 4, "n/a").cell_type == CellType.QUANTITY

    def test_formula_replaces_layout_type(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        assert grid.set_content(1, 3, "=2*3").cell_type == CellType.FORMULA

    def test_read_only_rejected(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        with pytest.raises(ReadOnlyCellError) as excinfo:
            grid.set_content(0, 2, "Name")
        assert excinfo.value.key == "C1"
        assert isinstance(excinfo.value, PermissionError)
        assert grid["C1"].value == "Product"

    def test_auto_number_read_only(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        with pytest.raises(ReadOnlyCellError):
            grid.set_content(1, 0, "=1")


class TestSetProduct:
    def test_links_product(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        cell = grid.set_product(1, 2, "prod-17", "Cement 42.5kg")
        assert cell.product_id == "prod-17"
        assert cell.value == "Cement 42.5kg"
        assert cell.cell_type == CellType.PRODUCT

    def test_read_only_rejected(self) -> None:
        grid = create_empty_grid(3, 5, SheetMetadata())
        with pytest.raises(ReadOnlyCellError):
            grid.set_product(0, 2, "prod-1")


class TestCreateEmptyGrid:
    def test_default_layout(self) -> None:
        grid = create_empty_grid(3, 4)
        assert len(grid) == 12
        assert (grid.rows, grid.cols) == (3, 4)
        assert {grid[k].cell_type for k in ("A1", "B1", "C1", "D1")} == {CellType.HEADER}
        assert grid["A2"].cell_type == CellType.TEXT
        assert not any(cell.read_only for cell in grid.values())
        assert all(cell.value == "" for cell in grid.values())

    def test_reserved_columns(self) -> None:
        grid = create_empty_grid(3, 6, SheetMetadata())
        assert [grid[k].value for k in ("D1", "E1", "F1")] == [
            "Product", "Unit Price", "Quantity",
        ]
        assert all(grid[k].read_only for k in ("D1", "E1", "F1"))
        assert grid["D2"].cell_type == CellType.PRODUCT
        assert grid["E2"].cell_type == CellType.PRICE
        assert grid["F3"].cell_type == CellType.QUANTITY
        assert not grid["D2"].read_only

    def test_auto_numbering(self) -> None:
        grid = create_empty_grid(4, 5, SheetMetadata())
        assert grid["A1"].value == ""
        assert [grid[k].value for k in ("A2", "A3", "A4")] == ["1", "2", "3"]
        assert grid["A2"].cell_type == CellType.NUMBER
        assert grid["A2"].read_only

    def test_numbering_skips_header_rows(self) -> None:
        grid = create_empty_grid(4, 5, SheetMetadata(header_rows=[0, 1]))
        assert grid["A2"].cell_type == CellType.HEADER
        assert grid["A3"].value == "1"

    def test_layout_switched_off(self) -> None:
        meta = SheetMetadata(auto_number_column=False, reserved_columns_enabled=False)
        grid = create_empty_grid(3, 5, meta)
        assert grid["E1"].value == ""
        assert grid["A2"].value == ""
        assert not any(cell.read_only for cell in grid.values())

    def test_narrow_sheet_has_no_reserved_columns(self) -> None:
        assert SheetMetadata().reserved_columns(2) is None
        assert SheetMetadata().reserved_columns(10) == (7, 8, 9)

    def test_metadata_attached(self) -> None:
        meta = SheetMetadata(selected_product_ids=["p1"])
        assert create_empty_grid(2, 4, meta).metadata is meta
