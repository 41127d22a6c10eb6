"""Conversion between a grid and the flat cell list a backing store persists.

Only touched cells are written. The store accepts a restricted set of cell
types, so layout types (product, price, quantity) travel as ``text`` with
the real type kept in the ``style`` payload.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from costsheet._cell import Cell, CellType
from costsheet._grid import Grid, SheetMetadata, create_empty_grid
from costsheet.calc._evaluator import FunctionLookup
from costsheet.calc._recalc import recalculate_grid

DEFAULT_ROWS = 50
DEFAULT_COLS = 10

# Cell types the store accepts as-is.
STORABLE_CELL_TYPES = frozenset({
    CellType.TEXT, CellType.NUMBER, CellType.FORMULA, CellType.HEADER,
})


@dataclass(frozen=True)
class FlatCell:
    """One persisted cell: position, raw content, stored type and style."""

    row: int
    col: int
    value: str
    formula: str | None
    cell_type: str
    style: dict[str, str] | None = None

    def as_dict(self) -> dict[str, Any]:
        """Storage row, using the column names of the cell table."""
        return {
            "row_index": self.row,
            "col_index": self.col,
            "value": self.value,
            "formula": self.formula,
            "cell_type": self.cell_type,
            "style": dict(self.style) if self.style is not None else None,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FlatCell:
        """Accept both storage rows (``row_index``) and plain ``row`` keys."""
        row = data["row_index"] if "row_index" in data else data["row"]
        col = data["col_index"] if "col_index" in data else data["col"]
        style = data.get("style")
        return cls(
            row=int(row),
            col=int(col),
            value=data.get("value") or "",
            formula=data.get("formula") or None,
            cell_type=data.get("cell_type") or CellType.TEXT.value,
            style=dict(style) if style else None,
        )


def _should_persist(cell: Cell) -> bool:
    return bool(
        cell.value
        or cell.formula
        or cell.product_id
        or cell.cell_type != CellType.TEXT
    )


def to_flat_list(grid: Grid) -> list[FlatCell]:
    """Flatten *grid* into storable records, skipping untouched empty cells.

    Blank cells that carry a layout type (a header row, reserved columns) or
    a product id are still written, so a fresh sheet costs one record per
    such cell. That keeps the layout across a reload.
    """
    entries: list[FlatCell] = []
    for cell in grid.values():
        if not _should_persist(cell):
            continue

        cell_type = CellType(cell.cell_type)
        original_type: str | None = None
        if cell_type not in STORABLE_CELL_TYPES:
            original_type = cell_type.value
            cell_type = CellType.TEXT

        style: dict[str, str] | None = None
        if cell.product_id or original_type:
            style = {}
            if cell.product_id:
                style["product_id"] = cell.product_id
            if original_type:
                style["original_cell_type"] = original_type

        entries.append(FlatCell(
            row=cell.row,
            col=cell.col,
            value=cell.value,
            formula=cell.formula,
            cell_type=cell_type.value,
            style=style,
        ))

    return entries


def _restore_type(entry: FlatCell) -> CellType:
    tag = (entry.style or {}).get("original_cell_type") or entry.cell_type
    try:
        return CellType(tag)
    except ValueError:
        return CellType.TEXT


def from_flat_list(
    entries: Iterable[FlatCell | Mapping[str, Any]],
    rows: int = DEFAULT_ROWS,
    cols: int = DEFAULT_COLS,
    *,
    metadata: SheetMetadata | None = None,
    strict: bool = False,
    functions: FunctionLookup | None = None,
) -> Grid:
    """Rebuild a grid of the given extent from persisted records.

    Each record is overlaid on an empty grid, then the grid is recalculated
    so computed values are valid straight away.
    """
    grid = create_empty_grid(rows, cols, metadata)

    for raw in entries:
        entry = raw if isinstance(raw, FlatCell) else FlatCell.from_mapping(raw)
        base = grid.cell(entry.row, entry.col)
        grid.put(Cell(
            row=entry.row,
            col=entry.col,
            value=entry.value,
            formula=entry.formula,
            cell_type=_restore_type(entry),
            product_id=(entry.style or {}).get("product_id"),
            read_only=base.read_only,
        ))

    return recalculate_grid(grid, strict=strict, functions=functions)
