"""Product lines of a cost sheet (the three reserved trailing columns)."""

from __future__ import annotations

from dataclasses import dataclass

from costsheet._grid import Grid
from costsheet._utils import cell_key, parse_number


@dataclass(frozen=True)
class ProductRow:
    """A row that assigns a unit cost and quantity to a catalogue product."""

    row: int
    product_id: str
    price: float
    quantity: float

    @property
    def total(self) -> float:
        return self.price * self.quantity


def _numeric_value(grid: Grid, key: str) -> float:
    cell = grid.get(key)
    if cell is None:
        return 0.0
    val = cell.computed_value if cell.computed_value is not None else cell.value
    if isinstance(val, (int, float)):
        return float(val)
    return parse_number(str(val)) or 0.0


def extract_product_rows(grid: Grid, cols: int | None = None) -> list[ProductRow]:
    """Rows whose product column names a product with positive price and quantity.

    *cols* is the sheet width (defaults to the grid extent); the product,
    unit price and quantity columns are its last three.
    """
    width = grid.cols if cols is None else cols
    product_col, price_col, quantity_col = width - 3, width - 2, width - 1

    rows: list[ProductRow] = []
    for cell in grid.values():
        if cell.col != product_col or not cell.product_id:
            continue
        price = _numeric_value(grid, cell_key(cell.row, price_col))
        quantity = _numeric_value(grid, cell_key(cell.row, quantity_col))
        if price > 0 and quantity > 0:
            rows.append(ProductRow(
                row=cell.row,
                product_id=cell.product_id,
                price=price,
                quantity=quantity,
            ))

    return sorted(rows, key=lambda r: r.row)
