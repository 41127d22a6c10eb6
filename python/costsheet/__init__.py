"""costsheet - spreadsheet-style cost sheets with a small formula engine.

Usage::

    from costsheet import create_empty_grid, recalculate_grid

    grid = create_empty_grid(3, 3)
    grid.set_content(1, 0, "100")
    grid.set_content(1, 1, "50")
    grid.set_content(1, 2, "=A2+B2")
    grid = recalculate_grid(grid)
    print(grid["C2"].computed_value)  # 150.0

    # Persist and restore
    rows = [entry.as_dict() for entry in to_flat_list(grid)]
    grid = from_flat_list(rows, 3, 3)
"""

from costsheet._cell import Cell, CellType
from costsheet._format import display_value, format_number
from costsheet._grid import Grid, ReadOnlyCellError, SheetMetadata, create_empty_grid
from costsheet._products import ProductRow, extract_product_rows
from costsheet._serialize import FlatCell, from_flat_list, to_flat_list
from costsheet._utils import (
    cell_key,
    column_to_letter,
    letter_to_column,
    parse_cell_reference,
    parse_number,
    parse_range,
)
from costsheet._xlsx import grid_from_worksheet, grid_to_workbook, load_grid, save_grid
from costsheet.calc import (
    ERROR_SENTINEL,
    EvalResult,
    FunctionRegistry,
    apply_edit,
    diff_grids,
    evaluate_formula,
    recalculate_grid,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Cell",
    "CellType",
    "ERROR_SENTINEL",
    "EvalResult",
    "FlatCell",
    "FunctionRegistry",
    "Grid",
    "ProductRow",
    "ReadOnlyCellError",
    "SheetMetadata",
    "apply_edit",
    "cell_key",
    "column_to_letter",
    "create_empty_grid",
    "diff_grids",
    "display_value",
    "evaluate_formula",
    "extract_product_rows",
    "format_number",
    "from_flat_list",
    "grid_from_worksheet",
    "grid_to_workbook",
    "letter_to_column",
    "load_grid",
    "parse_cell_reference",
    "parse_number",
    "parse_range",
    "recalculate_grid",
    "save_grid",
    "to_flat_list",
]
