"""Cost sheet <-> .xlsx interchange via openpyxl.

Formulas are written and read as formula strings, so a sheet exported here
keeps recalculating in Excel, and an Excel sheet using the supported
functions evaluates the same way once imported.
"""

from __future__ import annotations

import datetime
import logging
import os
import re
from typing import Any

import openpyxl
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from costsheet._cell import CellType
from costsheet._grid import Grid, SheetMetadata, create_empty_grid
from costsheet.calc._recalc import recalculate_grid

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Cost Sheet"

_PLAIN_NUMBER_RE = re.compile(r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$")


def _number_or_text(text: str) -> int | float | str:
    """Write fully numeric raw values as numbers, everything else as text."""
    stripped = text.strip()
    if not _PLAIN_NUMBER_RE.match(stripped):
        return text
    num = float(stripped.replace(",", ""))
    return int(num) if num.is_integer() and "." not in stripped else num


def grid_to_workbook(grid: Grid, title: str = DEFAULT_TITLE) -> openpyxl.Workbook:
    """Build an openpyxl workbook holding *grid* on its single sheet."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title

    for cell in grid.values():
        if cell.has_formula:
            content: Any = cell.formula
        elif cell.value:
            content = _number_or_text(cell.value)
        else:
            continue
        target = ws.cell(row=cell.row + 1, column=cell.col + 1, value=content)
        if cell.cell_type == CellType.HEADER:
            target.font = Font(bold=True)

    return wb


def _cell_text(value: Any) -> str:
    """Raw editor text for an openpyxl cell value."""
    text = getattr(value, "text", None)  # ArrayFormula
    if isinstance(text, str):
        return text if text.startswith("=") else f"={text}"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def grid_from_worksheet(
    ws: Worksheet,
    rows: int | None = None,
    cols: int | None = None,
    *,
    metadata: SheetMetadata | None = None,
    strict: bool = False,
) -> Grid:
    """Read an openpyxl worksheet into a recalculated grid.

    The extent defaults to the sheet's used area. Cells beyond an explicit
    extent are still read and grow the grid.
    """
    grid = create_empty_grid(
        ws.max_row if rows is None else rows,
        ws.max_column if cols is None else cols,
        metadata,
    )

    skipped = 0
    for row in ws.iter_rows():
        for xl_cell in row:
            if xl_cell.value is None:
                continue
            r, c = xl_cell.row - 1, xl_cell.column - 1
            if grid.cell(r, c).read_only:
                skipped += 1
                continue
            grid.set_content(r, c, _cell_text(xl_cell.value))

    if skipped:
        logger.debug("Kept %d read-only layout cell(s) from sheet %r", skipped, ws.title)
    return recalculate_grid(grid, strict=strict)


def save_grid(
    grid: Grid,
    path: str | os.PathLike[str],
    title: str = DEFAULT_TITLE,
) -> None:
    """Write *grid* to an .xlsx file."""
    grid_to_workbook(grid, title).save(os.fspath(path))


def load_grid(
    path: str | os.PathLike[str],
    sheet: str | None = None,
    *,
    metadata: SheetMetadata | None = None,
    strict: bool = False,
) -> Grid:
    """Open an .xlsx file and read one sheet (the active one by default)."""
    wb = openpyxl.load_workbook(os.fspath(path))
    try:
        ws = wb[sheet] if sheet is not None else wb.active
        return grid_from_worksheet(ws, metadata=metadata, strict=strict)
    finally:
        wb.close()
