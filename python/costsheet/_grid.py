"""Grid - sparse mapping of cell key to :class:`Cell`, plus sheet layout."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Any

from costsheet._cell import Cell, CellType
from costsheet._utils import cell_key, parse_cell_reference, parse_number

# Header labels of the reserved product / unit price / quantity columns.
RESERVED_HEADERS = ("Product", "Unit Price", "Quantity")

# Types an edit with plain (non-formula) content leaves untouched.
_STICKY_CELL_TYPES = frozenset({
    CellType.HEADER, CellType.PRODUCT, CellType.PRICE, CellType.QUANTITY,
})


class ReadOnlyCellError(PermissionError):
    """Raised when editing a cell the sheet layout marks read-only."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Cell {key} is read-only")


@dataclass
class SheetMetadata:
    """Layout options of a cost sheet."""

    selected_product_ids: list[str] = field(default_factory=list)
    header_rows: list[int] = field(default_factory=lambda: [0])
    auto_number_column: bool = True
    reserved_columns_enabled: bool = True

    def reserved_columns(self, cols: int) -> tuple[int, int, int] | None:
        """``(product, price, quantity)`` column indices, or None."""
        if not self.reserved_columns_enabled or cols < 3:
            return None
        return cols - 3, cols - 2, cols - 1


class Grid:
    """Sparse cell storage keyed by canonical ``"A1"`` keys.

    A key that is absent has never been touched and reads as empty. The
    extent (``rows`` x ``cols``) only bounds what a host displays; it grows
    when a cell outside it is stored.
    """

    __slots__ = ("_cells", "_rows", "_cols", "metadata")

    def __init__(
        self,
        rows: int = 0,
        cols: int = 0,
        metadata: SheetMetadata | None = None,
    ) -> None:
        if rows < 0 or cols < 0:
            raise ValueError(f"Grid extent must be non-negative, got {rows}x{cols}")
        self._cells: dict[str, Cell] = {}
        self._rows = rows
        self._cols = cols
        self.metadata = metadata

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    # ------------------------------------------------------------------
    # Mapping access
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Cell:
        return self._cells[key.upper()]

    def __setitem__(self, key: str, cell: Cell) -> None:
        if key.upper() != cell.key:
            raise ValueError(f"Key {key!r} does not match cell at {cell.key}")
        self.put(cell)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.upper() in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self._cells == other._cells
            and self._rows == other._rows
            and self._cols == other._cols
        )

    def __repr__(self) -> str:
        return f"<Grid {self._rows}x{self._cols} cells={len(self._cells)}>"

    def get(self, key: str, default: Cell | None = None) -> Cell | None:
        return self._cells.get(key.upper(), default)

    def keys(self) -> Iterator[str]:
        return iter(self._cells.keys())

    def values(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def items(self) -> Iterator[tuple[str, Cell]]:
        return iter(self._cells.items())

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def put(self, cell: Cell) -> None:
        """Store *cell* under its own key, growing the extent if needed."""
        self._cells[cell.key] = cell
        if cell.row >= self._rows:
            self._rows = cell.row + 1
        if cell.col >= self._cols:
            self._cols = cell.col + 1

    def cell(self, row: int, col: int) -> Cell:
        """Cell at a zero-based coordinate; a blank cell when untouched."""
        existing = self._cells.get(cell_key(row, col))
        if existing is not None:
            return existing
        return Cell(row=row, col=col)

    def set_content(self, row: int, col: int, text: str) -> Cell:
        """Editor action: store *text* as a formula or a plain value.

        Text with a leading ``=`` becomes the cell's formula and clears the
        raw value. Anything else is stored as the raw value, tagged ``number``
        when it parses as one and ``text`` otherwise, unless the cell carries
        a layout type (header or a reserved column), which is kept.
        """
        current = self.cell(row, col)
        if current.read_only:
            raise ReadOnlyCellError(current.key)

        if text.startswith("="):
            updated = replace(current, value="", formula=text, cell_type=CellType.FORMULA)
        else:
            if current.cell_type in _STICKY_CELL_TYPES:
                cell_type = current.cell_type
            elif parse_number(text) is not None:
                cell_type = CellType.NUMBER
            else:
                cell_type = CellType.TEXT
            updated = replace(current, value=text, formula=None, cell_type=cell_type)

        self.put(updated)
        return updated

    def set_product(self, row: int, col: int, product_id: str, label: str = "") -> Cell:
        """Link the cell at (row, col) to a catalogue product.

        *label* becomes the raw value shown in the cell.
        """
        current = self.cell(row, col)
        if current.read_only:
            raise ReadOnlyCellError(current.key)
        updated = replace(
            current,
            value=label,
            formula=None,
            cell_type=CellType.PRODUCT,
            product_id=product_id,
        )
        self.put(updated)
        return updated

    def set_content_at(self, key: str, text: str) -> Cell:
        """:meth:`set_content` addressed by key (``"B3"``)."""
        coord = parse_cell_reference(key)
        if coord is None:
            raise ValueError(f"Invalid cell key: {key!r}")
        return self.set_content(coord[0], coord[1], text)

    def copy(self) -> Grid:
        """Shallow copy; cells are immutable so they are shared."""
        new = Grid(self._rows, self._cols, self.metadata)
        new._cells = dict(self._cells)
        return new

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------

    def computed_values(self) -> dict[str, Any]:
        """key -> computed value for every stored cell."""
        return {key: cell.computed_value for key, cell in self._cells.items()}

    def errors(self) -> dict[str, str]:
        """key -> error message for cells whose evaluation failed."""
        return {key: cell.error for key, cell in self._cells.items() if cell.error}


def create_empty_grid(
    rows: int,
    cols: int,
    metadata: SheetMetadata | None = None,
) -> Grid:
    """Grid with a blank cell at every coordinate of the extent.

    Without *metadata* row 0 is typed ``header`` and everything else
    ``text``. With metadata, header rows come from ``header_rows``, reserved
    columns get their labels and types, and an auto-numbered first column
    is filled with item numbers.
    """
    grid = Grid(rows, cols, metadata)
    header_rows = set(metadata.header_rows) if metadata is not None else {0}
    reserved = metadata.reserved_columns(cols) if metadata is not None else None
    auto_number = metadata is not None and metadata.auto_number_column
    item_number = 0

    for row in range(rows):
        is_header = row in header_rows
        if not is_header:
            item_number += 1

        for col in range(cols):
            cell_type = CellType.HEADER if is_header else CellType.TEXT
            value = ""
            read_only = False

            if reserved is not None and col in reserved:
                slot = reserved.index(col)
                if is_header:
                    value = RESERVED_HEADERS[slot]
                    read_only = True
                else:
                    cell_type = (CellType.PRODUCT, CellType.PRICE, CellType.QUANTITY)[slot]
            elif auto_number and col == 0 and not is_header:
                cell_type = CellType.NUMBER
                value = str(item_number)
                read_only = True

            grid.put(Cell(
                row=row,
                col=col,
                value=value,
                cell_type=cell_type,
                read_only=read_only,
            ))

    return grid
