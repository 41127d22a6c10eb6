"""Cell record stored in a :class:`~costsheet.Grid`."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from costsheet._utils import cell_key


class CellType(str, Enum):
    """Advisory tag describing what a cell holds."""

    TEXT = "text"
    NUMBER = "number"
    FORMULA = "formula"
    HEADER = "header"
    PRODUCT = "product"
    PRICE = "price"
    QUANTITY = "quantity"


# Types whose raw text is always read as a number during recalculation.
NUMERIC_CELL_TYPES = frozenset({CellType.NUMBER, CellType.PRICE, CellType.QUANTITY})


@dataclass(frozen=True)
class Cell:
    """A single grid cell.

    ``computed_value`` and ``error`` are derived by recalculation and are
    only meaningful after a recalculation pass.
    """

    row: int
    col: int
    value: str = ""
    formula: str | None = None
    cell_type: CellType = CellType.TEXT
    computed_value: float | str | None = None
    error: str | None = None
    product_id: str | None = None
    read_only: bool = False

    @property
    def key(self) -> str:
        return cell_key(self.row, self.col)

    @property
    def has_formula(self) -> bool:
        return bool(self.formula) and self.formula.startswith("=")

    @property
    def is_empty(self) -> bool:
        """True when the cell holds neither a raw value nor a formula."""
        return not self.value and not self.formula

    def with_result(self, value: float | str | None, error: str | None = None) -> Cell:
        """Copy of this cell carrying a new computed value and error."""
        return replace(self, computed_value=value, error=error)
