"""ValueResolver protocol and result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class EvalResult:
    """Outcome of evaluating one formula."""

    value: float | str  # number, or the ERROR_SENTINEL on failure
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CellDelta:
    """A single cell's computed-value change between two grid states."""

    key: str  # canonical "A1"
    old_value: float | str | None
    new_value: float | str | None
    old_error: str | None = None
    new_error: str | None = None
    formula: str | None = None  # the formula that produced new_value


@runtime_checkable
class ValueResolver(Protocol):
    """What the arithmetic parser needs from its surroundings."""

    def cell(self, ref: str) -> float:
        """Numeric value of a single reference such as ``"B3"``."""
        ...

    def range(self, ref: str) -> list[float]:
        """Numeric values of every cell in ``"A1:B5"``, row-major."""
        ...

    def call(self, name: str, args: list[float]) -> float:
        """Apply the function *name* to already-resolved arguments."""
        ...
