"""Builtin aggregate functions and the registry the evaluator dispatches to.

Every function is a pure reducer over the numeric values of its arguments,
with ranges already flattened into one value per cell.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from types import MappingProxyType

Reducer = Callable[[Sequence[float]], float]


# ---------------------------------------------------------------------------
# Builtin implementations
# ---------------------------------------------------------------------------


def _builtin_sum(args: Sequence[float]) -> float:
    return math.fsum(args)


def _builtin_average(args: Sequence[float]) -> float:
    if not args:
        return 0.0
    return math.fsum(args) / len(args)


def _builtin_min(args: Sequence[float]) -> float:
    return min(args) if args else 0.0


def _builtin_max(args: Sequence[float]) -> float:
    return max(args) if args else 0.0


def _builtin_count(args: Sequence[float]) -> float:
    return float(sum(1 for a in args if not math.isnan(a)))


def _builtin_abs(args: Sequence[float]) -> float:
    return abs(args[0]) if args else 0.0


def _builtin_round(args: Sequence[float]) -> float:
    # Halves round towards positive infinity: ROUND(2.5) == 3, ROUND(-2.5) == -2.
    return float(math.floor(args[0] + 0.5)) if args else 0.0


def _builtin_if(args: Sequence[float]) -> float:
    if not args:
        return 0.0
    if args[0] and not math.isnan(args[0]):
        return args[1] if len(args) > 1 else 0.0
    return args[2] if len(args) > 2 else 0.0


BUILTIN_FUNCTIONS: MappingProxyType[str, Reducer] = MappingProxyType({
    "SUM": _builtin_sum,
    "AVERAGE": _builtin_average,
    "MIN": _builtin_min,
    "MAX": _builtin_max,
    "COUNT": _builtin_count,
    "ABS": _builtin_abs,
    "ROUND": _builtin_round,
    "IF": _builtin_if,
})


def is_supported(func_name: str) -> bool:
    """Check if a function name is one of the builtins."""
    return func_name.upper() in BUILTIN_FUNCTIONS


class FunctionRegistry:
    """Registry of callable function implementations.

    Starts with the builtins and can be extended with custom reducers.
    The builtin table itself is read-only, so registering on one registry
    never affects another.
    """

    def __init__(self) -> None:
        self._functions: dict[str, Reducer] = dict(BUILTIN_FUNCTIONS)

    def register(self, name: str, func: Reducer) -> None:
        self._functions[name.upper()] = func

    def get(self, name: str) -> Reducer | None:
        return self._functions.get(name.upper())

    def has(self, name: str) -> bool:
        return name.upper() in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())

