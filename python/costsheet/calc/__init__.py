"""costsheet.calc - Formula evaluation engine for cost sheet grids."""

from costsheet.calc._errors import (
    ERROR_SENTINEL,
    CircularReferenceError,
    ExpressionError,
    FormulaError,
    MalformedReferenceError,
    UnknownFunctionError,
)
from costsheet.calc._evaluator import RESULT_DECIMALS, evaluate_formula, round_half_up
from costsheet.calc._functions import BUILTIN_FUNCTIONS, FunctionRegistry, is_supported
from costsheet.calc._graph import DependencyGraph
from costsheet.calc._parser import all_references, expand_range
from costsheet.calc._protocol import CellDelta, EvalResult, ValueResolver
from costsheet.calc._recalc import apply_edit, diff_grids, recalculate_grid

__all__ = [
    "BUILTIN_FUNCTIONS",
    "CellDelta",
    "CircularReferenceError",
    "DependencyGraph",
    "ERROR_SENTINEL",
    "EvalResult",
    "ExpressionError",
    "FormulaError",
    "FunctionRegistry",
    "MalformedReferenceError",
    "RESULT_DECIMALS",
    "UnknownFunctionError",
    "ValueResolver",
    "all_references",
    "apply_edit",
    "diff_grids",
    "evaluate_formula",
    "expand_range",
    "is_supported",
    "recalculate_grid",
    "round_half_up",
]
