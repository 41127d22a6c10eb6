"""Tokenizer and recursive descent parser for formula arithmetic.

Grammar (standard precedence, left-associative)::

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | REF | RANGE | FUNC '(' [arg (',' arg)*] ')' | '(' expr ')'
    arg     := RANGE | expr

Nothing here executes code: references, ranges and function calls are handed
to a :class:`~costsheet.calc._protocol.ValueResolver`.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from costsheet._utils import parse_cell_reference, parse_range
from costsheet.calc._errors import ExpressionError, MalformedReferenceError

if TYPE_CHECKING:
    from costsheet.calc._protocol import ValueResolver

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

NUMBER = "NUMBER"
REF = "REF"
RANGE = "RANGE"
FUNC = "FUNC"
OP = "OP"
LPAREN = "("
RPAREN = ")"
COMMA = ","

_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
# Thousands-grouped number, only recognised outside function argument lists.
_GROUPED_NUMBER_RE = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d*)?(?![\d,])", re.ASCII)
_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_.$]*")
_REF_SHAPE_RE = re.compile(r"^\$?[A-Za-z]+\$?\d+$", re.ASCII)
_RANGE_TAIL_RE = re.compile(r"\s*:\s*([A-Za-z0-9_.$]*)")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    number: float = 0.0


def tokenize(expr: str) -> list[Token]:
    """Split a formula body into tokens.

    Characters that are not part of the grammar are stripped. Words that are
    neither references nor function names are stripped too, but a word shaped
    like a reference that does not parse (``A0``) is an error.
    """
    tokens: list[Token] = []
    # One entry per open paren: True when it opened a function call.
    paren_stack: list[bool] = []
    i = 0
    length = len(expr)

    while i < length:
        ch = expr[i]

        if ch.isspace():
            i += 1
            continue

        # Only ASCII starts a number or a word; anything else is stripped below.
        if _is_digit(ch) or (ch == "." and i + 1 < length and _is_digit(expr[i + 1])):
            in_call = bool(paren_stack) and paren_stack[-1]
            m = None if in_call else _GROUPED_NUMBER_RE.match(expr, i)
            if m is None:
                m = _NUMBER_RE.match(expr, i)
            text = m.group(0)
            tokens.append(Token(NUMBER, text, i, float(text.replace(",", ""))))
            i = m.end()
            continue

        if (ch.isascii() and ch.isalpha()) or ch in "_$":
            m = _IDENT_RE.match(expr, i)
            word = m.group(0)
            end = m.end()
            j = end
            while j < length and expr[j].isspace():
                j += 1

            if j < length and expr[j] == "(" and "$" not in word:
                tokens.append(Token(FUNC, word.upper(), i))
                paren_stack.append(True)
                i = j + 1
                continue

            if _REF_SHAPE_RE.match(word):
                tail = _RANGE_TAIL_RE.match(expr, end)
                if tail is not None:
                    text = f"{word}:{tail.group(1)}"
                    if parse_range(text.replace("$", "")) is None:
                        raise MalformedReferenceError(text)
                    tokens.append(Token(RANGE, text.replace("$", "").upper(), i))
                    i = tail.end()
                    continue
                ref = word.replace("$", "")
                if parse_cell_reference(ref) is None:
                    raise MalformedReferenceError(word)
                tokens.append(Token(REF, ref.upper(), i))
                i = end
                continue

            i = end
            continue

        if ch in "+-*/":
            tokens.append(Token(OP, ch, i))
        elif ch == "(":
            tokens.append(Token(LPAREN, ch, i))
            paren_stack.append(False)
        elif ch == ")":
            tokens.append(Token(RPAREN, ch, i))
            if paren_stack:
                paren_stack.pop()
        elif ch == ",":
            tokens.append(Token(COMMA, ch, i))
        elif ch == ":":
            raise MalformedReferenceError(expr[max(0, i - 1) : i + 2].strip())
        i += 1

    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _apply(left: float, op: str, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        # Non-finite results collapse to 0 at the end of evaluation.
        return math.nan if left == 0 or math.isnan(left) else math.copysign(math.inf, left)
    return left / right


class ArithmeticParser:
    """Evaluates one formula body while parsing it."""

    def __init__(self, expr: str, resolver: ValueResolver) -> None:
        self._tokens = tokenize(expr)
        self._pos = 0
        self._resolver = resolver

    def evaluate(self) -> float:
        """Reduce the whole expression to a number; empty input is 0."""
        if not self._tokens:
            return 0.0
        value = self._expr()
        tok = self._peek()
        if tok is not None:
            raise ExpressionError(f"unexpected {tok.text!r}", tok.pos)
        return value

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token | None:
        idx = self._pos + offset
        return self._tokens[idx] if idx < len(self._tokens) else None

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ExpressionError("unexpected end of formula")
        self._pos += 1
        return tok

    def _expect(self, kind: str) -> Token:
        tok = self._next()
        if tok.kind != kind:
            raise ExpressionError(f"expected {kind!r}, found {tok.text!r}", tok.pos)
        return tok

    def _at_op(self, ops: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind == OP and tok.text in ops

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def _expr(self) -> float:
        value = self._term()
        while self._at_op("+-"):
            op = self._next().text
            value = _apply(value, op, self._term())
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._at_op("*/"):
            op = self._next().text
            value = _apply(value, op, self._unary())
        return value

    def _unary(self) -> float:
        if self._at_op("+-"):
            op = self._next().text
            value = self._unary()
            return -value if op == "-" else value
        return self._primary()

    def _primary(self) -> float:
        tok = self._next()
        if tok.kind == NUMBER:
            return tok.number
        if tok.kind == REF:
            return self._resolver.cell(tok.text)
        if tok.kind == RANGE:
            # A bare range outside a function call is summed.
            return math.fsum(self._resolver.range(tok.text))
        if tok.kind == FUNC:
            args = self._arguments()
            return self._resolver.call(tok.text, args)
        if tok.kind == LPAREN:
            value = self._expr()
            self._expect(RPAREN)
            return value
        raise ExpressionError(f"unexpected {tok.text!r}", tok.pos)

    def _arguments(self) -> list[float]:
        """Parse a call's arguments up to and including its ``)``.

        A range argument contributes one value per cell.
        """
        values: list[float] = []
        tok = self._peek()
        if tok is not None and tok.kind == RPAREN:
            self._pos += 1
            return values

        while True:
            tok = self._peek()
            after = self._peek(1)
            if (
                tok is not None
                and tok.kind == RANGE
                and after is not None
                and after.kind in (COMMA, RPAREN)
            ):
                self._pos += 1
                values.extend(self._resolver.range(tok.text))
            else:
                values.append(self._expr())

            tok = self._next()
            if tok.kind == RPAREN:
                return values
            if tok.kind != COMMA:
                raise ExpressionError(f"expected ',' or ')', found {tok.text!r}", tok.pos)
