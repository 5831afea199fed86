"""Restricted boolean expressions evaluated against an execution context.

Expressions look like JavaScript or Python boolean tests over the run state::

    context.variables.skip == true
    context.stepResults[0].content != 'error' && context.variables.loopIndex < 3
    not (context.variables.retries >= 2)

Only literals, ``context`` paths, comparisons and boolean connectives are
understood. Anything else, a missing path included, makes the whole
expression evaluate to ``False``.
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple

from .contracts import ExecutionContext
from .exceptions import ConditionError

logger = logging.getLogger(__name__)

Scope = Dict[str, Any]
Evaluator = Callable[[Scope], Any]
Token = Tuple[str, Any]

_TOKEN_RE = re.compile(
    r"""
    (?P<number>-?\d+(?:\.\d+)?)
    |(?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    |(?P<op>===|!==|==|!=|<=|>=|&&|\|\||[<>!().\[\]])
    |(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)


def _kind(value: Any) -> type:
    if isinstance(value, bool):
        return bool
    if isinstance(value, (int, float)):
        return float
    return type(value)


def _strict_eq(left: Any, right: Any) -> bool:
    """Equality that also requires both sides to be the same kind of value."""
    return _kind(left) is _kind(right) and left == right


def _strict_ne(left: Any, right: Any) -> bool:
    return not _strict_eq(left, right)


_COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "===": _strict_eq,
    "!=": operator.ne,
    "!==": _strict_ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_LITERALS = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "null": None,
    "None": None,
}

_OR = ("||", "or")
_AND = ("&&", "and")
_NOT = ("!", "not")


def _tokenize(expression: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    length = len(expression)
    while pos < length:
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise ConditionError(f"Unexpected character at {pos}: {expression[pos]!r}")
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "number":
            tokens.append(("literal", float(text) if "." in text else int(text)))
        elif kind == "string":
            tokens.append(("literal", re.sub(r"\\(.)", r"\1", text[1:-1])))
        elif kind == "name" and text in _LITERALS:
            tokens.append(("literal", _LITERALS[text]))
        else:
            tokens.append((kind, text))
        pos = match.end()
    return tokens


def _lookup(value: Any, segment: Any) -> Any:
    if isinstance(value, Mapping):
        if segment in value:
            return value[segment]
        raise ConditionError(f"Missing reference: {segment!r}")
    if isinstance(value, Sequence):
        if segment == "length":
            return len(value)
        if not isinstance(value, str):
            if (
                isinstance(segment, int)
                and not isinstance(segment, bool)
                and 0 <= segment < len(value)
            ):
                return value[segment]
    raise ConditionError(f"Cannot resolve {segment!r} on {type(value).__name__}")


def _path(segments: List[Any]) -> Evaluator:
    def resolve(scope: Scope) -> Any:
        value: Any = scope
        for segment in segments:
            value = _lookup(value, segment)
        return value

    return resolve


def _constant(value: Any) -> Evaluator:
    return lambda scope: value


def _compare(op: str, left: Evaluator, right: Evaluator) -> Evaluator:
    func = _COMPARISONS[op]

    def compare(scope: Scope) -> bool:
        try:
            return func(left(scope), right(scope))
        except TypeError as exc:
            raise ConditionError(str(exc)) from exc

    return compare


def _either(left: Evaluator, right: Evaluator) -> Evaluator:
    return lambda scope: bool(left(scope)) or bool(right(scope))


def _both(left: Evaluator, right: Evaluator) -> Evaluator:
    return lambda scope: bool(left(scope)) and bool(right(scope))


def _negate(inner: Evaluator) -> Evaluator:
    return lambda scope: not inner(scope)


class _Parser:
    """Recursive-descent parser compiling tokens into an evaluator closure."""

    def __init__(self, tokens: List[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> Optional[Token]:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _accept(self, *values: str) -> Optional[Token]:
        token = self._peek()
        if token is not None and token[0] in ("op", "name") and token[1] in values:
            self._pos += 1
            return token
        return None

    def _expect(self, value: str) -> None:
        if self._accept(value) is None:
            raise ConditionError(f"Expected {value!r} at token {self._pos}")

    def parse(self) -> Evaluator:
        if not self._tokens:
            raise ConditionError("Empty expression")
        evaluator = self._or()
        if self._peek() is not None:
            raise ConditionError(f"Unexpected token {self._peek()[1]!r}")
        return evaluator

    def _or(self) -> Evaluator:
        left = self._and()
        while self._accept(*_OR):
            left = _either(left, self._and())
        return left

    def _and(self) -> Evaluator:
        left = self._not()
        while self._accept(*_AND):
            left = _both(left, self._not())
        return left

    def _not(self) -> Evaluator:
        if self._accept(*_NOT):
            return _negate(self._not())
        return self._comparison()

    def _comparison(self) -> Evaluator:
        left = self._operand()
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in _COMPARISONS:
            self._pos += 1
            return _compare(token[1], left, self._operand())
        return left

    def _operand(self) -> Evaluator:
        token = self._peek()
        if token is None:
            raise ConditionError("Unexpected end of expression")
        kind, value = token
        if kind == "literal":
            self._pos += 1
            return _constant(value)
        if self._accept("("):
            inner = self._or()
            self._expect(")")
            return inner
        if kind == "name" and value == "context":
            self._pos += 1
            return self._path_segments()
        raise ConditionError(f"Unexpected token {value!r}")

    def _path_segments(self) -> Evaluator:
        segments: List[Any] = []
        while True:
            if self._accept("."):
                token = self._peek()
                if token is None or token[0] != "name":
                    raise ConditionError("Expected attribute name after '.'")
                segments.append(token[1])
                self._pos += 1
            elif self._accept("["):
                token = self._peek()
                if token is None or token[0] != "literal" or not isinstance(
                    token[1], (int, str)
                ):
                    raise ConditionError("Expected index or key inside '[]'")
                segments.append(token[1])
                self._pos += 1
                self._expect("]")
            else:
                return _path(segments)


@lru_cache(maxsize=256)
def compile_condition(expression: str) -> Evaluator:
    """Compile ``expression`` into a callable taking a context scope.

    Raises:
        ConditionError: If the expression is not part of the grammar.
    """
    return _Parser(_tokenize(expression)).parse()


def context_scope(context: ExecutionContext) -> Scope:
    """Expose the context fields an expression may reference."""
    return {
        "agent_id": context.agent_id,
        "agentId": context.agent_id,
        "execution_id": context.execution_id,
        "executionId": context.execution_id,
        "variables": context.variables,
        "step_results": context.step_results,
        "stepResults": context.step_results,
    }


def evaluate_condition(expression: str, context: ExecutionContext) -> bool:
    """Return the truth value of ``expression``; failures evaluate to ``False``."""
    try:
        evaluator = compile_condition(expression)
        return bool(evaluator(context_scope(context)))
    except (ConditionError, RecursionError) as exc:
        logger.warning(f"Condition {expression!r} evaluated to False: {exc}")
        return False
