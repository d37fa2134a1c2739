"""Branch condition evaluation.

A condition is a single comparison between a story variable and a literal::

    hasKey == true
    gold >= 10
    inventory[0] == "sword"
    stats.hp < 5
    party.length > 2

Anything that cannot be resolved (unknown variable, missing operator, text
that does not fit the grammar) evaluates to ``False``. Empty text and the
literal ``true`` always pass.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from taleflow.core.types import Primitive, PrimitiveType
from taleflow.domain.script.errors import ScriptSyntaxError
from taleflow.domain.script.lexer import Token, tokenize
from taleflow.domain.values import (
    ArrayValue,
    ObjectValue,
    Variable,
    find_variable,
    is_nan,
    parse_literal,
    to_number,
)

logger = logging.getLogger(__name__)

_OPERATORS = {"==": "==", "===": "==", "!=": "!=", "!==": "!=", ">": ">", "<": "<", ">=": ">=", "<=": "<="}


@dataclass(frozen=True, slots=True)
class Comparison:
    name: str
    accessor: str | None
    key: str | None
    operator: str
    literal: str


@dataclass(frozen=True, slots=True)
class _Operand:
    value: Primitive
    type: PrimitiveType


def parse_condition(condition_text: str) -> Comparison | None:
    """Parse ``operand OP literal``; return None when the text does not fit."""
    try:
        tokens = [token for token in tokenize(condition_text) if token.kind not in ("NEWLINE", "EOF")]
    except ScriptSyntaxError:
        return None
    if len(tokens) < 3 or tokens[0].kind != "ID":
        return None

    name = tokens[0].value
    accessor: str | None = None
    key: str | None = None
    position = 1
    if _is_op(tokens, position, "["):
        if len(tokens) <= position + 3 or tokens[position + 1].kind != "NUMBER" or not _is_op(tokens, position + 2, "]"):
            return None
        accessor, key = "index", tokens[position + 1].value
        position += 3
    elif _is_op(tokens, position, "."):
        if len(tokens) <= position + 2 or tokens[position + 1].kind != "ID":
            return None
        accessor, key = "key", tokens[position + 1].value
        position += 2

    operator_token = tokens[position] if position < len(tokens) else None
    if operator_token is None or operator_token.kind != "OP" or operator_token.value not in _OPERATORS:
        return None
    literal_tokens = tokens[position + 1 :]
    if not literal_tokens:
        return None
    literal = condition_text[literal_tokens[0].pos :].strip()
    return Comparison(
        name=name,
        accessor=accessor,
        key=key,
        operator=_OPERATORS[operator_token.value],
        literal=literal,
    )


def _is_op(tokens: List[Token], position: int, value: str) -> bool:
    return position < len(tokens) and tokens[position].kind == "OP" and tokens[position].value == value


def evaluate_condition(condition_text: str | None, variables: Sequence[Variable]) -> bool:
    """Evaluate a branch condition against the current variables."""
    text = (condition_text or "").strip()
    if not text or text == "true":
        return True

    comparison = parse_condition(text)
    if comparison is None:
        logger.debug("Condition %r is not a comparison; treating as false", text)
        return False
    variable = find_variable(variables, comparison.name)
    if variable is None:
        logger.debug("Condition %r references unknown variable '%s'", text, comparison.name)
        return False
    operand = _resolve_operand(variable, comparison)
    if operand is None:
        return False

    target = parse_literal(comparison.literal, operand.type)
    if is_nan(target):
        return False
    return _apply(comparison.operator, operand, target)


def _resolve_operand(variable: Variable, comparison: Comparison) -> _Operand | None:
    value = variable.value
    if comparison.accessor == "index":
        if not isinstance(value, ArrayValue):
            return None
        index = int(comparison.key or "0") if (comparison.key or "").isdigit() else -1
        if not 0 <= index < len(value.elements):
            return None
        return _Operand(value=value.elements[index], type=value.element_type)
    if comparison.accessor == "key":
        if comparison.key == "length" and isinstance(value, (ArrayValue, str)):
            size = len(value.elements) if isinstance(value, ArrayValue) else len(value)
            return _Operand(value=size, type="number")
        if not isinstance(value, ObjectValue) or comparison.key not in value.keys:
            return None
        entry = value.keys[comparison.key]
        return _Operand(value=entry.value, type=entry.type)
    if isinstance(value, (ArrayValue, ObjectValue)):
        return None
    return _Operand(value=value, type=variable.type)


def _apply(operator: str, operand: _Operand, target: Primitive) -> bool:
    current = operand.value
    if operator in ("==", "!="):
        if operand.type == "number":
            equal = to_number(current) == target
        else:
            equal = current == target
        return equal if operator == "==" else not equal
    left = to_number(current)
    right = to_number(target)
    if is_nan(left) or is_nan(right):
        return False
    if operator == ">":
        return left > right
    if operator == "<":
        return left < right
    if operator == ">=":
        return left >= right
    return left <= right
