"""Typed variable values and the coercion rules applied on assignment.

Coercion never raises. Values that do not fit a collection type leave the
variable untouched, and numeric text that cannot be parsed becomes ``NaN``
for the caller to guard against.
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field, replace
from typing import Mapping, Sequence, Tuple, Union

from taleflow.core.types import Primitive, PrimitiveType, VariableType

PRIMITIVE_TYPES: Tuple[PrimitiveType, ...] = ("boolean", "number", "string")
VARIABLE_TYPES: Tuple[VariableType, ...] = PRIMITIVE_TYPES + ("array", "object")

_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_QUOTES = "'\""


@dataclass(frozen=True, slots=True)
class ArrayValue:
    """Ordered sequence of a single primitive type."""

    element_type: PrimitiveType
    elements: Tuple[Primitive, ...] = ()


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    type: PrimitiveType
    value: Primitive


@dataclass(frozen=True, slots=True)
class ObjectValue:
    """Mapping of key name to a typed primitive entry."""

    keys: Mapping[str, ObjectEntry] = field(default_factory=dict)


VariableValue = Union[Primitive, ArrayValue, ObjectValue]


@dataclass(frozen=True, slots=True)
class Variable:
    """Project variable. Instances are never mutated; coercion returns a copy."""

    id: str
    name: str
    type: VariableType
    value: VariableValue


def is_nan(value: object) -> bool:
    return isinstance(value, float) and math.isnan(value)


def normalize_number(value: float | int | bool) -> int | float:
    """Return ints for integral values so ``15.0`` renders as ``15``."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def to_number(raw: object) -> int | float:
    """Numeric parse with script-runtime semantics; unparseable input is NaN."""
    if isinstance(raw, (bool, int, float)):
        return normalize_number(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0
        if _NUMBER_RE.fullmatch(text):
            return normalize_number(float(text))
        if _HEX_RE.fullmatch(text):
            return int(text, 16)
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
    return math.nan


def to_boolean(raw: object) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() == "true"
    if is_nan(raw):
        return False
    return bool(raw)


def format_number(value: int | float) -> str:
    if is_nan(value):
        return "NaN"
    if isinstance(value, float) and math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return str(normalize_number(value))


def to_display_string(raw: object) -> str:
    """String conversion used for assignment and rendering."""
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return format_number(raw)
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (list, tuple, dict)):
        return to_json(raw)
    return str(raw)


def to_json(raw: object) -> str:
    """Compact JSON with integral numbers rendered as ints."""
    return json.dumps(_jsonable(raw), separators=(",", ":"), ensure_ascii=False)


def _jsonable(raw: object) -> object:
    if isinstance(raw, bool) or raw is None or isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float)):
        if is_nan(raw) or (isinstance(raw, float) and math.isinf(raw)):
            return None
        return normalize_number(raw)
    if isinstance(raw, (list, tuple)):
        return [_jsonable(item) for item in raw]
    if isinstance(raw, Mapping):
        return {str(key): _jsonable(value) for key, value in raw.items()}
    return str(raw)


def infer_primitive_type(raw: object) -> PrimitiveType:
    if isinstance(raw, bool):
        return "boolean"
    if isinstance(raw, (int, float)):
        return "number"
    return "string"


def coerce_primitive(raw: object, primitive_type: PrimitiveType) -> Primitive:
    if primitive_type == "boolean":
        return to_boolean(raw)
    if primitive_type == "number":
        return to_number(raw)
    return to_display_string(raw)


def coerce_value(variable: Variable, raw: object) -> Variable:
    """Return ``variable`` with ``raw`` converted into its declared type.

    Collections only accept collections; anything else returns the variable
    unchanged (the same object).
    """
    if variable.type == "array":
        if not isinstance(raw, (list, tuple)):
            return variable
        element_type = _array_element_type(variable)
        elements = tuple(coerce_primitive(item, element_type) for item in raw)
        return replace(variable, value=ArrayValue(element_type=element_type, elements=elements))
    if variable.type == "object":
        if not isinstance(raw, Mapping):
            return variable
        keys = {}
        for key, item in raw.items():
            item_type = infer_primitive_type(item)
            keys[str(key)] = ObjectEntry(type=item_type, value=coerce_primitive(item, item_type))
        return replace(variable, value=ObjectValue(keys=keys))
    return replace(variable, value=coerce_primitive(raw, variable.type))


def _array_element_type(variable: Variable) -> PrimitiveType:
    if isinstance(variable.value, ArrayValue):
        return variable.value.element_type
    return "string"


def parse_literal(text: str, primitive_type: PrimitiveType) -> Primitive:
    """Interpret a literal token written by an author (e.g. in a condition)."""
    token = text.strip()
    if primitive_type == "boolean":
        return token == "true"
    if primitive_type == "number":
        return to_number(token)
    if len(token) >= 2 and token[0] == token[-1] and token[0] in _QUOTES:
        return token[1:-1]
    return "".join(char for char in token if char not in _QUOTES)


def to_runtime(variable: Variable) -> object:
    """Plain Python value bound to the variable's name while a script runs."""
    value = variable.value
    if isinstance(value, ArrayValue):
        return list(value.elements)
    if isinstance(value, ObjectValue):
        return {key: entry.value for key, entry in value.keys.items()}
    return value


def runtime_equal(left: object, right: object) -> bool:
    """Value comparison used to detect whether a script changed a binding."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if is_nan(left) and is_nan(right):
        return True
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(runtime_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(runtime_equal(left[key], right[key]) for key in left)
    if type(left) is not type(right) and not (
        isinstance(left, (int, float)) and isinstance(right, (int, float))
    ):
        return False
    return left == right


def format_value(value: VariableValue) -> str:
    """Canonical rendering: JSON for collections, string form for primitives."""
    if isinstance(value, ArrayValue):
        return to_json(list(value.elements))
    if isinstance(value, ObjectValue):
        return to_json({key: entry.value for key, entry in value.keys.items()})
    return to_display_string(value)


def find_variable(variables: Sequence[Variable], name: str) -> Variable | None:
    for variable in variables:
        if variable.name == name:
            return variable
    return None


__all__ = [
    "ArrayValue",
    "ObjectEntry",
    "ObjectValue",
    "PRIMITIVE_TYPES",
    "VARIABLE_TYPES",
    "Variable",
    "VariableValue",
    "coerce_primitive",
    "coerce_value",
    "find_variable",
    "format_number",
    "format_value",
    "infer_primitive_type",
    "is_nan",
    "normalize_number",
    "parse_literal",
    "runtime_equal",
    "to_boolean",
    "to_display_string",
    "to_json",
    "to_number",
    "to_runtime",
]
