"""Tree-walking interpreter for parsed story scripts.

Runtime values are plain Python objects: ``None`` (null/undefined), ``bool``,
``int``/``float``, ``str``, ``list`` and ``dict``. Operators follow the
loose arithmetic the authoring tool's scripts were written against: ``+``
concatenates when either side is text, division by zero yields infinities or
NaN, and out-of-range reads give ``None`` instead of failing.
"""
from __future__ import annotations

import math
import re
from typing import Callable, Dict, List, Mapping, MutableMapping, Sequence

from taleflow.core.rng import RNG
from taleflow.domain.values import (
    is_nan,
    normalize_number,
    to_display_string,
    to_number,
)

from .errors import ScriptRuntimeError
from .nodes import (
    ArrayLiteral,
    Assign,
    Binary,
    Call,
    Conditional,
    Declare,
    Expr,
    ExprStmt,
    If,
    Index,
    Literal,
    Logical,
    Member,
    Name,
    ObjectLiteral,
    Stmt,
    Unary,
    Update,
)

_INT_PREFIX_RE = re.compile(r"\s*[+-]?\d+")
_FLOAT_PREFIX_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_RUNTIME_FAILURES = (TypeError, ValueError, ArithmeticError, IndexError, KeyError, RecursionError)


def truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not is_nan(value)
    if isinstance(value, str):
        return value != ""
    return True


def strict_equal(left: object, right: object) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return left is right
    return type(left) is type(right) and left == right


def loose_equal(left: object, right: object) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return left is right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return to_number(left) == to_number(right)


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or is_nan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _remainder(left: float, right: float) -> float:
    if right == 0 or math.isinf(left) or is_nan(left) or is_nan(right):
        return math.nan
    if math.isinf(right):
        return left
    return math.fmod(left, right)


def _compare(op: str, left: object, right: object) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = to_number(left), to_number(right)
        if is_nan(a) or is_nan(b):
            return False
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    return a >= b


def _parse_int(value: object, base: object = None) -> int | float:
    text = to_display_string(value)
    if base is not None and to_number(base) == 16:
        match = re.match(r"\s*[+-]?(?:0[xX])?[0-9a-fA-F]+", text)
        return int(match.group(0).strip(), 16) if match else math.nan
    match = _INT_PREFIX_RE.match(text)
    return int(match.group(0)) if match else math.nan


def _parse_float(value: object) -> int | float:
    match = _FLOAT_PREFIX_RE.match(to_display_string(value))
    return normalize_number(float(match.group(0))) if match else math.nan


def _js_round(value: object) -> int | float:
    number = to_number(value)
    if is_nan(number) or math.isinf(number):
        return number
    return math.floor(number + 0.5)


def _numeric(fn: Callable[[float], float]) -> Callable[[object], int | float]:
    def apply(value: object = None) -> int | float:
        number = to_number(value)
        if is_nan(number) or math.isinf(number):
            return number
        return normalize_number(fn(number))

    return apply


def _extreme(pick: Callable[..., float], empty: float) -> Callable[..., int | float]:
    def apply(*values: object) -> int | float:
        numbers = [to_number(value) for value in values]
        if not numbers:
            return empty
        if any(is_nan(number) for number in numbers):
            return math.nan
        return normalize_number(pick(numbers))

    return apply


def _sqrt(value: object) -> int | float:
    number = to_number(value)
    if is_nan(number) or number < 0:
        return math.nan
    return normalize_number(math.sqrt(number))


def _pow(base: object, exponent: object) -> int | float:
    try:
        return normalize_number(math.pow(to_number(base), to_number(exponent)))
    except (OverflowError, ValueError):
        return math.nan


def build_globals(rng: RNG) -> Dict[str, object]:
    """Builtins visible to scripts, rebuilt per run so scripts cannot leak edits."""
    return {
        "Math": {
            "floor": _numeric(math.floor),
            "ceil": _numeric(math.ceil),
            "trunc": _numeric(math.trunc),
            "abs": _numeric(abs),
            "round": _js_round,
            "sqrt": _sqrt,
            "pow": _pow,
            "min": _extreme(min, math.inf),
            "max": _extreme(max, -math.inf),
            "random": rng.random,
            "PI": math.pi,
        },
        "Object": {
            "keys": lambda obj=None: list(obj.keys()) if isinstance(obj, dict) else [],
            "values": lambda obj=None: list(obj.values()) if isinstance(obj, dict) else [],
        },
        "String": lambda value="": to_display_string(value),
        "Number": lambda value=0: to_number(value),
        "Boolean": lambda value=None: truthy(value),
        "parseInt": _parse_int,
        "parseFloat": _parse_float,
        "isNaN": lambda value=None: is_nan(to_number(value)),
    }


class Interpreter:
    """Executes statements against a mutable name -> value scope.

    ``variables`` is the caller's scope of story variables and is modified in
    place; names introduced with ``let``/``const``/``var`` or assigned without
    being declared live in a separate local scope that is discarded.
    """

    def __init__(self, variables: MutableMapping[str, object], *, rng: RNG | None = None) -> None:
        self.variables = variables
        self.locals: Dict[str, object] = {}
        self.globals = build_globals(rng or RNG())

    def execute(self, program: Sequence[Stmt]) -> None:
        try:
            self._exec_block(program)
        except _RUNTIME_FAILURES as exc:
            raise ScriptRuntimeError(str(exc) or exc.__class__.__name__) from exc

    def _exec_block(self, body: Sequence[Stmt]) -> None:
        for stmt in body:
            self.exec_stmt(stmt)

    def exec_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Declare):
            self.locals[stmt.name] = self.eval_expr(stmt.expr) if stmt.expr is not None else None
        elif isinstance(stmt, Assign):
            value = self.eval_expr(stmt.expr)
            if stmt.op != "=":
                value = self._binary(stmt.op[0], self.eval_expr(stmt.target), value)
            self._store(stmt.target, value)
        elif isinstance(stmt, ExprStmt):
            self.eval_expr(stmt.expr)
        elif isinstance(stmt, If):
            self._exec_block(stmt.body if truthy(self.eval_expr(stmt.test)) else stmt.orelse)
        else:
            raise ScriptRuntimeError(f"Unsupported statement {stmt.__class__.__name__}")

    def eval_expr(self, expr: Expr) -> object:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Name):
            return self._lookup(expr.name)
        if isinstance(expr, Binary):
            return self._binary(expr.op, self.eval_expr(expr.left), self.eval_expr(expr.right))
        if isinstance(expr, Logical):
            left = self.eval_expr(expr.left)
            if expr.op == "&&":
                return self.eval_expr(expr.right) if truthy(left) else left
            return left if truthy(left) else self.eval_expr(expr.right)
        if isinstance(expr, Unary):
            operand = self.eval_expr(expr.operand)
            if expr.op == "!":
                return not truthy(operand)
            number = to_number(operand)
            return normalize_number(-number) if expr.op == "-" else number
        if isinstance(expr, Conditional):
            branch = expr.then if truthy(self.eval_expr(expr.test)) else expr.otherwise
            return self.eval_expr(branch)
        if isinstance(expr, Index):
            return self._get_item(self.eval_expr(expr.target), self.eval_expr(expr.index))
        if isinstance(expr, Member):
            return self._get_member(self.eval_expr(expr.target), expr.name)
        if isinstance(expr, Call):
            return self._call(expr)
        if isinstance(expr, Update):
            old = to_number(self.eval_expr(expr.target))
            new = normalize_number(old + 1 if expr.op == "++" else old - 1)
            self._store(expr.target, new)
            return new if expr.prefix else old
        if isinstance(expr, ArrayLiteral):
            return [self.eval_expr(item) for item in expr.items]
        if isinstance(expr, ObjectLiteral):
            return {key: self.eval_expr(value) for key, value in expr.items}
        raise ScriptRuntimeError(f"Unsupported expression {expr.__class__.__name__}")

    # names and storage

    def _lookup(self, name: str) -> object:
        if name in self.locals:
            return self.locals[name]
        if name in self.variables:
            return self.variables[name]
        if name in self.globals:
            return self.globals[name]
        raise ScriptRuntimeError(f"{name} is not defined")

    def _store(self, target: Expr, value: object) -> None:
        if isinstance(target, Name):
            if target.name in self.locals or target.name not in self.variables:
                self.locals[target.name] = value
            else:
                self.variables[target.name] = value
        elif isinstance(target, Index):
            self._set_item(self.eval_expr(target.target), self.eval_expr(target.index), value)
        elif isinstance(target, Member):
            container = self.eval_expr(target.target)
            if not isinstance(container, dict):
                raise ScriptRuntimeError(f"Cannot set property '{target.name}' of {to_display_string(container)}")
            container[target.name] = value
        else:
            raise ScriptRuntimeError("Invalid assignment target")

    def _get_item(self, container: object, key: object) -> object:
        if isinstance(container, (list, str)):
            if key == "length":
                return len(container)
            index = to_number(key)
            if isinstance(index, int) and 0 <= index < len(container):
                return container[index]
            return None
        if isinstance(container, dict):
            return container.get(to_display_string(key))
        if container is None:
            raise ScriptRuntimeError(f"Cannot read properties of null (reading '{to_display_string(key)}')")
        return None

    def _set_item(self, container: object, key: object, value: object) -> None:
        if isinstance(container, list):
            index = to_number(key)
            if not isinstance(index, int) or index < 0:
                raise ScriptRuntimeError(f"Invalid array index {to_display_string(key)}")
            # writes may replace an element or append one; gaps are refused
            if index > len(container):
                raise ScriptRuntimeError(
                    f"Array index {index} is past the end of an array of length {len(container)}"
                )
            if index == len(container):
                container.append(value)
            else:
                container[index] = value
        elif isinstance(container, dict):
            container[to_display_string(key)] = value
        else:
            raise ScriptRuntimeError(f"Cannot set index {to_display_string(key)} of {to_display_string(container)}")

    def _get_member(self, target: object, name: str) -> object:
        if isinstance(target, list):
            return _array_member(target, name)
        if isinstance(target, str):
            return _string_member(target, name)
        if isinstance(target, dict):
            return target.get(name)
        if target is None:
            raise ScriptRuntimeError(f"Cannot read properties of null (reading '{name}')")
        return None

    def _call(self, expr: Call) -> object:
        callee = self.eval_expr(expr.callee)
        args = [self.eval_expr(arg) for arg in expr.args]
        if not callable(callee):
            raise ScriptRuntimeError(f"{_describe(expr.callee)} is not a function")
        return callee(*args)

    # operators

    def _binary(self, op: str, left: object, right: object) -> object:
        if op == "+":
            if _is_textual(left) or _is_textual(right):
                return to_display_string(left) + to_display_string(right)
            return normalize_number(to_number(left) + to_number(right))
        if op in ("-", "*", "/", "%"):
            a, b = to_number(left), to_number(right)
            if op == "-":
                result = a - b
            elif op == "*":
                result = a * b
            elif op == "/":
                result = _divide(a, b)
            else:
                result = _remainder(a, b)
            return normalize_number(result)
        if op == "===":
            return strict_equal(left, right)
        if op == "!==":
            return not strict_equal(left, right)
        if op == "==":
            return loose_equal(left, right)
        if op == "!=":
            return not loose_equal(left, right)
        if op in ("<", ">", "<=", ">="):
            return _compare(op, left, right)
        raise ScriptRuntimeError(f"Unsupported operator {op}")


def _is_textual(value: object) -> bool:
    return isinstance(value, (str, list, dict))


def _describe(expr: Expr) -> str:
    if isinstance(expr, Name):
        return expr.name
    if isinstance(expr, Member):
        return f"{_describe(expr.target)}.{expr.name}"
    return "expression"


def _array_member(items: List[object], name: str) -> object:
    if name == "length":
        return len(items)
    methods: Mapping[str, Callable[..., object]] = {
        "push": lambda *values: (items.extend(values), len(items))[1],
        "pop": lambda: items.pop() if items else None,
        "shift": lambda: items.pop(0) if items else None,
        "unshift": lambda *values: (items.__setitem__(slice(0, 0), values), len(items))[1],
        "includes": lambda value=None: any(strict_equal(item, value) for item in items),
        "indexOf": lambda value=None: next(
            (index for index, item in enumerate(items) if strict_equal(item, value)), -1
        ),
        "join": lambda sep=",": to_display_string(sep).join(
            "" if item is None else to_display_string(item) for item in items
        ),
        "slice": lambda start=0, end=None: items[_slice_bound(start, len(items)) : _slice_bound(end, len(items))],
    }
    if name in methods:
        return methods[name]
    return None


def _string_member(text: str, name: str) -> object:
    if name == "length":
        return len(text)
    methods: Mapping[str, Callable[..., object]] = {
        "toUpperCase": lambda: text.upper(),
        "toLowerCase": lambda: text.lower(),
        "trim": lambda: text.strip(),
        "includes": lambda value="": to_display_string(value) in text,
        "indexOf": lambda value="": text.find(to_display_string(value)),
        "slice": lambda start=0, end=None: text[_slice_bound(start, len(text)) : _slice_bound(end, len(text))],
    }
    return methods.get(name)


def _slice_bound(value: object, length: int) -> int | None:
    if value is None:
        return None
    number = to_number(value)
    if is_nan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    return int(number)
