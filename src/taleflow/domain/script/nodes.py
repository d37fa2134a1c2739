"""Syntax tree for the story script language."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(slots=True)
class Expr:
    pass


@dataclass(slots=True)
class Literal(Expr):
    value: object


@dataclass(slots=True)
class Name(Expr):
    name: str


@dataclass(slots=True)
class Unary(Expr):
    op: str
    operand: Expr


@dataclass(slots=True)
class Binary(Expr):
    left: Expr
    op: str
    right: Expr


@dataclass(slots=True)
class Logical(Expr):
    left: Expr
    op: str
    right: Expr


@dataclass(slots=True)
class Conditional(Expr):
    test: Expr
    then: Expr
    otherwise: Expr


@dataclass(slots=True)
class Index(Expr):
    target: Expr
    index: Expr


@dataclass(slots=True)
class Member(Expr):
    target: Expr
    name: str


@dataclass(slots=True)
class Call(Expr):
    callee: Expr
    args: List[Expr]


@dataclass(slots=True)
class Update(Expr):
    """``++``/``--`` applied to an assignable target."""

    target: Expr
    op: str
    prefix: bool


@dataclass(slots=True)
class ArrayLiteral(Expr):
    items: List[Expr]


@dataclass(slots=True)
class ObjectLiteral(Expr):
    items: List[Tuple[str, Expr]]


@dataclass(slots=True)
class Stmt:
    pass


@dataclass(slots=True)
class Declare(Stmt):
    name: str
    expr: Expr | None


@dataclass(slots=True)
class Assign(Stmt):
    target: Expr
    op: str
    expr: Expr


@dataclass(slots=True)
class ExprStmt(Stmt):
    expr: Expr


@dataclass(slots=True)
class If(Stmt):
    test: Expr
    body: List[Stmt]
    orelse: List[Stmt] = field(default_factory=list)


ASSIGNABLE = (Name, Index, Member)
