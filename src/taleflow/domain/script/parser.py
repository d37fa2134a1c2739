"""Recursive-descent parser for the story script language."""
from __future__ import annotations

from typing import List, Optional, Sequence

from taleflow.domain.values import normalize_number

from .errors import ScriptSyntaxError
from .lexer import ASSIGNMENT_OPS, Token, tokenize
from .nodes import (
    ASSIGNABLE,
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

_LITERAL_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": None}


class Parser:
    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens = list(tokens)
        self.i = 0

    def cur(self) -> Token:
        return self.tokens[self.i]

    def peek(self, offset: int = 1) -> Token:
        j = min(self.i + offset, len(self.tokens) - 1)
        return self.tokens[j]

    def match(self, kind: str, value: Optional[str] = None) -> Optional[Token]:
        token = self.cur()
        if token.kind != kind:
            return None
        if value is not None and token.value != value:
            return None
        self.i += 1
        return token

    def check(self, kind: str, value: Optional[str] = None) -> bool:
        token = self.cur()
        return token.kind == kind and (value is None or token.value == value)

    def expect(self, kind: str, value: Optional[str] = None) -> Token:
        token = self.cur()
        if token.kind != kind or (value is not None and token.value != value):
            want = f"{kind}:{value}" if value else kind
            raise ScriptSyntaxError(
                f"Expected {want} on line {token.line}, got {token.kind}:{token.value!r}"
            )
        self.i += 1
        return token

    def skip_newlines(self) -> None:
        while self.match("NEWLINE"):
            pass

    def skip_separators(self) -> None:
        while self.match("NEWLINE") or self.match("OP", ";"):
            pass

    # statements

    def parse_program(self) -> List[Stmt]:
        body: List[Stmt] = []
        self.skip_separators()
        while not self.check("EOF"):
            body.append(self.parse_stmt())
            self.skip_separators()
        return body

    def parse_block(self) -> List[Stmt]:
        self.expect("OP", "{")
        body: List[Stmt] = []
        self.skip_separators()
        while not self.match("OP", "}"):
            if self.check("EOF"):
                raise ScriptSyntaxError("Unterminated block, expected '}'")
            body.append(self.parse_stmt())
            self.skip_separators()
        return body

    def parse_body(self) -> List[Stmt]:
        self.skip_newlines()
        if self.check("OP", "{"):
            return self.parse_block()
        return [self.parse_stmt()]

    def parse_stmt(self) -> Stmt:
        token = self.cur()
        if token.kind == "KW" and token.value in ("let", "const", "var"):
            self.i += 1
            name = self.expect("ID").value
            expr = self.parse_expr() if self.match("OP", "=") else None
            self.end_stmt()
            return Declare(name, expr)

        if self.match("KW", "if"):
            self.expect("OP", "(")
            test = self.parse_expr()
            self.expect("OP", ")")
            body = self.parse_body()
            orelse: List[Stmt] = []
            if self._else_follows():
                self.skip_newlines()
                self.expect("KW", "else")
                orelse = self.parse_body()
            return If(test, body, orelse)

        if self.check("OP", "{"):
            return If(Literal(True), self.parse_block())

        expr = self.parse_expr()
        if self.cur().kind == "OP" and self.cur().value in ASSIGNMENT_OPS:
            op = self.expect("OP").value
            if not isinstance(expr, ASSIGNABLE):
                raise ScriptSyntaxError(f"Invalid assignment target on line {token.line}")
            value = self.parse_expr()
            self.end_stmt()
            return Assign(expr, op, value)
        self.end_stmt()
        return ExprStmt(expr)

    def _else_follows(self) -> bool:
        offset = 0
        while self.peek(offset).kind == "NEWLINE":
            offset += 1
        token = self.peek(offset)
        return token.kind == "KW" and token.value == "else"

    def end_stmt(self) -> None:
        token = self.cur()
        if token.kind in ("NEWLINE", "EOF"):
            return
        if token.kind == "OP" and token.value in (";", "}"):
            return
        raise ScriptSyntaxError(f"Unexpected {token.value!r} on line {token.line}")

    # expressions

    def parse_expr(self) -> Expr:
        return self.parse_conditional()

    def parse_conditional(self) -> Expr:
        test = self.parse_or()
        if self.match("OP", "?"):
            then = self.parse_conditional()
            self.expect("OP", ":")
            otherwise = self.parse_conditional()
            return Conditional(test, then, otherwise)
        return test

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.match("OP", "||"):
            expr = Logical(expr, "||", self.parse_and())
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_eq()
        while self.match("OP", "&&"):
            expr = Logical(expr, "&&", self.parse_eq())
        return expr

    def parse_eq(self) -> Expr:
        expr = self.parse_cmp()
        while self.cur().kind == "OP" and self.cur().value in ("==", "!=", "===", "!=="):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_cmp())
        return expr

    def parse_cmp(self) -> Expr:
        expr = self.parse_term()
        while self.cur().kind == "OP" and self.cur().value in ("<", ">", "<=", ">="):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_term())
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.cur().kind == "OP" and self.cur().value in ("+", "-"):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_factor())
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.cur().kind == "OP" and self.cur().value in ("*", "/", "%"):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_unary())
        return expr

    def parse_unary(self) -> Expr:
        token = self.cur()
        if token.kind == "OP" and token.value in ("!", "-", "+"):
            self.i += 1
            return Unary(token.value, self.parse_unary())
        if token.kind == "OP" and token.value in ("++", "--"):
            self.i += 1
            target = self.parse_unary()
            if not isinstance(target, ASSIGNABLE):
                raise ScriptSyntaxError(f"Invalid {token.value} target on line {token.line}")
            return Update(target, token.value, prefix=True)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match("OP", "."):
                expr = Member(expr, self.expect("ID").value)
            elif self.match("OP", "["):
                index = self.parse_expr()
                self.expect("OP", "]")
                expr = Index(expr, index)
            elif self.match("OP", "("):
                expr = Call(expr, self._parse_items(")"))
            elif self.cur().kind == "OP" and self.cur().value in ("++", "--"):
                if not isinstance(expr, ASSIGNABLE):
                    break
                expr = Update(expr, self.expect("OP").value, prefix=False)
            else:
                return expr
        return expr

    def _parse_items(self, closing: str) -> List[Expr]:
        items: List[Expr] = []
        self.skip_newlines()
        if self.match("OP", closing):
            return items
        while True:
            items.append(self.parse_expr())
            self.skip_newlines()
            if self.match("OP", closing):
                return items
            self.expect("OP", ",")
            self.skip_newlines()
            if self.match("OP", closing):
                return items

    def parse_primary(self) -> Expr:
        token = self.cur()
        if self.match("NUMBER"):
            return Literal(normalize_number(float(token.value)))
        if self.match("STRING"):
            return Literal(token.value)
        if token.kind == "KW" and token.value in _LITERAL_KEYWORDS:
            self.i += 1
            return Literal(_LITERAL_KEYWORDS[token.value])
        if self.match("ID"):
            return Name(token.value)
        if self.match("OP", "("):
            expr = self.parse_expr()
            self.expect("OP", ")")
            return expr
        if self.match("OP", "["):
            return ArrayLiteral(self._parse_items("]"))
        if self.match("OP", "{"):
            return ObjectLiteral(self._parse_object_items())
        raise ScriptSyntaxError(
            f"Unexpected token on line {token.line}: {token.kind}:{token.value!r}"
        )

    def _parse_object_items(self) -> List[tuple[str, Expr]]:
        items: List[tuple[str, Expr]] = []
        self.skip_newlines()
        while not self.match("OP", "}"):
            key_token = self.cur()
            if key_token.kind in ("ID", "STRING", "NUMBER", "KW"):
                self.i += 1
                key = key_token.value
            else:
                raise ScriptSyntaxError(f"Invalid object key on line {key_token.line}")
            self.expect("OP", ":")
            items.append((key, self.parse_expr()))
            self.skip_newlines()
            if not self.match("OP", ","):
                self.skip_newlines()
                self.expect("OP", "}")
                return items
            self.skip_newlines()
        return items


def parse_script(source: str) -> List[Stmt]:
    """Parse script text into a list of statements."""
    try:
        return Parser(tokenize(source)).parse_program()
    except RecursionError as exc:
        raise ScriptSyntaxError("Script is nested too deeply") from exc
