"""Tokenizer shared by story scripts and branch conditions."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from .errors import ScriptSyntaxError

KEYWORDS = frozenset({"let", "const", "var", "if", "else", "true", "false", "null", "undefined"})

ASSIGNMENT_OPS = frozenset({"=", "+=", "-=", "*=", "/=", "%="})

TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>//[^\n]*|/\*.*?\*/)
  | (?P<NUMBER>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<STRING>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')
  | (?P<OP>===|!==|\+\+|--|\+=|-=|\*=|/=|%=|==|!=|<=|>=|&&|\|\||[+\-*/%<>=!?:.,;(){}\[\]])
  | (?P<ID>[^\W\d][\w$]*|\$[\w$]*)
  | (?P<NEWLINE>\n)
  | (?P<SKIP>[ \t\r\f\v\u00a0]+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    value: str
    pos: int
    line: int


def tokenize(source: str) -> List[Token]:
    """Split source into tokens.

    Newlines act as statement separators, except inside parentheses and
    brackets where they are dropped so long calls can wrap.
    """
    tokens: List[Token] = []
    line = 1
    pos = 0
    depth = 0
    while pos < len(source):
        match = TOKEN_RE.match(source, pos)
        if not match:
            raise ScriptSyntaxError(f"Tokenizer stalled at line {line}")
        kind = match.lastgroup or "MISMATCH"
        value = match.group(0)
        if kind == "MISMATCH":
            raise ScriptSyntaxError(f"Unexpected character {value!r} on line {line}")
        if kind == "NEWLINE":
            if depth == 0:
                tokens.append(Token("NEWLINE", value, pos, line))
        elif kind == "ID" and value in KEYWORDS:
            tokens.append(Token("KW", value, pos, line))
        elif kind == "STRING":
            tokens.append(Token("STRING", _unescape(value[1:-1]), pos, line))
        elif kind == "OP":
            if value in "([":
                depth += 1
            elif value in ")]" and depth > 0:
                depth -= 1
            tokens.append(Token("OP", value, pos, line))
        elif kind not in ("SKIP", "COMMENT"):
            tokens.append(Token(kind, value, pos, line))
        line += value.count("\n")
        pos = match.end()
    tokens.append(Token("EOF", "", pos, line))
    return tokens


def _unescape(body: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape[0] in "ux" and len(escape) > 1:
            return chr(int(escape[1:], 16))
        return _SIMPLE_ESCAPES.get(escape, escape)

    return _ESCAPE_RE.sub(replace, body)
