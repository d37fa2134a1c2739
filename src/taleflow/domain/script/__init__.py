"""Minimal imperative script language for node content."""

from .errors import ScriptError, ScriptRuntimeError, ScriptSyntaxError
from .interpreter import Interpreter
from .lexer import Token, tokenize
from .parser import parse_script
from .runner import extract_script, run_script

__all__ = [
    "Interpreter",
    "ScriptError",
    "ScriptRuntimeError",
    "ScriptSyntaxError",
    "Token",
    "extract_script",
    "parse_script",
    "run_script",
    "tokenize",
]
