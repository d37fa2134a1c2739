"""Exceptions raised while parsing or running story scripts."""


class ScriptError(Exception):
    """Base exception for the script language."""


class ScriptSyntaxError(ScriptError):
    """Raised when script text cannot be tokenized or parsed."""


class ScriptRuntimeError(ScriptError):
    """Raised when a parsed script fails while executing."""
