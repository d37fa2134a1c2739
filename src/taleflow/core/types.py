"""Shared type aliases for the core and domain layers."""
from typing import Literal, Union

VariableType = Literal["boolean", "number", "string", "array", "object"]
PrimitiveType = Literal["boolean", "number", "string"]
Primitive = Union[bool, int, float, str]

NodeType = Literal["content", "branch", "jump", "comment", "section", "annotation", "component"]

RunStatus = Literal["paused", "dead_end", "cycle_limit", "missing", "closed"]

__all__ = [
    "NodeType",
    "Primitive",
    "PrimitiveType",
    "RunStatus",
    "VariableType",
]
