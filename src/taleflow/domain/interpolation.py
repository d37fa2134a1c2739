"""``{{expr}}`` placeholder substitution for displayed content."""
from __future__ import annotations

import re
from typing import Dict, Sequence

from taleflow.domain.values import ArrayValue, ObjectValue, Variable, format_value, to_display_string

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")
_INDEX_RE = re.compile(r"^([^\[\].\s]+)\s*\[\s*(\d+)\s*\]$")
_KEY_RE = re.compile(r"^([^\[\].\s]+)\.([^\[\].\s]+)$")


def interpolate(text: str, variables: Sequence[Variable]) -> str:
    """Replace placeholders with variable values.

    Supports ``name[index]`` for arrays, ``name.key`` for objects and plain
    ``name``. Unresolvable placeholders are left exactly as written, so the
    operation is idempotent.
    """
    if not text or "{{" not in text:
        return text
    by_name: Dict[str, Variable] = {}
    for variable in variables:
        by_name.setdefault(variable.name, variable)

    def replace(match: re.Match[str]) -> str:
        resolved = _resolve(match.group(1), by_name)
        return match.group(0) if resolved is None else resolved

    return _PLACEHOLDER_RE.sub(replace, text)


def _resolve(expr: str, by_name: Dict[str, Variable]) -> str | None:
    index_match = _INDEX_RE.match(expr)
    if index_match:
        variable = by_name.get(index_match.group(1))
        if variable is None or not isinstance(variable.value, ArrayValue):
            return None
        index = int(index_match.group(2))
        elements = variable.value.elements
        if index >= len(elements):
            return None
        return to_display_string(elements[index])

    key_match = _KEY_RE.match(expr)
    if key_match:
        variable = by_name.get(key_match.group(1))
        if variable is None or not isinstance(variable.value, ObjectValue):
            return None
        entry = variable.value.keys.get(key_match.group(2))
        return None if entry is None else to_display_string(entry.value)

    variable = by_name.get(expr)
    if variable is None:
        return None
    return format_value(variable.value)
