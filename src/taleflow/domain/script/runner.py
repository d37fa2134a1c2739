"""Run script fragments embedded in node content against the variable store."""
from __future__ import annotations

import html
import logging
import re
from typing import Dict, Sequence, Tuple

from taleflow.core.rng import RNG
from taleflow.domain.values import Variable, coerce_value, is_nan, runtime_equal, to_runtime

from .errors import ScriptError
from .interpreter import Interpreter
from .parser import parse_script

logger = logging.getLogger(__name__)

_PRE_RE = re.compile(r"<pre\b[^>]*>(.*?)</pre\s*>", re.IGNORECASE | re.DOTALL)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_END_RE = re.compile(r"</(?:div|p)\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def extract_script(content: str | None) -> str:
    """Return the code held in the ``<pre>`` blocks of rich-text content."""
    if not content:
        return ""
    blocks = []
    for match in _PRE_RE.finditer(content):
        body = _BREAK_RE.sub("\n", match.group(1))
        body = _BLOCK_END_RE.sub("\n", body)
        body = _TAG_RE.sub("", body)
        blocks.append(html.unescape(body))
    return "\n".join(blocks)


def run_script(
    code: str,
    variables: Sequence[Variable],
    *,
    rng: RNG | None = None,
) -> Tuple[Variable, ...]:
    """Execute ``code`` and return the resulting variables.

    Variables the script did not change are returned as the same objects, and
    when nothing changed the input tuple itself is returned. A failing script
    is logged and leaves every variable at its previous value.
    """
    original = tuple(variables)
    if not code or not code.strip():
        return original

    scope: Dict[str, object] = {variable.name: to_runtime(variable) for variable in original}
    try:
        program = parse_script(code)
        Interpreter(scope, rng=rng).execute(program)
    except ScriptError as exc:
        logger.warning("Script failed, variables left unchanged: %s", exc)
        return original

    updated = []
    changed = False
    for variable in original:
        after = scope.get(variable.name)
        if runtime_equal(to_runtime(variable), after):
            updated.append(variable)
            continue
        coerced = coerce_value(variable, after)
        if variable.type == "number" and is_nan(coerced.value):
            logger.debug("Ignoring non-numeric assignment to '%s'", variable.name)
            updated.append(variable)
            continue
        changed = changed or coerced is not variable
        updated.append(coerced)
    return tuple(updated) if changed else original
