"""Shared CLI rendering helpers."""
from __future__ import annotations

import html
import os
import re
import textwrap
from typing import List, Sequence

from taleflow.domain.values import Variable, format_value
from taleflow.services import StoryChoice, StoryNodeView

_PRE_RE = re.compile(r"<pre\b[^>]*>.*?</pre\s*>", re.IGNORECASE | re.DOTALL)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_END_RE = re.compile(r"</(?:p|div|h[1-6]|li|blockquote)\s*>", re.IGNORECASE)
_LIST_ITEM_RE = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

DEFAULT_WIDTH = 72


def debug_enabled() -> bool:
    """Return True only when TALEFLOW_DEBUG is explicitly set to '1'."""
    return os.getenv("TALEFLOW_DEBUG") == "1"


def strip_markup(content: str) -> str:
    """Turn rich-text node content into plain text.

    Script blocks are dropped; list items become ``- `` bullets.
    """
    if not content:
        return ""
    text = _PRE_RE.sub("", content)
    text = _BREAK_RE.sub("\n", text)
    text = _LIST_ITEM_RE.sub("- ", text)
    text = _BLOCK_END_RE.sub("\n", text)
    text = html.unescape(_TAG_RE.sub("", text))
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def wrap_text(text: str, width: int = DEFAULT_WIDTH) -> List[str]:
    """Wrap each line of ``text`` on word boundaries, keeping bullet indents."""
    wrapped: List[str] = []
    for line in text.splitlines() or [""]:
        if not line:
            wrapped.append("")
            continue
        indent = "  " if line.startswith("- ") else ""
        wrapped.extend(
            textwrap.wrap(
                line,
                width=max(width, 10),
                subsequent_indent=indent,
                break_long_words=False,
                break_on_hyphens=False,
            )
        )
    return wrapped


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_story_node(view: StoryNodeView, *, width: int = DEFAULT_WIDTH) -> None:
    title = view.label or view.node_type.title()
    if debug_enabled():
        title = f"{title} [{view.node_id}]"
    render_heading(title)
    text = strip_markup(view.content)
    if text:
        for line in wrap_text(text, width):
            print(line)
    for asset in view.assets:
        print(f"[{asset.type}: {asset.name}]")


def render_choices(choices: Sequence[StoryChoice]) -> None:
    """Display numbered story choices."""
    if not choices:
        return
    print()
    for idx, choice in enumerate(choices, start=1):
        suffix = f" -> {choice.target_id}" if debug_enabled() else ""
        print(f"{idx}. {choice.label}{suffix}")


def render_variables(variables: Sequence[Variable]) -> None:
    if not variables:
        return
    render_heading("Variables")
    for variable in variables:
        print(f"- {variable.name} ({variable.type}) = {format_value(variable.value)}")
