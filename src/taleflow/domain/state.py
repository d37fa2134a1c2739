"""Runtime state of a single playthrough."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from taleflow.core.types import RunStatus
from taleflow.domain.values import Variable


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Position left behind when the run advanced, with the variables at that time."""

    node_id: str
    variables: Tuple[Variable, ...]


@dataclass(frozen=True, slots=True)
class RunState:
    """Immutable snapshot of a run; every runtime operation returns a new one.

    ``last_visited_node_id`` guards content scripts: a content node whose id
    equals it is paused on again without re-running its script.
    """

    entry_node_id: str | None
    current_node_id: str | None
    variables: Tuple[Variable, ...]
    status: RunStatus
    history: Tuple[HistoryEntry, ...] = ()
    last_visited_node_id: str | None = None
