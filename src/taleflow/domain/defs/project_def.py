"""Story project definition structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from taleflow.core.types import NodeType
from taleflow.domain.values import Variable

FALLBACK_BRANCH_LABEL = "else"


@dataclass(frozen=True, slots=True)
class BranchDef:
    """Single outcome of a branch node."""

    id: str
    label: str
    condition: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.label.strip().lower() == FALLBACK_BRANCH_LABEL


@dataclass(frozen=True, slots=True)
class NodeDef:
    """Fully parsed story node; payload fields not used by a type stay empty."""

    id: str
    type: NodeType | str
    label: str = ""
    content: str = ""
    assets: Tuple[str, ...] = ()
    branches: Tuple[BranchDef, ...] = ()
    jump_target_id: str | None = None


@dataclass(frozen=True, slots=True)
class EdgeDef:
    id: str
    source: str
    target: str
    source_handle: str | None = None


@dataclass(frozen=True, slots=True)
class BoardDef:
    id: str
    name: str
    nodes: Tuple[NodeDef, ...] = ()
    edges: Tuple[EdgeDef, ...] = ()


@dataclass(frozen=True, slots=True)
class AssetDef:
    id: str
    name: str
    url: str
    type: str


@dataclass(frozen=True, slots=True)
class ProjectDef:
    """In-memory copy of a story project for the duration of a run."""

    id: str
    name: str
    boards: Tuple[BoardDef, ...] = ()
    variables: Tuple[Variable, ...] = ()
    assets: Tuple[AssetDef, ...] = ()
    active_board_id: str | None = None

    def active_board(self) -> BoardDef | None:
        for board in self.boards:
            if board.id == self.active_board_id:
                return board
        return self.boards[0] if self.boards else None

    def board_ids(self) -> List[str]:
        return [board.id for board in self.boards]


__all__ = ["AssetDef", "BoardDef", "BranchDef", "EdgeDef", "FALLBACK_BRANCH_LABEL", "NodeDef", "ProjectDef"]
