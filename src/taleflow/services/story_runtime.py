"""Story traversal services."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Sequence, Tuple

from taleflow.core.rng import RNG
from taleflow.core.types import RunStatus
from taleflow.domain.conditions import evaluate_condition
from taleflow.domain.defs import AssetDef, BoardDef, EdgeDef, NodeDef, ProjectDef
from taleflow.domain.interpolation import interpolate
from taleflow.domain.script import extract_script, run_script
from taleflow.domain.state import HistoryEntry, RunState
from taleflow.domain.values import Variable

logger = logging.getLogger(__name__)

DEFAULT_MAX_AUTO_ADVANCE = 1000
START_NODE_LABEL = "start"
DEFAULT_CHOICE_LABEL = "Continue"
_DEFAULT_FALLBACK_HANDLE = "else"


@dataclass(frozen=True, slots=True)
class StoryChoice:
    label: str
    target_id: str


@dataclass(slots=True)
class StoryNodeView:
    """Data returned to the presentation layer for rendering."""

    node_id: str
    node_type: str
    label: str
    content: str
    status: RunStatus
    choices: List[StoryChoice] = field(default_factory=list)
    variables: Tuple[Variable, ...] = ()
    assets: List[AssetDef] = field(default_factory=list)
    can_go_back: bool = False

    @property
    def is_end(self) -> bool:
        return not self.choices


class StoryRuntime:
    """Drives a run through a project's story graph.

    Every operation takes a RunState and returns a new one; the runtime itself
    only holds the project index and the RNG scripts draw from.
    """

    def __init__(
        self,
        project: ProjectDef,
        *,
        max_auto_advance: int = DEFAULT_MAX_AUTO_ADVANCE,
        rng: RNG | None = None,
    ) -> None:
        self._project = project
        self._max_auto_advance = max(1, max_auto_advance)
        self._rng = rng or RNG()
        self._nodes: Dict[str, NodeDef] = {}
        self._edges_by_source: Dict[str, List[EdgeDef]] = {}
        for board in project.boards:
            for node in board.nodes:
                self._nodes.setdefault(node.id, node)
            for edge in board.edges:
                self._edges_by_source.setdefault(edge.source, []).append(edge)
        self._assets = {asset.id: asset for asset in project.assets}

    @property
    def project(self) -> ProjectDef:
        return self._project

    def get_node(self, node_id: str | None) -> NodeDef | None:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def resolve_entry_node_id(self, entry_node_id: str | None = None, *, board_id: str | None = None) -> str | None:
        """Explicit id if it exists, else the board's "start" node, else its first node."""
        if entry_node_id is not None:
            return entry_node_id if entry_node_id in self._nodes else None
        board = self._find_board(board_id) if board_id is not None else self._project.active_board()
        if board is None or not board.nodes:
            return None
        for node in board.nodes:
            if node.label.strip().lower() == START_NODE_LABEL:
                return node.id
        return board.nodes[0].id

    def start(self, entry_node_id: str | None = None, *, board_id: str | None = None) -> RunState:
        """Begin a run with fresh variables and advance to the first interactive node."""
        entry = self.resolve_entry_node_id(entry_node_id, board_id=board_id)
        state = RunState(
            entry_node_id=entry,
            current_node_id=None,
            variables=self._project.variables,
            status="missing",
        )
        if entry is None:
            logger.warning("No entry node resolved for project '%s'", self._project.id)
            return state
        return self._enter_node(state, entry)

    def choose(self, state: RunState, target_id: str) -> RunState:
        """Leave the current node for ``target_id`` and advance."""
        if state.status == "closed":
            logger.warning("Ignoring choice '%s' on a closed run", target_id)
            return state
        if state.current_node_id is None:
            logger.warning("Ignoring choice '%s'; the run has no current node", target_id)
            return state
        history = state.history + (HistoryEntry(state.current_node_id, state.variables),)
        return self._enter_node(replace(state, history=history), target_id)

    def restart(self, state: RunState) -> RunState:
        """Reset variables and history and re-enter the original entry node."""
        if state.status == "closed":
            logger.warning("Ignoring restart on a closed run")
            return state
        if state.entry_node_id is None:
            return self.start()
        return self.start(state.entry_node_id)

    def go_back(self, state: RunState) -> RunState:
        """Return to the most recent content node in history, restoring its variables."""
        if state.status == "closed":
            logger.warning("Ignoring go back on a closed run")
            return state
        history = list(state.history)
        while history:
            entry = history.pop()
            if not self._is_content(entry.node_id):
                continue
            return RunState(
                entry_node_id=state.entry_node_id,
                current_node_id=entry.node_id,
                variables=entry.variables,
                status=self._content_status(entry.node_id, entry.variables),
                history=tuple(history),
                last_visited_node_id=entry.node_id,
            )
        return state

    def close(self, state: RunState) -> RunState:
        return replace(state, status="closed")

    def can_go_back(self, state: RunState) -> bool:
        if state.status == "closed":
            return False
        return any(self._is_content(entry.node_id) for entry in state.history)

    def get_choices(self, state: RunState) -> List[StoryChoice]:
        """Outgoing choices of the paused content node, in edge declaration order."""
        if state.status == "closed" or not self._is_content(state.current_node_id):
            return []
        return self._choices_for(state.current_node_id, state.variables)

    def view(self, state: RunState) -> StoryNodeView | None:
        """Project the state for rendering; None when no node resolves."""
        node = self.get_node(state.current_node_id)
        if node is None:
            return None
        is_content = node.type == "content"
        return StoryNodeView(
            node_id=node.id,
            node_type=node.type,
            label=interpolate(node.label, state.variables),
            content=interpolate(node.content, state.variables) if is_content else "",
            status=state.status,
            choices=self.get_choices(state),
            variables=state.variables,
            assets=[self._assets[asset_id] for asset_id in node.assets if asset_id in self._assets],
            can_go_back=self.can_go_back(state),
        )

    def _enter_node(self, state: RunState, node_id: str) -> RunState:
        """Apply the transition rule until a content node or a dead end is reached."""
        variables = state.variables
        history = list(state.history)
        last_visited = state.last_visited_node_id
        current = node_id
        for _ in range(self._max_auto_advance):
            node = self._nodes.get(current)
            if node is None:
                logger.warning("Node '%s' does not exist; the run has no current node", current)
                return self._settle(state, None, variables, history, last_visited, "missing")

            if node.type == "content":
                if current != last_visited:
                    variables = run_script(extract_script(node.content), variables, rng=self._rng)
                status = self._content_status(current, variables)
                return self._settle(state, current, variables, history, current, status)

            last_visited = current
            next_id = self._resolve_auto_target(node, variables)
            if next_id is None:
                logger.debug("Dead end at %s node '%s'", node.type, current)
                return self._settle(state, current, variables, history, last_visited, "dead_end")
            history.append(HistoryEntry(current, variables))
            current = next_id

        logger.warning(
            "Auto-advance limit of %d steps reached at node '%s'; stopping",
            self._max_auto_advance,
            current,
        )
        return self._settle(state, current, variables, history, last_visited, "cycle_limit")

    def _resolve_auto_target(self, node: NodeDef, variables: Sequence[Variable]) -> str | None:
        if node.type == "jump":
            return node.jump_target_id or None
        if node.type == "branch":
            edge = self._select_branch_edge(node, variables)
            return edge.target if edge is not None else None
        return None

    def _select_branch_edge(self, node: NodeDef, variables: Sequence[Variable]) -> EdgeDef | None:
        selected = _DEFAULT_FALLBACK_HANDLE
        for branch in node.branches:
            if branch.is_fallback:
                selected = branch.id
                continue
            if evaluate_condition(branch.condition, variables):
                selected = branch.id
                break
        for edge in self._edges_by_source.get(node.id, []):
            if edge.source_handle == selected:
                return edge
        return None

    def _choices_for(self, node_id: str, variables: Sequence[Variable]) -> List[StoryChoice]:
        choices: List[StoryChoice] = []
        for edge in self._edges_by_source.get(node_id, []):
            target = self._nodes.get(edge.target)
            if target is None:
                continue
            label = interpolate(target.label, variables) if target.label else DEFAULT_CHOICE_LABEL
            choices.append(StoryChoice(label=label, target_id=target.id))
        return choices

    def _content_status(self, node_id: str, variables: Sequence[Variable]) -> RunStatus:
        return "paused" if self._choices_for(node_id, variables) else "dead_end"

    def _is_content(self, node_id: str | None) -> bool:
        node = self.get_node(node_id)
        return node is not None and node.type == "content"

    def _find_board(self, board_id: str) -> BoardDef | None:
        for board in self._project.boards:
            if board.id == board_id:
                return board
        return None

    @staticmethod
    def _settle(
        state: RunState,
        current_node_id: str | None,
        variables: Tuple[Variable, ...],
        history: List[HistoryEntry],
        last_visited: str | None,
        status: RunStatus,
    ) -> RunState:
        return replace(
            state,
            current_node_id=current_node_id,
            variables=variables,
            history=tuple(history),
            last_visited_node_id=last_visited,
            status=status,
        )
