"""Parse project documents into typed definitions.

The document is the authoring tool's JSON export: ``boards`` holding
``nodes``/``edges`` plus project-level ``variables`` and ``assets``. Node
payload is read from the node's ``data`` mapping when present, otherwise from
the node itself.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from taleflow.data.errors import DataValidationError
from taleflow.data.json_loader import load_json
from taleflow.domain.defs import AssetDef, BoardDef, BranchDef, EdgeDef, NodeDef, ProjectDef
from taleflow.domain.values import (
    PRIMITIVE_TYPES,
    VARIABLE_TYPES,
    ArrayValue,
    ObjectEntry,
    ObjectValue,
    Variable,
    coerce_primitive,
)

logger = logging.getLogger(__name__)

NODE_TYPE_ALIASES = {
    "elementNode": "content",
    "conditionNode": "branch",
    "jumpNode": "jump",
    "commentNode": "comment",
    "sectionNode": "section",
    "annotationNode": "annotation",
    "componentNode": "component",
}


class ProjectLoader:
    """Loads a project document and validates its structure."""

    def load(self, path: Path | str) -> ProjectDef:
        raw = load_json(Path(path))
        return self.parse(raw, context=str(path))

    def parse(self, raw: object, *, context: str = "project") -> ProjectDef:
        data = self._require_mapping(raw, context)
        boards_raw = data.get("boards", [])
        if not isinstance(boards_raw, list):
            raise DataValidationError(f"{context} boards must be a list.")
        boards = tuple(self._parse_board(entry, f"{context} boards[{index}]") for index, entry in enumerate(boards_raw))
        self._check_unique_node_ids(boards, context)

        active_board_id = data.get("activeBoardId", data.get("active_board_id"))
        if active_board_id is not None and not isinstance(active_board_id, str):
            raise DataValidationError(f"{context} activeBoardId must be a string if provided.")

        return ProjectDef(
            id=self._optional_str(data.get("id"), f"{context} id") or "project",
            name=self._optional_str(data.get("name"), f"{context} name") or "Untitled",
            boards=boards,
            variables=self._parse_variables(data.get("variables"), f"{context} variables"),
            assets=self._parse_assets(data.get("assets"), f"{context} assets"),
            active_board_id=active_board_id,
        )

    def _parse_board(self, raw: object, context: str) -> BoardDef:
        board = self._require_mapping(raw, context)
        board_id = self._require_str(board.get("id"), f"{context} id")
        nodes_raw = board.get("nodes", [])
        edges_raw = board.get("edges", [])
        if not isinstance(nodes_raw, list):
            raise DataValidationError(f"{context} nodes must be a list.")
        if not isinstance(edges_raw, list):
            raise DataValidationError(f"{context} edges must be a list.")
        return BoardDef(
            id=board_id,
            name=self._optional_str(board.get("name"), f"{context} name") or board_id,
            nodes=tuple(self._parse_node(entry, f"{context} nodes[{index}]") for index, entry in enumerate(nodes_raw)),
            edges=tuple(self._parse_edge(entry, f"{context} edges[{index}]") for index, entry in enumerate(edges_raw)),
        )

    def _parse_node(self, raw: object, context: str) -> NodeDef:
        node = self._require_mapping(raw, context)
        node_id = self._require_str(node.get("id"), f"{context} id")
        node_type = self._require_str(node.get("type"), f"{context} type")
        payload = node.get("data", node)
        payload = self._require_mapping(payload, f"{context} data")

        assets_raw = payload.get("assets") or []
        if not isinstance(assets_raw, list) or not all(isinstance(item, str) for item in assets_raw):
            raise DataValidationError(f"{context} assets must be a list of asset ids.")
        jump_target = payload.get("jumpTargetId", payload.get("jump_target_id"))
        return NodeDef(
            id=node_id,
            type=NODE_TYPE_ALIASES.get(node_type, node_type),
            label=self._optional_str(payload.get("label"), f"{context} label") or "",
            content=self._optional_str(payload.get("content"), f"{context} content") or "",
            assets=tuple(assets_raw),
            branches=self._parse_branches(payload.get("branches"), f"{context} branches"),
            jump_target_id=self._optional_str(jump_target, f"{context} jumpTargetId") or None,
        )

    def _parse_branches(self, raw: object, context: str) -> Tuple[BranchDef, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        branches: List[BranchDef] = []
        for index, entry in enumerate(raw):
            branch_ctx = f"{context}[{index}]"
            branch = self._require_mapping(entry, branch_ctx)
            branches.append(
                BranchDef(
                    id=self._require_str(branch.get("id"), f"{branch_ctx} id"),
                    label=self._optional_str(branch.get("label"), f"{branch_ctx} label") or "",
                    condition=self._optional_str(branch.get("condition"), f"{branch_ctx} condition") or "",
                )
            )
        return tuple(branches)

    def _parse_edge(self, raw: object, context: str) -> EdgeDef:
        edge = self._require_mapping(raw, context)
        source = self._require_str(edge.get("source"), f"{context} source")
        target = self._require_str(edge.get("target"), f"{context} target")
        handle = edge.get("sourceHandle", edge.get("source_handle"))
        return EdgeDef(
            id=self._optional_str(edge.get("id"), f"{context} id") or f"{source}->{target}",
            source=source,
            target=target,
            source_handle=self._optional_str(handle, f"{context} sourceHandle"),
        )

    def _parse_assets(self, raw: object, context: str) -> Tuple[AssetDef, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        assets: List[AssetDef] = []
        for index, entry in enumerate(raw):
            asset_ctx = f"{context}[{index}]"
            asset = self._require_mapping(entry, asset_ctx)
            asset_id = self._require_str(asset.get("id"), f"{asset_ctx} id")
            assets.append(
                AssetDef(
                    id=asset_id,
                    name=self._optional_str(asset.get("name"), f"{asset_ctx} name") or asset_id,
                    url=self._optional_str(asset.get("url"), f"{asset_ctx} url") or "",
                    type=self._optional_str(asset.get("type"), f"{asset_ctx} type") or "image",
                )
            )
        return tuple(assets)

    def _parse_variables(self, raw: object, context: str) -> Tuple[Variable, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise DataValidationError(f"{context} must be a list if provided.")
        return tuple(self.parse_variable(entry, f"{context}[{index}]") for index, entry in enumerate(raw))

    def parse_variable(self, raw: object, context: str = "variable") -> Variable:
        """Build a Variable from its document form, checking value shape against type."""
        payload = self._require_mapping(raw, context)
        name = self._require_str(payload.get("name"), f"{context} name")
        var_type = self._require_str(payload.get("type"), f"{context} type")
        if var_type not in VARIABLE_TYPES:
            raise DataValidationError(f"{context} type must be one of {', '.join(VARIABLE_TYPES)}.")
        variable_id = self._optional_str(payload.get("id"), f"{context} id") or name
        value = payload.get("value")

        if var_type == "array":
            array_data = self._require_mapping(value, f"{context} value")
            element_type = array_data.get("elementType", array_data.get("element_type"))
            if element_type not in PRIMITIVE_TYPES:
                raise DataValidationError(f"{context} value.elementType must be a primitive type.")
            elements = array_data.get("elements", [])
            if not isinstance(elements, list):
                raise DataValidationError(f"{context} value.elements must be a list.")
            parsed: object = ArrayValue(
                element_type=element_type,
                elements=tuple(coerce_primitive(item, element_type) for item in elements),
            )
        elif var_type == "object":
            object_data = self._require_mapping(value, f"{context} value")
            keys_raw = self._require_mapping(object_data.get("keys", {}), f"{context} value.keys")
            keys: Dict[str, ObjectEntry] = {}
            for key, entry in keys_raw.items():
                entry_ctx = f"{context} value.keys.{key}"
                entry_data = self._require_mapping(entry, entry_ctx)
                entry_type = entry_data.get("type")
                if entry_type not in PRIMITIVE_TYPES:
                    raise DataValidationError(f"{entry_ctx} type must be a primitive type.")
                keys[str(key)] = ObjectEntry(
                    type=entry_type, value=self._require_primitive(entry_data.get("value"), entry_type, entry_ctx)
                )
            parsed = ObjectValue(keys=keys)
        else:
            parsed = self._require_primitive(value, var_type, f"{context} value")
        return Variable(id=variable_id, name=name, type=var_type, value=parsed)

    @staticmethod
    def _check_unique_node_ids(boards: Tuple[BoardDef, ...], context: str) -> None:
        seen: set[str] = set()
        for board in boards:
            for node in board.nodes:
                if node.id in seen:
                    raise DataValidationError(f"{context} has duplicate node id '{node.id}'.")
                seen.add(node.id)

    @staticmethod
    def _require_primitive(value: object, primitive_type: str, context: str) -> object:
        if primitive_type == "number" and value is None:
            # the authoring tool exports NaN as null
            logger.warning("%s is null; using 0", context)
            return 0
        if primitive_type == "boolean" and not isinstance(value, bool):
            raise DataValidationError(f"{context} must be a boolean.")
        if primitive_type == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise DataValidationError(f"{context} must be a number.")
        if primitive_type == "string" and not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_mapping(value: object, context: str) -> Mapping[str, object]:
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object/dict.")
        return value

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string.")
        return value

    @staticmethod
    def _optional_str(value: object, context: str) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string if provided.")
        return value


def load_project(path: Path | str) -> ProjectDef:
    """Load and parse a project document from disk."""
    return ProjectLoader().load(path)


def parse_project(raw: object) -> ProjectDef:
    """Parse an already-decoded project document."""
    return ProjectLoader().parse(raw)
