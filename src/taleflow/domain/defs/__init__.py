"""Definition dataclasses."""

from .project_def import (
    FALLBACK_BRANCH_LABEL,
    AssetDef,
    BoardDef,
    BranchDef,
    EdgeDef,
    NodeDef,
    ProjectDef,
)

__all__ = [
    "AssetDef",
    "BoardDef",
    "BranchDef",
    "EdgeDef",
    "FALLBACK_BRANCH_LABEL",
    "NodeDef",
    "ProjectDef",
]
