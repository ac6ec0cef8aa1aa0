"""Public mapping exports for gdriveperms."""

from __future__ import annotations

from .orchestrator import MappingOrchestrator, MappingState, PageLister
from .paths import build_path, resolve_paths
from .tree import TreeNode, build_tree

__all__ = [
    "MappingOrchestrator",
    "MappingState",
    "PageLister",
    "resolve_paths",
    "build_path",
    "TreeNode",
    "build_tree",
]
