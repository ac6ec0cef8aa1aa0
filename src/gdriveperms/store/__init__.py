"""Public snapshot store exports for gdriveperms."""

from __future__ import annotations

from .base import SnapshotStore
from .json_file import JsonFileSnapshotStore
from .memory import MemorySnapshotStore

__all__ = ["SnapshotStore", "JsonFileSnapshotStore", "MemorySnapshotStore"]
