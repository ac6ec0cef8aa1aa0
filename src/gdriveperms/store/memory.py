"""In-process snapshot store."""

from __future__ import annotations

import copy
from typing import Optional

from gdriveperms.models import MappingSnapshot

from .base import SnapshotStore


class MemorySnapshotStore(SnapshotStore):
    """Keeps deep copies so callers cannot mutate what was saved."""

    def __init__(self) -> None:
        self._snapshots: dict[str, MappingSnapshot] = {}

    def save(self, snapshot: MappingSnapshot) -> None:
        self._snapshots[snapshot.owner_account_key] = copy.deepcopy(snapshot)

    def load(self, account_key: str) -> Optional[MappingSnapshot]:
        snapshot = self._snapshots.get(account_key)
        return copy.deepcopy(snapshot) if snapshot is not None else None

    def clear(self, account_key: str) -> None:
        self._snapshots.pop(account_key, None)

    def keys(self) -> list[str]:
        return sorted(self._snapshots)
