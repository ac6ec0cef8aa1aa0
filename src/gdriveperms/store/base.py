"""Snapshot store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from gdriveperms.models import MappingSnapshot
from gdriveperms.util.timefmt import is_older_than


class SnapshotStore(ABC):
    """
    Key-value persistence of one MappingSnapshot per account key.

    save() is a full replace (last write wins). Implementations do not
    serialize concurrent writers; callers must run at most one mapping
    per account key at a time.
    """

    @abstractmethod
    def save(self, snapshot: MappingSnapshot) -> None:
        """Store ``snapshot`` under ``snapshot.owner_account_key``."""

    @abstractmethod
    def load(self, account_key: str) -> Optional[MappingSnapshot]:
        """Return the stored snapshot, or None if there is none."""

    @abstractmethod
    def clear(self, account_key: str) -> None:
        """Delete the stored snapshot. Missing keys are not an error."""

    def is_stale(
        self,
        account_key: str,
        max_age: timedelta,
        *,
        now: Optional[datetime] = None,
    ) -> bool:
        """True if there is no snapshot or it is older than ``max_age``."""
        snapshot = self.load(account_key)
        if snapshot is None:
            return True
        return is_older_than(snapshot.captured_at, max_age, now=now)
