"""Snapshot store backed by one JSON document per account."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Optional
from urllib.parse import quote

from gdriveperms.errors import StoreError
from gdriveperms.models import MappingSnapshot

from .base import SnapshotStore

logger = logging.getLogger(__name__)


class JsonFileSnapshotStore(SnapshotStore):
    """
    Stores ``<directory>/<quoted account key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written snapshot.
    """

    def __init__(self, directory: str) -> None:
        if not isinstance(directory, str) or not directory.strip():
            raise ValueError("directory must be a non-empty string")
        self._directory = directory

    @property
    def directory(self) -> str:
        return self._directory

    def path_for(self, account_key: str) -> str:
        if not account_key:
            raise ValueError("account_key must be a non-empty string")
        return os.path.join(self._directory, quote(account_key, safe="") + ".json")

    def save(self, snapshot: MappingSnapshot) -> None:
        path = self.path_for(snapshot.owner_account_key)
        payload = json.dumps(snapshot.to_dict(), ensure_ascii=False)

        tmp_path = None
        try:
            os.makedirs(self._directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            raise StoreError(
                "Failed to write snapshot",
                details={"path": path},
                cause=exc,
            ) from exc
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.debug("Saved snapshot with %d records to %s", snapshot.record_count, path)

    def load(self, account_key: str) -> Optional[MappingSnapshot]:
        path = self.path_for(account_key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError("Failed to read snapshot", details={"path": path}, cause=exc) from exc
        except ValueError as exc:
            raise StoreError("Snapshot file is corrupt", details={"path": path}, cause=exc) from exc

        try:
            return MappingSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError("Snapshot file is corrupt", details={"path": path}, cause=exc) from exc

    def clear(self, account_key: str) -> None:
        path = self.path_for(account_key)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StoreError("Failed to delete snapshot", details={"path": path}, cause=exc) from exc
        logger.debug("Cleared snapshot %s", path)
