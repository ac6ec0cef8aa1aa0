"""Data model for mapped Drive items."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gdriveperms.util.timefmt import parse_rfc3339_or_none, to_rfc3339

from .access_entry import AccessEntry


@dataclass(slots=True)
class FileRecord:
    """
    A Drive item as mapped locally.

    Notes:
        - parent_id holds only the first Drive parent. It may point at an item
          outside the fetched set, in which case the record is a path root.
        - path is derived by resolve_paths() and is never authoritative.
        - external_link, last_modified, size_bytes and owner_identity are
          display-only pass-through values.
    """

    id: str
    name: str
    is_container: bool

    parent_id: Optional[str] = None
    path: str = ""
    mime_type: str = ""
    is_shared: bool = False
    access_entries: list[AccessEntry] = field(default_factory=list)

    external_link: Optional[str] = None
    last_modified: Optional[datetime] = None
    size_bytes: Optional[int] = None
    owner_identity: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "is_container": self.is_container,
            "parent_id": self.parent_id,
            "path": self.path,
            "mime_type": self.mime_type,
            "is_shared": self.is_shared,
            "access_entries": [entry.to_dict() for entry in self.access_entries],
            "external_link": self.external_link,
            "last_modified": to_rfc3339(self.last_modified) if self.last_modified else None,
            "size_bytes": self.size_bytes,
            "owner_identity": self.owner_identity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileRecord:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            is_container=bool(data.get("is_container", False)),
            parent_id=data.get("parent_id"),
            path=data.get("path", ""),
            mime_type=data.get("mime_type", ""),
            is_shared=bool(data.get("is_shared", False)),
            access_entries=[
                AccessEntry.from_dict(item) for item in data.get("access_entries", [])
            ],
            external_link=data.get("external_link"),
            last_modified=parse_rfc3339_or_none(data.get("last_modified")),
            size_bytes=data.get("size_bytes"),
            owner_identity=data.get("owner_identity"),
        )
