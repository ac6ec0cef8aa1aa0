"""Persisted mapping snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gdriveperms.util.timefmt import parse_rfc3339, to_rfc3339

from .file_record import FileRecord

SNAPSHOT_FORMAT_VERSION: int = 1


@dataclass(slots=True)
class MappingSnapshot:
    """
    The complete record set of one account at one point in time.

    A snapshot is only ever written whole, at the end of a mapping run.
    Permission changes made afterwards live in memory until the next remap.
    """

    owner_account_key: str
    records: list[FileRecord]
    captured_at: datetime
    is_complete: bool = True
    is_truncated: bool = False
    record_count: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.record_count < 0:
            self.record_count = len(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_FORMAT_VERSION,
            "owner_account_key": self.owner_account_key,
            "captured_at": to_rfc3339(self.captured_at),
            "record_count": self.record_count,
            "is_complete": self.is_complete,
            "is_truncated": self.is_truncated,
            "records": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MappingSnapshot:
        version = data.get("version", SNAPSHOT_FORMAT_VERSION)
        if version != SNAPSHOT_FORMAT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version}")

        records = [FileRecord.from_dict(item) for item in data.get("records", [])]
        return cls(
            owner_account_key=data["owner_account_key"],
            records=records,
            captured_at=parse_rfc3339(data["captured_at"]),
            is_complete=bool(data.get("is_complete", False)),
            is_truncated=bool(data.get("is_truncated", False)),
            record_count=int(data.get("record_count", len(records))),
        )
