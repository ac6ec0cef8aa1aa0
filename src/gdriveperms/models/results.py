"""Result models for listing, mapping progress and bulk mutations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .file_record import FileRecord


@dataclass(slots=True)
class ListPage:
    """One page of the remote listing."""

    records: list[FileRecord]
    next_page_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return bool(self.next_page_token)


@dataclass(slots=True, frozen=True)
class MappingProgress:
    """Records fetched so far and a running estimate of the total."""

    current: int = 0
    estimated_total: int = 0


@dataclass(slots=True)
class FileOutcome:
    """Per-file result of a bulk mutation."""

    file_id: str
    success: bool
    error: Optional[str] = None
    entry_id: Optional[str] = None


@dataclass(slots=True)
class BulkResult:
    """Aggregate result of bulk_add/bulk_remove."""

    results: list[FileOutcome]
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def succeeded_ids(self) -> list[str]:
        return [r.file_id for r in self.results if r.success]

    @property
    def failed_ids(self) -> list[str]:
        return [r.file_id for r in self.results if not r.success]
