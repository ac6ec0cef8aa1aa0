"""Public model exports for gdriveperms."""

from __future__ import annotations

from .access_entry import AccessEntry, AccessLevel, SubjectKind
from .file_record import FileRecord
from .results import BulkResult, FileOutcome, ListPage, MappingProgress
from .snapshot import MappingSnapshot

__all__ = [
    "AccessEntry",
    "AccessLevel",
    "SubjectKind",
    "FileRecord",
    "MappingSnapshot",
    "ListPage",
    "MappingProgress",
    "FileOutcome",
    "BulkResult",
]
