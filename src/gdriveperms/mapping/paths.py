"""Path reconstruction over a fetched record set (no I/O)."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from gdriveperms.models import FileRecord

PATH_SEPARATOR: str = "/"


def resolve_paths(records: Iterable[FileRecord]) -> list[FileRecord]:
    """
    Return copies of ``records`` (same order) with ``path`` populated.

    Each path is the names of the record's ancestors, root first, joined
    with "/" and ending in the record's own name. The upward walk stops when:
        - parent_id is None,
        - parent_id is not in the input set (parent outside the fetched window),
        - parent_id was already visited on this walk (cycle; the node where the
          cycle closes becomes the root).

    The input records are not mutated.
    """
    items = list(records)
    by_id: dict[str, FileRecord] = {record.id: record for record in items}
    return [replace(record, path=build_path(record, by_id)) for record in items]


def build_path(record: FileRecord, by_id: dict[str, FileRecord]) -> str:
    """Path of a single record against an id -> record lookup."""
    parts: list[str] = [_segment(record)]
    visited: set[str] = {record.id}
    current = record

    while current.parent_id is not None:
        parent = by_id.get(current.parent_id)
        if parent is None or parent.id in visited:
            break
        visited.add(parent.id)
        parts.append(_segment(parent))
        current = parent

    parts.reverse()
    return PATH_SEPARATOR.join(parts)


def _segment(record: FileRecord) -> str:
    # Unnamed items still need a non-empty segment.
    return record.name or record.id
