"""Nested view of a flat record set for tree-style displays."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from gdriveperms.models import FileRecord


@dataclass(slots=True)
class TreeNode:
    record: FileRecord
    children: list["TreeNode"] = field(default_factory=list)


def build_tree(records: Iterable[FileRecord]) -> list[TreeNode]:
    """
    Group records under their parents.

    Roots are records without parent_id or whose parent is not in the set.
    Records caught in a parent cycle that never reaches a root are attached
    as roots at the first cycle member (in input order), so every record
    appears exactly once. Children keep input order.
    """
    items = list(records)
    nodes: dict[str, TreeNode] = {}
    for record in items:
        nodes.setdefault(record.id, TreeNode(record=record))

    roots: list[TreeNode] = []
    placed: set[str] = set()

    for record in items:
        if record.id in placed:
            continue
        placed.add(record.id)
        parent_id = record.parent_id
        if parent_id is None or parent_id not in nodes or parent_id == record.id:
            roots.append(nodes[record.id])
        else:
            nodes[parent_id].children.append(nodes[record.id])

    # Anything not reachable from a root sits on a cycle.
    reachable: set[str] = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        reachable.add(node.record.id)
        stack.extend(node.children)

    for record in items:
        if record.id in reachable:
            continue
        node = nodes[record.id]
        parent = nodes[record.parent_id]  # type: ignore[index]
        parent.children.remove(node)
        roots.append(node)
        stack = [node]
        while stack:
            cur = stack.pop()
            reachable.add(cur.record.id)
            stack.extend(cur.children)

    return roots
