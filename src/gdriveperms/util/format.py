"""Display helpers for dashboards built on gdriveperms."""

from __future__ import annotations

from gdriveperms.models import AccessLevel, SubjectKind

ROLE_LABELS: dict[AccessLevel, str] = {
    AccessLevel.OWNER: "Owner",
    AccessLevel.ORGANIZER: "Organizer",
    AccessLevel.FILE_ORGANIZER: "File Organizer",
    AccessLevel.EDITOR: "Editor",
    AccessLevel.COMMENTER: "Commenter",
    AccessLevel.VIEWER: "Viewer",
}

KIND_LABELS: dict[SubjectKind, str] = {
    SubjectKind.INDIVIDUAL: "User",
    SubjectKind.GROUP: "Group",
    SubjectKind.ORGANIZATION_DOMAIN: "Domain",
    SubjectKind.ANYONE_WITH_LINK: "Anyone",
}

_SIZE_UNITS: tuple[str, ...] = ("Bytes", "KB", "MB", "GB", "TB", "PB")


def format_bytes(size: int, decimals: int = 2) -> str:
    """
    Human-readable size using powers of 1024.

    >>> format_bytes(1536)
    '1.5 KB'
    """
    if size <= 0:
        return "0 Bytes"

    places = max(decimals, 0)
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1

    text = f"{value:.{places}f}"
    if "." in text:
        # "1.50" -> "1.5", "2.00" -> "2"
        text = text.rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
