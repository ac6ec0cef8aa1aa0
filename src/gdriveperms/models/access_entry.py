"""Sharing grants attached to a Drive item."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from gdriveperms.util.timefmt import parse_rfc3339_or_none, to_rfc3339


class SubjectKind(str, Enum):
    """Who a grant applies to. Values are the Drive API ``type`` strings."""

    INDIVIDUAL = "user"
    GROUP = "group"
    ORGANIZATION_DOMAIN = "domain"
    ANYONE_WITH_LINK = "anyone"


class AccessLevel(str, Enum):
    """
    Privilege of a grant. Values are the Drive API ``role`` strings.

    Listed from most to least privileged, but treated as a plain
    enumeration (no ordering is implied anywhere in the library).
    """

    OWNER = "owner"
    ORGANIZER = "organizer"
    FILE_ORGANIZER = "fileOrganizer"
    EDITOR = "writer"
    COMMENTER = "commenter"
    VIEWER = "reader"


@dataclass(slots=True)
class AccessEntry:
    """
    One sharing grant on a FileRecord.

    Notes:
        - subject_identity is an email for INDIVIDUAL/GROUP, a domain for
          ORGANIZATION_DOMAIN and None for ANYONE_WITH_LINK.
        - id is unique within the owning record's access_entries only.
    """

    id: str
    subject_kind: SubjectKind
    access_level: AccessLevel

    subject_identity: Optional[str] = None
    display_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_deleted_subject: bool = False
    pending_owner: bool = False

    @property
    def is_owner(self) -> bool:
        return self.access_level is AccessLevel.OWNER

    def matches_identity(self, identity: str) -> bool:
        """Case-insensitive comparison against subject_identity."""
        if not self.subject_identity:
            return False
        return self.subject_identity.lower() == identity.strip().lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject_kind": self.subject_kind.value,
            "access_level": self.access_level.value,
            "subject_identity": self.subject_identity,
            "display_name": self.display_name,
            "expires_at": to_rfc3339(self.expires_at) if self.expires_at else None,
            "is_deleted_subject": self.is_deleted_subject,
            "pending_owner": self.pending_owner,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessEntry:
        return cls(
            id=data["id"],
            subject_kind=SubjectKind(data["subject_kind"]),
            access_level=AccessLevel(data["access_level"]),
            subject_identity=data.get("subject_identity"),
            display_name=data.get("display_name"),
            expires_at=parse_rfc3339_or_none(data.get("expires_at")),
            is_deleted_subject=bool(data.get("is_deleted_subject", False)),
            pending_owner=bool(data.get("pending_owner", False)),
        )
