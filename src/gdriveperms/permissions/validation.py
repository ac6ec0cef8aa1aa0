"""Argument checks for permission mutations (run before any remote call)."""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from gdriveperms.errors import ValidationError
from gdriveperms.models import AccessLevel, SubjectKind

_FILE_ID_RE = re.compile(r"[A-Za-z0-9_-]{10,100}")
_PERMISSION_ID_RE = re.compile(r"[A-Za-z0-9_-]{5,100}")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_DOMAIN_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]{0,61}[A-Za-z0-9]?\.([A-Za-z]{2,}\.)*[A-Za-z]{2,}")

MAX_EMAIL_LENGTH: int = 254
MAX_DOMAIN_LENGTH: int = 253


def validate_file_id(file_id: object) -> str:
    if not isinstance(file_id, str) or not _FILE_ID_RE.fullmatch(file_id):
        raise ValidationError(f"Invalid file ID: {file_id!r}", details={"file_id": file_id})
    return file_id


def validate_permission_id(permission_id: object) -> str:
    if not isinstance(permission_id, str) or not _PERMISSION_ID_RE.fullmatch(permission_id):
        raise ValidationError(
            "Invalid permission ID",
            details={"permission_id": permission_id},
        )
    return permission_id


def validate_email(email: object) -> str:
    if (
        not isinstance(email, str)
        or len(email) > MAX_EMAIL_LENGTH
        or not _EMAIL_RE.fullmatch(email)
    ):
        raise ValidationError("Invalid email address", details={"email": email})
    return email


def validate_domain(domain: object) -> str:
    if (
        not isinstance(domain, str)
        or len(domain) > MAX_DOMAIN_LENGTH
        or not _DOMAIN_RE.fullmatch(domain)
    ):
        raise ValidationError("Invalid domain", details={"domain": domain})
    return domain


def validate_role(role: Union[str, AccessLevel, None]) -> AccessLevel:
    """Accepts an AccessLevel or its Drive wire value ("writer", "reader", ...)."""
    try:
        return AccessLevel(role)
    except ValueError as exc:
        raise ValidationError("Invalid role", details={"role": role}, cause=exc) from exc


def validate_subject_kind(kind: Union[str, SubjectKind, None]) -> SubjectKind:
    """Accepts a SubjectKind or its Drive wire value ("user", "domain", ...)."""
    try:
        return SubjectKind(kind)
    except ValueError as exc:
        raise ValidationError(
            "Invalid permission type",
            details={"type": kind},
            cause=exc,
        ) from exc


def build_permission_body(
    subject_kind: Union[str, SubjectKind],
    access_level: Union[str, AccessLevel],
    *,
    email: Optional[str] = None,
    domain: Optional[str] = None,
) -> dict[str, Any]:
    """
    Validate a new grant and return the Drive ``permissions.create`` body.

    user/group grants need an email; domain grants need a domain; anyone
    grants take neither.
    """
    kind = validate_subject_kind(subject_kind)
    level = validate_role(access_level)
    body: dict[str, Any] = {"type": kind.value, "role": level.value}

    if kind in (SubjectKind.INDIVIDUAL, SubjectKind.GROUP):
        if not email:
            raise ValidationError("Email address is required for user/group permissions")
        body["emailAddress"] = validate_email(email)
    elif kind is SubjectKind.ORGANIZATION_DOMAIN:
        if not domain:
            raise ValidationError("Domain is required for domain permissions")
        body["domain"] = validate_domain(domain)

    return body
