"""Public permission exports for gdriveperms."""

from __future__ import annotations

from .service import PermissionBackend, PermissionService
from .validation import (
    build_permission_body,
    validate_domain,
    validate_email,
    validate_file_id,
    validate_permission_id,
    validate_role,
    validate_subject_kind,
)

__all__ = [
    "PermissionBackend",
    "PermissionService",
    "build_permission_body",
    "validate_domain",
    "validate_email",
    "validate_file_id",
    "validate_permission_id",
    "validate_role",
    "validate_subject_kind",
]
