"""gdriveperms public API."""

from __future__ import annotations

from gdriveperms.auth import AuthInfo, OAuthClient
from gdriveperms.config import MappingConfig, configuration_status
from gdriveperms.errors import (
    ApiError,
    AuthError,
    ConflictError,
    GDrivePermsError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    StoreError,
    ValidationError,
    map_http_error,
)
from gdriveperms.manager import PermissionsManager
from gdriveperms.mapping import (
    MappingOrchestrator,
    MappingState,
    TreeNode,
    build_tree,
    resolve_paths,
)
from gdriveperms.models import (
    AccessEntry,
    AccessLevel,
    BulkResult,
    FileOutcome,
    FileRecord,
    ListPage,
    MappingProgress,
    MappingSnapshot,
    SubjectKind,
)
from gdriveperms.permissions import PermissionService
from gdriveperms.store import JsonFileSnapshotStore, MemorySnapshotStore, SnapshotStore
from gdriveperms.util.format import KIND_LABELS, ROLE_LABELS, format_bytes

__all__ = [
    # High-level
    "PermissionsManager",
    "MappingOrchestrator",
    "MappingState",
    "PermissionService",
    "MappingConfig",
    "configuration_status",
    # Auth
    "AuthInfo",
    "OAuthClient",
    # Mapping helpers
    "resolve_paths",
    "build_tree",
    "TreeNode",
    # Stores
    "SnapshotStore",
    "JsonFileSnapshotStore",
    "MemorySnapshotStore",
    # Models
    "AccessEntry",
    "AccessLevel",
    "SubjectKind",
    "FileRecord",
    "MappingSnapshot",
    "ListPage",
    "MappingProgress",
    "FileOutcome",
    "BulkResult",
    # Errors
    "GDrivePermsError",
    "ValidationError",
    "InvalidStateError",
    "StoreError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
    # Display
    "format_bytes",
    "ROLE_LABELS",
    "KIND_LABELS",
]
