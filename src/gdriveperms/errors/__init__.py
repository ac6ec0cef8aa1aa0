"""Public error exports for gdriveperms."""

from __future__ import annotations

from .exceptions import (
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
    is_transient,
    map_http_error,
)

__all__ = [
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
    "is_transient",
    "map_http_error",
]
