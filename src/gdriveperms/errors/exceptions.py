"""Exception hierarchy and HTTP error mapping for gdriveperms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class GDrivePermsError(Exception):
    """
    Base exception for gdriveperms.

    Attributes:
        details: Structured context (HTTP status, reason, offending value).
        cause: The lower-level exception this error wraps, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class ValidationError(GDrivePermsError):
    """Raised when a mutation argument is malformed (before any remote call)."""


class InvalidStateError(GDrivePermsError):
    """Raised when an operation is not allowed in the current mapping state."""


class StoreError(GDrivePermsError):
    """Raised when the snapshot store cannot read or write a snapshot."""


class AuthError(GDrivePermsError):
    """Raised when credentials are missing, rejected, or cannot be refreshed."""


class PermissionError(GDrivePermsError):
    """Raised when Drive denies access (HTTP 403, non-quota)."""


class InvalidArgumentError(GDrivePermsError):
    """Raised when Drive rejects request arguments (HTTP 400)."""


class NotFoundError(GDrivePermsError):
    """Raised when a file or access entry does not exist (HTTP 404)."""


class ConflictError(GDrivePermsError):
    """Raised on HTTP 409/412."""


class RateLimitError(GDrivePermsError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(GDrivePermsError):
    """Raised when quota is exceeded (HTTP 403 with a quota reason)."""


class NetworkError(GDrivePermsError):
    """Raised on socket errors and request timeouts."""


class ApiError(GDrivePermsError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Status, reason and message extracted from a failed Drive response."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASONS: tuple[str, ...] = (
    "quota",
    "ratelimitexceeded",
    "userratelimitexceeded",
    "dailylimitexceeded",
    "usagelimits",
    "storagequotaexceeded",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    lowered = reason.lower()
    return any(key in lowered for key in _QUOTA_REASONS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> GDrivePermsError:
    """
    Map a failed HTTP response to a gdriveperms exception.

    The message is the remote error message when Drive supplied one,
    otherwise ``"HTTP error <status>"``.

        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> QuotaExceededError for quota reasons, else PermissionError
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - anything else -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"
    status = info.status_code

    if status == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if status == 401:
        return AuthError(message, details=details, cause=cause)
    if status == 403:
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if status == 404:
        return NotFoundError(message, details=details, cause=cause)
    if status in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if status == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def is_transient(exc: BaseException) -> bool:
    """Return True for errors worth retrying (rate limits, network, 5xx)."""
    if isinstance(exc, (RateLimitError, NetworkError)):
        return True
    if isinstance(exc, ApiError):
        status_code = exc.details.get("status_code")
        return isinstance(status_code, int) and 500 <= status_code <= 599
    return False
