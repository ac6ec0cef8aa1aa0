"""Public auth exports for gdriveperms."""

from __future__ import annotations

from .auth_info import AuthInfo
from .oauth_client import DRIVE_SCOPES, OAuthClient

__all__ = ["AuthInfo", "OAuthClient", "DRIVE_SCOPES"]
