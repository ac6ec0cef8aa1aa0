"""OAuth credentials and Drive service construction."""

from __future__ import annotations

import logging
import os
from typing import Optional, Sequence

from gdriveperms.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)

DRIVE_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)


class OAuthClient:
    """Load, refresh and persist the signed-in user's OAuth token."""

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "oauth":
            raise InvalidArgumentError("OAuthClient requires AuthInfo(kind='oauth')")
        self._auth_info = auth_info

    def get_credentials(
        self,
        scopes: Sequence[str] = DRIVE_SCOPES,
        *,
        ensure_valid: bool = True,
        interactive: bool = True,
    ):
        """
        Return google.oauth2.credentials.Credentials for the given scopes.

        Args:
            scopes: OAuth scopes to request.
            ensure_valid: Refresh an expired token when a refresh token exists.
            interactive: Run the browser consent flow when no usable token
                exists. When False, raise AuthError instead.

        Raises:
            AuthError: on load/refresh/flow failure, or when no usable token
                exists and interactive is False.
            InvalidArgumentError: if scopes is empty.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        token_file = self._auth_info.token_file
        creds = None

        if os.path.exists(token_file):
            try:
                creds = Credentials.from_authorized_user_file(token_file, scopes=list(scopes))
            except (OSError, ValueError) as exc:
                raise AuthError(
                    "Failed to load token_file",
                    details={"token_file": token_file},
                    cause=exc,
                ) from exc

            if not ensure_valid:
                return creds

            if not creds.valid and creds.refresh_token:
                logger.info("Refreshing OAuth token from %s", token_file)
                try:
                    creds.refresh(Request())
                except Exception as exc:
                    raise AuthError(
                        "Failed to refresh OAuth credentials",
                        details={"token_file": token_file},
                        cause=exc,
                    ) from exc
                self._save_credentials(creds)

            if creds.valid:
                return creds

        if not interactive:
            raise AuthError("Unauthorized", details={"token_file": token_file})

        return self._run_consent_flow(scopes)

    def build_drive_service(
        self,
        scopes: Sequence[str] = DRIVE_SCOPES,
        *,
        timeout_sec: Optional[float] = None,
        interactive: bool = True,
    ):
        """
        Build a Drive v3 service resource.

        Requests go through an httplib2 transport with ``timeout_sec`` so a
        stalled page fetch surfaces as a socket timeout.

        Returns:
            googleapiclient.discovery.Resource
        """
        import google_auth_httplib2
        import httplib2
        from googleapiclient.discovery import build

        creds = self.get_credentials(scopes, interactive=interactive)
        http = google_auth_httplib2.AuthorizedHttp(
            creds,
            http=httplib2.Http(timeout=timeout_sec),
        )
        try:
            return build("drive", "v3", http=http, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc

    def _run_consent_flow(self, scopes: Sequence[str]):
        from google_auth_oauthlib.flow import InstalledAppFlow

        client_secrets = self._auth_info.client_secrets_file
        logger.info("Starting OAuth consent flow with %s", client_secrets)
        try:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=list(scopes))
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "OAuth authorization flow failed",
                details={
                    "client_secrets_file": client_secrets,
                    "token_file": self._auth_info.token_file,
                },
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return creds

    def _save_credentials(self, creds) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        try:
            if token_dir:
                os.makedirs(token_dir, exist_ok=True)
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
