"""OAuth settings used to obtain a Drive credential."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from gdriveperms.errors import AuthError


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Where to find the OAuth client secrets and the cached user token.

    Only kind="oauth" is supported; data must include:
        - client_secrets_file
        - token_file
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "oauth":
            raise ValueError("AuthInfo.kind must be 'oauth'")

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        for key in ("client_secrets_file", "token_file"):
            value = self.data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.data['{key}'] must be a non-empty string")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthInfo":
        """
        Read GDRIVEPERMS_CLIENT_SECRETS and GDRIVEPERMS_TOKEN_FILE.

        Raises:
            AuthError: if either variable is unset ("Unauthorized").
        """
        env = os.environ if environ is None else environ
        secrets = env.get("GDRIVEPERMS_CLIENT_SECRETS", "").strip()
        token = env.get("GDRIVEPERMS_TOKEN_FILE", "").strip()
        if not secrets or not token:
            raise AuthError(
                "Unauthorized",
                details={
                    "GDRIVEPERMS_CLIENT_SECRETS": bool(secrets),
                    "GDRIVEPERMS_TOKEN_FILE": bool(token),
                },
            )
        return cls(kind="oauth", data={"client_secrets_file": secrets, "token_file": token})

    @property
    def client_secrets_file(self) -> str:
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        return str(self.data["token_file"])
