"""Mapping configuration and environment lookup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional

ENV_PREFIX: str = "GDRIVEPERMS_"

# Settings a dashboard needs before it can sign anyone in.
REQUIRED_AUTH_ENV: tuple[str, ...] = (
    "GDRIVEPERMS_CLIENT_SECRETS",
    "GDRIVEPERMS_TOKEN_FILE",
)


@dataclass(slots=True, frozen=True)
class MappingConfig:
    """
    Limits and policies for a mapping run.

    Attributes:
        batch_size: Records requested per listing page.
        max_records: Safety ceiling; a run never holds more records than this.
        max_age: A stored snapshot older than this is ignored at session start.
        include_access_entries: Ask Drive for permissions with each page.
        page_retries: Retries for a transient page failure before the run fails.
        retry_initial_delay_sec: First backoff delay; doubles on each retry.
        page_timeout_sec: Socket timeout for a single page request.
    """

    batch_size: int = 100
    max_records: int = 20000
    max_age: timedelta = timedelta(hours=24)
    include_access_entries: bool = True
    page_retries: int = 2
    retry_initial_delay_sec: float = 1.0
    page_timeout_sec: float = 60.0

    def __post_init__(self) -> None:
        if not 1 <= self.batch_size <= 1000:
            raise ValueError("batch_size must be between 1 and 1000")
        if self.max_records < 1:
            raise ValueError("max_records must be positive")
        if self.max_age < timedelta(0):
            raise ValueError("max_age must not be negative")
        if self.page_retries < 0:
            raise ValueError("page_retries must not be negative")
        if self.retry_initial_delay_sec < 0:
            raise ValueError("retry_initial_delay_sec must not be negative")
        if self.page_timeout_sec <= 0:
            raise ValueError("page_timeout_sec must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MappingConfig":
        """
        Build a config from GDRIVEPERMS_* variables; unset ones keep defaults.

        Recognized: BATCH_SIZE, MAX_RECORDS, MAX_AGE_SEC, PAGE_RETRIES,
        PAGE_TIMEOUT_SEC.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}

        batch_size = _env_number(env, "BATCH_SIZE", int)
        if batch_size is not None:
            kwargs["batch_size"] = batch_size

        max_records = _env_number(env, "MAX_RECORDS", int)
        if max_records is not None:
            kwargs["max_records"] = max_records

        max_age_sec = _env_number(env, "MAX_AGE_SEC", float)
        if max_age_sec is not None:
            kwargs["max_age"] = timedelta(seconds=max_age_sec)

        page_retries = _env_number(env, "PAGE_RETRIES", int)
        if page_retries is not None:
            kwargs["page_retries"] = page_retries

        page_timeout = _env_number(env, "PAGE_TIMEOUT_SEC", float)
        if page_timeout is not None:
            kwargs["page_timeout_sec"] = page_timeout

        return cls(**kwargs)


def configuration_status(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """
    Report whether the OAuth settings are present.

    Returns:
        {"configured": bool, "missing": {name: bool, ...}}
    """
    env = os.environ if environ is None else environ
    missing = {name: not env.get(name, "").strip() for name in REQUIRED_AUTH_ENV}
    return {"configured": not any(missing.values()), "missing": missing}


def _env_number(env: Mapping[str, str], suffix: str, kind: type) -> Any:
    name = ENV_PREFIX + suffix
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        return kind(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
