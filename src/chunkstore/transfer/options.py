"""Immutable configuration passed into every transfer call."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, cast

from .._http.config import DEFAULT_CONTENT_URL, DEFAULT_TIMEOUT
from .errors import TransferError
from .types import Root

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024  # 4MB
DEFAULT_RETRIES = 3
ROOTS = ("auto", "dropbox", "sandbox")


def _int_from_env(env: Mapping[str, str], key: str, default: int) -> int:
    value = env.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise TransferError(f"{key} must be an integer, got {value!r}") from exc


def _float_from_env(env: Mapping[str, str], key: str, default: float) -> float:
    value = env.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise TransferError(f"{key} must be a number, got {value!r}") from exc


@dataclass(frozen=True, slots=True)
class TransferOptions:
    """Configuration for one client: chunk size, namespace root and endpoints.

    ``chunk_size`` bounds every ranged read. ``root`` selects the namespace
    paths are resolved against. ``retries`` is the number of extra attempts
    the request executor makes for network failures and retryable statuses.
    """

    access_token: str | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    root: Root = "auto"
    content_url: str = DEFAULT_CONTENT_URL
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES

    def __post_init__(self) -> None:
        if isinstance(self.chunk_size, bool) or int(self.chunk_size) <= 0:
            raise TransferError("chunk_size must be a positive number of bytes")
        if self.root not in ROOTS:
            raise TransferError(f"root must be one of {', '.join(ROOTS)}")
        if self.retries < 0:
            raise TransferError("retries must not be negative")
        if self.timeout <= 0:
            raise TransferError("timeout must be positive")
        object.__setattr__(self, "content_url", self.content_url.rstrip("/"))

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, **overrides: Any
    ) -> TransferOptions:
        """Build options from ``CHUNKSTORE_*`` environment variables.

        Keyword overrides that are not None win over the environment.
        """
        source = os.environ if env is None else env
        options = cls(
            access_token=source.get("CHUNKSTORE_ACCESS_TOKEN") or None,
            chunk_size=_int_from_env(source, "CHUNKSTORE_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            root=cast(Root, source.get("CHUNKSTORE_ROOT") or "auto"),
            content_url=source.get("CHUNKSTORE_CONTENT_URL") or DEFAULT_CONTENT_URL,
            timeout=_float_from_env(source, "CHUNKSTORE_TIMEOUT", DEFAULT_TIMEOUT),
            retries=_int_from_env(source, "CHUNKSTORE_RETRIES", DEFAULT_RETRIES),
        )
        explicit = {key: value for key, value in overrides.items() if value is not None}
        return replace(options, **explicit) if explicit else options

    def require_token(self) -> str:
        if not self.access_token:
            raise TransferError(
                "No access token found. Either configure the `CHUNKSTORE_ACCESS_TOKEN` "
                "environment variable, or pass `access_token` to the client."
            )
        return self.access_token


__all__ = ["TransferOptions", "DEFAULT_CHUNK_SIZE", "DEFAULT_RETRIES", "ROOTS"]
