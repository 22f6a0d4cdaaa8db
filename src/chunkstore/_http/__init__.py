"""Shared HTTP infrastructure for chunkstore clients."""

from .clients import create_async_transfer_client, create_transfer_client
from .config import DEFAULT_CONTENT_URL, DEFAULT_TIMEOUT
from .iter_coroutine import iter_coroutine
from .transport import AsyncTransport, BaseTransport, SyncTransport

__all__ = [
    "DEFAULT_CONTENT_URL",
    "DEFAULT_TIMEOUT",
    "iter_coroutine",
    "BaseTransport",
    "SyncTransport",
    "AsyncTransport",
    "create_transfer_client",
    "create_async_transfer_client",
]
