"""HTTP transport implementations for sync and async clients."""

from __future__ import annotations

import abc
import asyncio
import contextlib
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import anyio
import httpx

# Installs a cancellation callback and returns the function that removes it.
RegisterFn = Callable[[Callable[[], None]], Callable[[], None]]


class BaseTransport(abc.ABC):
    """Abstract base class for HTTP transports.

    Every method is declared async. The sync implementation never awaits
    anything, so coroutines built on top of it can be driven with
    iter_coroutine().
    """

    @abc.abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send an HTTP request and return the response.

        With stream=True the body is left unread and the caller owns
        closing the response.
        """
        ...

    @abc.abstractmethod
    async def read(self, response: httpx.Response) -> bytes:
        """Read the remaining body of a streamed response."""
        ...

    @abc.abstractmethod
    def iter_bytes(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """Iterate the body of a streamed response."""
        ...

    @abc.abstractmethod
    async def close_response(self, response: httpx.Response) -> None:
        """Release a streamed response."""
        ...

    @abc.abstractmethod
    def abortable(
        self, response: httpx.Response, register: RegisterFn
    ) -> AbstractAsyncContextManager[None]:
        """Interrupt reads of ``response`` inside the block once cancellation fires.

        ``register`` installs a cancellation callback and returns a function
        that removes it again; the callback may run on any thread.
        """
        ...


class SyncTransport(BaseTransport):
    """Synchronous HTTP transport using httpx.Client."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        request = self._client.build_request(
            method,
            url,
            params=params or None,
            content=content,
            headers=headers,
            timeout=httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        return self._client.send(request, stream=stream)

    async def read(self, response: httpx.Response) -> bytes:
        return response.read()

    def iter_bytes(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async def _iterate() -> AsyncIterator[bytes]:
            for chunk in response.iter_bytes():
                yield chunk

        return _iterate()

    async def close_response(self, response: httpx.Response) -> None:
        response.close()

    @contextlib.asynccontextmanager
    async def abortable(
        self, response: httpx.Response, register: RegisterFn
    ) -> AsyncIterator[None]:
        # Closing from another thread fails the blocked read, and the reader
        # then sees the cancelled token.
        unregister = register(response.close)
        try:
            yield
        finally:
            unregister()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()


class AsyncTransport(BaseTransport):
    """Asynchronous HTTP transport using httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        request = self._client.build_request(
            method,
            url,
            params=params or None,
            content=content,
            headers=headers,
            timeout=httpx.Timeout(timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        return await self._client.send(request, stream=stream)

    async def read(self, response: httpx.Response) -> bytes:
        return await response.aread()

    def iter_bytes(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async def _iterate() -> AsyncIterator[bytes]:
            async for chunk in response.aiter_bytes():
                yield chunk

        return _iterate()

    async def close_response(self, response: httpx.Response) -> None:
        await response.aclose()

    @contextlib.asynccontextmanager
    async def abortable(
        self, response: httpx.Response, register: RegisterFn
    ) -> AsyncIterator[None]:
        # The block runs in a cancel scope; the caller closes the response.
        # A cancelled scope swallows its own cancellation, so the caller has
        # to check the token after the block.
        loop = asyncio.get_running_loop()
        loop_thread = threading.get_ident()
        with anyio.CancelScope() as scope:

            def _abort() -> None:
                if threading.get_ident() == loop_thread:
                    scope.cancel()
                else:
                    loop.call_soon_threadsafe(scope.cancel)

            unregister = register(_abort)
            try:
                yield
            finally:
                unregister()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


__all__ = [
    "BaseTransport",
    "RegisterFn",
    "SyncTransport",
    "AsyncTransport",
]
