"""Client factory functions for creating pre-configured httpx clients."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from .config import DEFAULT_TIMEOUT


def _create_bearer_auth_hook(
    token: str,
) -> Callable[[httpx.Request], httpx.Request]:
    """Create a request hook that adds the bearer token header.

    Uses setdefault so a per-request authorization header takes precedence.
    """

    def hook(request: httpx.Request) -> httpx.Request:
        request.headers.setdefault("authorization", f"Bearer {token}")
        return request

    return hook


def _create_async_bearer_auth_hook(
    token: str,
) -> Callable[[httpx.Request], Awaitable[None]]:
    """Async variant of the bearer hook; httpx.AsyncClient awaits its hooks."""

    async def hook(request: httpx.Request) -> None:
        request.headers.setdefault("authorization", f"Bearer {token}")

    return hook


def _prepend_request_hooks(
    client: httpx.Client | httpx.AsyncClient,
    hooks: Sequence[Callable[[httpx.Request], Any]],
) -> None:
    """Prepend request hooks to an existing client's event hooks.

    Prepending ensures our default hooks run first, allowing user-configured
    hooks to override or intercept the defaults.
    """
    existing_hooks = list(client.event_hooks.get("request", []))
    client.event_hooks["request"] = list(hooks) + existing_hooks


def _client_kwargs(
    token: str | None,
    timeout: float | None,
    hooks: list[Callable[[httpx.Request], Any]],
) -> dict:
    effective_timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
    kwargs: dict = {"timeout": httpx.Timeout(effective_timeout)}
    if token:
        kwargs["event_hooks"] = {"request": hooks}
    return kwargs


def create_transfer_client(
    token: str | None = None,
    timeout: float | None = None,
    *,
    client: httpx.Client | None = None,
) -> httpx.Client:
    """Create or configure a sync httpx client for the storage service.

    Args:
        token: Bearer token attached to every request. When omitted no auth
            hook is installed.
        timeout: Request timeout in seconds. Defaults to DEFAULT_TIMEOUT.
            Ignored if client is provided.
        client: Optional existing client to configure. If provided, the auth
            hook is prepended to existing hooks.

    Returns:
        An httpx.Client ready to be wrapped by SyncTransport.
    """
    hooks = [_create_bearer_auth_hook(token)] if token else []
    if client is not None:
        if hooks:
            _prepend_request_hooks(client, hooks)
        return client
    return httpx.Client(**_client_kwargs(token, timeout, hooks))


def create_async_transfer_client(
    token: str | None = None,
    timeout: float | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> httpx.AsyncClient:
    """Create or configure an async httpx client for the storage service.

    Args:
        token: Bearer token attached to every request. When omitted no auth
            hook is installed.
        timeout: Request timeout in seconds. Defaults to DEFAULT_TIMEOUT.
            Ignored if client is provided.
        client: Optional existing client to configure. If provided, the auth
            hook is prepended to existing hooks.

    Returns:
        An httpx.AsyncClient ready to be wrapped by AsyncTransport.
    """
    hooks = [_create_async_bearer_auth_hook(token)] if token else []
    if client is not None:
        if hooks:
            _prepend_request_hooks(client, hooks)
        return client
    return httpx.AsyncClient(**_client_kwargs(token, timeout, hooks))


__all__ = [
    "create_transfer_client",
    "create_async_transfer_client",
]
