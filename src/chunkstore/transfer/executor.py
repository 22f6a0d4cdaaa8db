from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, cast

import anyio
import httpx

from .._http.transport import BaseTransport
from .cancellation import CancellationToken
from .endpoints import RequestDescriptor
from .errors import NetworkError, ProtocolError, classify_response, should_retry
from .options import TransferOptions
from .utils import debug

SleepFn = Callable[[float], Awaitable[None] | None]


async def _await_if_necessary(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await cast(Awaitable[Any], value)
    return value


async def _sleep_with_backoff(sleep_fn: SleepFn, attempt: int) -> None:
    delay = min(2**attempt * 0.1, 2.0)
    await _await_if_necessary(sleep_fn(delay))


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


class RequestExecutor:
    """Sends request descriptors and applies the generic error and retry policy.

    Network failures and retryable statuses are retried with capped
    exponential backoff; anything else is returned for the caller to
    classify with ``check_for_error``.
    """

    _transport: BaseTransport
    _options: TransferOptions
    _sleep_fn: SleepFn

    def __init__(
        self,
        *,
        transport: BaseTransport,
        options: TransferOptions,
        sleep_fn: SleepFn = anyio.sleep,
    ) -> None:
        self._transport = transport
        self._options = options
        self._sleep_fn = sleep_fn

    @property
    def transport(self) -> BaseTransport:
        return self._transport

    @property
    def options(self) -> TransferOptions:
        return self._options

    async def execute(
        self,
        descriptor: RequestDescriptor,
        *,
        cancel: CancellationToken | None = None,
    ) -> httpx.Response:
        cancel = cancel or CancellationToken.none()
        retries = self._options.retries

        for attempt in range(retries + 1):
            cancel.raise_if_cancelled()
            try:
                response = await self._transport.send(
                    descriptor.method,
                    descriptor.url,
                    params=descriptor.params,
                    content=descriptor.content,
                    headers=descriptor.headers,
                    timeout=self._options.timeout,
                    stream=descriptor.stream,
                )
            except httpx.TransportError as exc:
                if attempt < retries:
                    debug(f"retrying {descriptor.method} {descriptor.url}", str(exc))
                    await _sleep_with_backoff(self._sleep_fn, attempt)
                    continue
                raise NetworkError(
                    f"{descriptor.method} {descriptor.url} failed: {exc}"
                ) from exc

            if should_retry(response.status_code) and attempt < retries:
                debug(
                    f"retrying {descriptor.method} {descriptor.url}",
                    response.status_code,
                )
                await self._transport.close_response(response)
                await _sleep_with_backoff(self._sleep_fn, attempt)
                continue
            return response

        raise NetworkError(f"{descriptor.method} {descriptor.url} failed")

    async def check_for_error(self, response: httpx.Response) -> None:
        """Raise the typed TransportError for a non-success response."""
        if is_success(response):
            return
        if not response.is_stream_consumed:
            try:
                await self._transport.read(response)
            except (httpx.HTTPError, httpx.StreamError) as exc:
                debug("could not read error body", str(exc))
        raise classify_response(response)

    async def execute_json(
        self,
        descriptor: RequestDescriptor,
        *,
        cancel: CancellationToken | None = None,
    ) -> Any:
        response = await self.execute(descriptor, cancel=cancel)
        try:
            await self.check_for_error(response)
            if descriptor.stream:
                await self._transport.read(response)
            try:
                return response.json()
            except ValueError as exc:
                raise ProtocolError(
                    f"{descriptor.method} {descriptor.url} did not return JSON"
                ) from exc
        finally:
            await self._transport.close_response(response)


__all__ = ["RequestExecutor", "SleepFn", "is_success"]
