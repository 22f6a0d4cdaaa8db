"""Download side of the ranged transfer protocol.

A download is one describe request followed by a strictly sequential chain
of ranged reads. ``resolve_identity`` learns the object length and etag
from the describe response, ``RangeIterator`` hands out the byte window for
each round and decides when the chain ends, ``copy_to_sink`` moves one
round's body into the caller's sink, and ``escalate`` re-issues a failed
describe request in its GET form so the caller gets the service's own
error message.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, cast

import httpx

from .._http.transport import BaseTransport
from .cancellation import CancellationToken
from .endpoints import METADATA_HEADER, RequestDescriptor
from .errors import (
    NetworkError,
    ProtocolError,
    StallError,
    TransferCancelledError,
    TransferError,
    TransportError,
)
from .types import ByteWindow, ResolvedIdentity, SupportsWrite, TransferProgress, parse_metadata
from .utils import debug, parse_content_length, parse_content_range

if TYPE_CHECKING:
    from .executor import RequestExecutor

PARTIAL_CONTENT = 206

# Symptoms of a response torn down underneath an in-flight read.
_ABORT_SYMPTOMS: tuple[type[BaseException], ...] = (
    httpx.HTTPError,
    httpx.StreamError,
    OSError,
    ValueError,
)


async def settle(result: Any, *, await_callback: bool) -> None:
    """Await a sink or callback result when the caller's flavour allows it."""
    if not inspect.isawaitable(result):
        return
    if await_callback:
        await cast(Awaitable[Any], result)
        return
    if inspect.iscoroutine(result):
        result.close()
    raise TransferError("the synchronous client cannot await an async sink or callback")


def resolve_identity(headers: Mapping[str, str]) -> ResolvedIdentity:
    """Read object length, etag and out-of-band metadata from describe headers."""
    etag = headers.get("etag") or ""

    length = parse_content_length(headers.get("content-length"))
    if length is not None:
        return ResolvedIdentity(length=length, etag=etag, metadata=None)

    raw = headers.get(METADATA_HEADER)
    if not raw:
        return ResolvedIdentity(length=None, etag=etag, metadata=None)
    try:
        payload = json.loads(raw)
    except ValueError:
        debug("ignoring unparseable metadata header", raw[:200])
        return ResolvedIdentity(length=None, etag=etag, metadata=None)

    metadata = parse_metadata(payload)
    return ResolvedIdentity(length=metadata.bytes, etag=etag, metadata=metadata)


def plan_windows(length: int, chunk_size: int) -> list[ByteWindow]:
    """Every window a download of ``length`` bytes requests when rounds are full."""
    return [
        ByteWindow(start, min(start + chunk_size, length))
        for start in range(0, length, chunk_size)
    ]


class RangeIterator:
    """Hands out one ByteWindow per round until the download is complete.

    With a known length the iteration ends once ``read`` reaches it and the
    last window is clipped to it. With an unknown length it ends on the
    first round that answers with full content instead of partial content.
    Each window must be settled with ``record`` before the next is taken.
    """

    def __init__(
        self,
        chunk_size: int,
        length: int | None,
        progress: TransferProgress | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise TransferError("chunk_size must be positive")
        self._chunk_size = chunk_size
        self._length = length
        self.progress = progress or TransferProgress()
        self._pending: ByteWindow | None = None
        self._finished = length is not None and self.progress.read >= length

    @property
    def length(self) -> int | None:
        return self._length

    @property
    def finished(self) -> bool:
        return self._finished

    def __iter__(self) -> RangeIterator:
        return self

    def __next__(self) -> ByteWindow:
        if self._finished:
            raise StopIteration
        if self._pending is not None:
            raise TransferError("record() the current window before requesting the next one")
        start = self.progress.read
        end = start + self._chunk_size
        if self._length is not None:
            end = min(end, self._length)
        self._pending = ByteWindow(start, end)
        return self._pending

    def record(self, received: int, status_code: int) -> None:
        window = self._pending
        if window is None:
            raise TransferError("no window is awaiting a result")
        self._pending = None
        self.progress.read += received
        self.progress.rounds += 1
        partial = status_code == PARTIAL_CONTENT

        if self._length is not None:
            if self.progress.read > self._length:
                raise ProtocolError(
                    f"received {self.progress.read} bytes of a {self._length} byte object"
                )
            if self.progress.read >= self._length:
                self._finished = True
                return
            if not partial:
                raise ProtocolError(
                    f"transfer ended after {self.progress.read} of {self._length} bytes"
                )
        elif not partial:
            self._finished = True
            return

        if received == 0:
            raise StallError(
                f"round for {window.range_header} returned no data at offset {window.start}"
            )


def check_content_range(
    headers: Mapping[str, str],
    window: ByteWindow,
    length: int | None,
) -> None:
    content_range = parse_content_range(headers.get("content-range"))
    if content_range is None:
        return
    first, _, total = content_range
    if first != window.start:
        raise ProtocolError(
            f"requested {window.range_header} but the server sent bytes from {first}"
        )
    if total is not None and length is not None and total != length:
        raise ProtocolError(f"object length changed from {length} to {total} mid-transfer")


async def copy_to_sink(
    transport: BaseTransport,
    response: httpx.Response,
    sink: SupportsWrite,
    *,
    window: ByteWindow,
    cancel: CancellationToken,
    await_sink: bool,
    on_chunk: Callable[[int], Awaitable[None]] | None = None,
) -> int:
    """Stream one round's body into ``sink`` and return the bytes received.

    While the copy runs, cancelling ``cancel`` aborts the read even when it
    is blocked on the network. A read that fails because of that abort
    raises TransferCancelledError, never a transport error.

    A full-content answer to the first window carries the whole object, so
    only partial rounds and later windows are held to the window size.
    """
    received = 0
    bounded = response.status_code == PARTIAL_CONTENT or window.start > 0
    async with transport.abortable(response, cancel.register):
        try:
            async for chunk in transport.iter_bytes(response):
                cancel.raise_if_cancelled()
                if not chunk:
                    continue
                received += len(chunk)
                if bounded and received > window.size:
                    raise ProtocolError(
                        f"server sent more than the {window.size} bytes of {window.range_header}"
                    )
                await settle(sink.write(chunk), await_callback=await_sink)
                if on_chunk is not None:
                    await on_chunk(received)
        except _ABORT_SYMPTOMS as exc:
            if cancel.cancelled:
                raise TransferCancelledError() from exc
            if isinstance(exc, httpx.TransportError):
                raise NetworkError(
                    f"connection lost while reading {window.range_header}: {exc}"
                ) from exc
            raise
    cancel.raise_if_cancelled()

    expected = parse_content_length(response.headers.get("content-length"))
    if (
        expected is not None
        and "content-encoding" not in response.headers
        and expected != received
    ):
        raise ProtocolError(f"expected {expected} bytes for {window.range_header}, got {received}")
    return received


async def escalate(
    executor: RequestExecutor,
    descriptor: RequestDescriptor,
    original: TransportError,
    *,
    cancel: CancellationToken,
) -> None:
    """Re-issue a failed describe request so ``original`` carries the real error message.

    Only failures that came back with a status are escalated. The caller
    re-raises ``original`` afterwards.
    """
    if original.status_code is None:
        return
    debug("describe request failed, re-issuing it for the error body", original.status_code)
    try:
        response = await executor.execute(descriptor, cancel=cancel)
    except NetworkError as exc:
        debug("diagnostic request failed", str(exc))
        return
    try:
        await executor.check_for_error(response)
    except TransportError as detailed:
        original.attach_diagnostic(detailed)
    finally:
        await executor.transport.close_response(response)


__all__ = [
    "PARTIAL_CONTENT",
    "RangeIterator",
    "check_content_range",
    "copy_to_sink",
    "escalate",
    "plan_windows",
    "resolve_identity",
    "settle",
]
