from __future__ import annotations

import abc
import os
import time

import anyio
import httpx

from .._http import (
    AsyncTransport,
    BaseTransport,
    SyncTransport,
    create_async_transfer_client,
    create_transfer_client,
)
from .cancellation import CancellationToken
from .download import (
    RangeIterator,
    check_content_range,
    copy_to_sink,
    escalate,
    resolve_identity,
    settle,
)
from .endpoints import (
    chunked_upload_request,
    commit_request,
    describe_request,
    range_request,
)
from .errors import ProtocolError, TransferError, TransportError
from .executor import RequestExecutor, SleepFn
from .options import TransferOptions
from .types import (
    ChunkedUploadResult,
    ConflictPolicy,
    DownloadProgressCallback,
    ObjectMetadata,
    ResolvedIdentity,
    SupportsWrite,
    TransferProgress,
    TransferTarget,
    parse_chunked_upload_result,
    parse_metadata,
)
from .utils import debug

TargetLike = str | TransferTarget


def _sync_sleep(seconds: float) -> None:
    time.sleep(seconds)


def as_target(target: TargetLike) -> TransferTarget:
    if isinstance(target, TransferTarget):
        return target
    if isinstance(target, str):
        return TransferTarget(target)
    raise TransferError(f"expected a path or TransferTarget, got {type(target).__name__}")


async def _emit_download_progress(
    callback: DownloadProgressCallback | None,
    loaded: int,
    total: int | None,
    *,
    await_callback: bool,
) -> None:
    if callback is None:
        return
    await settle(callback(loaded, total), await_callback=await_callback)


class BaseTransferOps(abc.ABC):
    """The transfer engine shared by the sync and async clients.

    Every method is a coroutine. With a SyncTransport nothing ever suspends,
    so SyncTransferOps drives the same coroutines through iter_coroutine().
    """

    def __init__(
        self,
        *,
        executor: RequestExecutor,
        await_callbacks: bool,
    ) -> None:
        self._executor = executor
        self._await_callbacks = await_callbacks

    @property
    def options(self) -> TransferOptions:
        return self._executor.options

    @property
    def transport(self) -> BaseTransport:
        return self._executor.transport

    async def _open(self, target: TransferTarget, cancel: CancellationToken) -> ResolvedIdentity:
        cancel.raise_if_cancelled()
        response = await self._executor.execute(
            describe_request(self.options, target), cancel=cancel
        )
        try:
            await self._executor.check_for_error(response)
            return resolve_identity(response.headers)
        except TransportError as exc:
            cancel.raise_if_cancelled()
            await escalate(
                self._executor,
                describe_request(self.options, target, with_content=True),
                exc,
                cancel=cancel,
            )
            raise
        finally:
            await self.transport.close_response(response)

    async def download(
        self,
        target: TargetLike,
        sink: SupportsWrite,
        *,
        cancel: CancellationToken | None = None,
        on_progress: DownloadProgressCallback | None = None,
    ) -> ObjectMetadata | None:
        """Stream the object at ``target`` into ``sink`` in bounded rounds.

        Returns the metadata the service sent with the describe response,
        or None when it reported the length through Content-Length.
        """
        target = as_target(target)
        cancel = cancel or CancellationToken.none()
        identity = await self._open(target, cancel)
        length = identity.length
        progress = TransferProgress()
        rounds = RangeIterator(self.options.chunk_size, length, progress)
        debug(f"downloading {target.path}", length, identity.etag)

        for window in rounds:
            cancel.raise_if_cancelled()
            base = progress.read

            async def on_chunk(received: int) -> None:
                await _emit_download_progress(
                    on_progress,
                    base + received,
                    length,
                    await_callback=self._await_callbacks,
                )

            response = await self._executor.execute(
                range_request(self.options, target, window, identity.etag),
                cancel=cancel,
            )
            try:
                await self._executor.check_for_error(response)
                check_content_range(response.headers, window, length)
                received = await copy_to_sink(
                    self.transport,
                    response,
                    sink,
                    window=window,
                    cancel=cancel,
                    await_sink=self._await_callbacks,
                    on_chunk=on_chunk if on_progress is not None else None,
                )
                status_code = response.status_code
            finally:
                await self.transport.close_response(response)
            cancel.raise_if_cancelled()
            debug(f"round {progress.rounds + 1} {window.range_header}", status_code, received)
            rounds.record(received, status_code)

        return identity.metadata

    async def download_file(
        self,
        target: TargetLike,
        local_path: str | os.PathLike[str],
        *,
        overwrite: bool = True,
        create_parents: bool = True,
        cancel: CancellationToken | None = None,
        on_progress: DownloadProgressCallback | None = None,
    ) -> str:
        target = as_target(target)
        dst = os.fspath(local_path)
        if not overwrite and os.path.exists(dst):
            raise TransferError("destination exists; pass overwrite=True to replace it")
        if create_parents:
            os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)

        tmp = dst + ".part"
        try:
            await self._download_to_path(
                target, tmp, cancel=cancel, on_progress=on_progress
            )
            os.replace(tmp, dst)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        return dst

    @abc.abstractmethod
    async def _download_to_path(
        self,
        target: TransferTarget,
        path: str,
        *,
        cancel: CancellationToken | None,
        on_progress: DownloadProgressCallback | None,
    ) -> None:
        """Write the object behind ``target`` to ``path``."""
        ...

    async def append_chunk(
        self,
        data: bytes | bytearray | memoryview,
        *,
        upload_id: str | None = None,
        offset: int | None = None,
        count: int | None = None,
        as_team_member: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ChunkedUploadResult:
        """Append ``data[:count]`` to an upload session, starting one if needed."""
        cancel = cancel or CancellationToken.none()
        if count is None:
            count = len(data)
        if count < 0 or count > len(data):
            raise TransferError(f"count must be between 0 and {len(data)}, got {count}")
        if offset is not None and offset < 0:
            raise TransferError("offset must not be negative")
        if upload_id and offset is None:
            raise TransferError("offset is required when appending to an existing upload")

        chunk = bytes(data[:count])
        payload = await self._executor.execute_json(
            chunked_upload_request(
                self.options,
                chunk,
                upload_id=upload_id,
                offset=offset,
                as_team_member=as_team_member,
            ),
            cancel=cancel,
        )
        result = parse_chunked_upload_result(payload)

        expected = (offset or 0) + count
        if result.offset != expected:
            raise ProtocolError(
                f"server confirmed offset {result.offset}, expected {expected}"
            )
        if upload_id and result.upload_id != upload_id:
            raise ProtocolError(
                f"server answered for upload {result.upload_id!r} instead of {upload_id!r}"
            )
        debug("appended chunk", result.upload_id, result.offset)
        return result

    async def commit_chunked_upload(
        self,
        target: TargetLike,
        upload_id: str,
        policy: ConflictPolicy | None = None,
        *,
        locale: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ObjectMetadata:
        target = as_target(target)
        if not upload_id:
            raise TransferError("upload_id is required to commit an upload")
        payload = await self._executor.execute_json(
            commit_request(
                self.options,
                target,
                upload_id,
                policy or ConflictPolicy(),
                locale=locale,
            ),
            cancel=cancel or CancellationToken.none(),
        )
        return parse_metadata(payload)


class SyncTransferOps(BaseTransferOps):
    def __init__(
        self,
        options: TransferOptions,
        *,
        client: httpx.Client | None = None,
        sleep_fn: SleepFn = _sync_sleep,
    ) -> None:
        self._transport = SyncTransport(
            create_transfer_client(options.require_token(), options.timeout, client=client)
        )
        super().__init__(
            executor=RequestExecutor(
                transport=self._transport, options=options, sleep_fn=sleep_fn
            ),
            await_callbacks=False,
        )

    def close(self) -> None:
        self._transport.close()

    async def _download_to_path(
        self,
        target: TransferTarget,
        path: str,
        *,
        cancel: CancellationToken | None,
        on_progress: DownloadProgressCallback | None,
    ) -> None:
        with open(path, "wb") as f:
            await self.download(target, f, cancel=cancel, on_progress=on_progress)


class AsyncTransferOps(BaseTransferOps):
    def __init__(
        self,
        options: TransferOptions,
        *,
        client: httpx.AsyncClient | None = None,
        sleep_fn: SleepFn = anyio.sleep,
    ) -> None:
        self._transport = AsyncTransport(
            create_async_transfer_client(
                options.require_token(), options.timeout, client=client
            )
        )
        super().__init__(
            executor=RequestExecutor(
                transport=self._transport, options=options, sleep_fn=sleep_fn
            ),
            await_callbacks=True,
        )

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _download_to_path(
        self,
        target: TransferTarget,
        path: str,
        *,
        cancel: CancellationToken | None,
        on_progress: DownloadProgressCallback | None,
    ) -> None:
        async with await anyio.open_file(path, "wb") as f:
            await self.download(target, f, cancel=cancel, on_progress=on_progress)


__all__ = [
    "BaseTransferOps",
    "SyncTransferOps",
    "AsyncTransferOps",
    "TargetLike",
    "as_target",
]
