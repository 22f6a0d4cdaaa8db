from __future__ import annotations

import os
from dataclasses import replace

import httpx

from .._http.iter_coroutine import iter_coroutine
from ._core import AsyncTransferOps, SyncTransferOps, TargetLike
from .cancellation import CancellationToken
from .errors import TransferError
from .options import TransferOptions
from .types import (
    ChunkedUploadResult,
    ConflictPolicy,
    DownloadProgressCallback,
    ObjectMetadata,
    Root,
    SupportsWrite,
)
from .upload import AsyncUploadSession, UploadSession


def _resolve_options(
    options: TransferOptions | None,
    *,
    access_token: str | None,
    chunk_size: int | None,
    root: Root | None,
    content_url: str | None,
    timeout: float | None,
    retries: int | None,
) -> TransferOptions:
    overrides = {
        "access_token": access_token,
        "chunk_size": chunk_size,
        "root": root,
        "content_url": content_url,
        "timeout": timeout,
        "retries": retries,
    }
    if options is None:
        return TransferOptions.from_env(**overrides)
    explicit = {key: value for key, value in overrides.items() if value is not None}
    return replace(options, **explicit) if explicit else options


class TransferClient:
    """Synchronous client for ranged downloads and chunked uploads.

    One client owns one httpx connection pool. Configuration comes from
    ``options`` when given, otherwise from the ``CHUNKSTORE_*`` environment,
    with any keyword argument taking precedence.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        chunk_size: int | None = None,
        root: Root | None = None,
        content_url: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        options: TransferOptions | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._options = _resolve_options(
            options,
            access_token=access_token,
            chunk_size=chunk_size,
            root=root,
            content_url=content_url,
            timeout=timeout,
            retries=retries,
        )
        self._ops = SyncTransferOps(self._options, client=client)
        self._closed = False

    @property
    def options(self) -> TransferOptions:
        return self._options

    def _ensure_open(self) -> SyncTransferOps:
        if self._closed:
            raise TransferError("Client is closed")
        return self._ops

    def download(
        self,
        target: TargetLike,
        sink: SupportsWrite,
        *,
        cancel: CancellationToken | None = None,
        on_progress: DownloadProgressCallback | None = None,
    ) -> ObjectMetadata | None:
        """Write the object at ``target`` into ``sink``, one bounded range at a time.

        Returns the metadata delivered alongside the object, if any. On
        failure ``sink`` may hold a prefix of the object.
        """
        ops = self._ensure_open()
        return iter_coroutine(ops.download(target, sink, cancel=cancel, on_progress=on_progress))

    def download_file(
        self,
        target: TargetLike,
        local_path: str | os.PathLike[str],
        *,
        overwrite: bool = True,
        create_parents: bool = True,
        cancel: CancellationToken | None = None,
        on_progress: DownloadProgressCallback | None = None,
    ) -> str:
        ops = self._ensure_open()
        return iter_coroutine(
            ops.download_file(
                target,
                local_path,
                overwrite=overwrite,
                create_parents=create_parents,
                cancel=cancel,
                on_progress=on_progress,
            )
        )

    def append_chunk(
        self,
        data: bytes | bytearray | memoryview,
        *,
        upload_id: str | None = None,
        offset: int | None = None,
        count: int | None = None,
        as_team_member: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ChunkedUploadResult:
        ops = self._ensure_open()
        return iter_coroutine(
            ops.append_chunk(
                data,
                upload_id=upload_id,
                offset=offset,
                count=count,
                as_team_member=as_team_member,
                cancel=cancel,
            )
        )

    def commit_chunked_upload(
        self,
        target: TargetLike,
        upload_id: str,
        policy: ConflictPolicy | None = None,
        *,
        locale: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ObjectMetadata:
        ops = self._ensure_open()
        return iter_coroutine(
            ops.commit_chunked_upload(target, upload_id, policy, locale=locale, cancel=cancel)
        )

    def create_upload_session(self, *, as_team_member: str | None = None) -> UploadSession:
        return UploadSession(self._ensure_open(), as_team_member=as_team_member)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._ops.close()

    def __enter__(self) -> TransferClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class AsyncTransferClient:
    """Asynchronous counterpart of TransferClient.

    Sinks and progress callbacks may be plain or async; awaitable results
    are awaited.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        chunk_size: int | None = None,
        root: Root | None = None,
        content_url: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        options: TransferOptions | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._options = _resolve_options(
            options,
            access_token=access_token,
            chunk_size=chunk_size,
            root=root,
            content_url=content_url,
            timeout=timeout,
            retries=retries,
        )
        self._ops = AsyncTransferOps(self._options, client=client)
        self._closed = False

    @property
    def options(self) -> TransferOptions:
        return self._options

    def _ensure_open(self) -> AsyncTransferOps:
        if self._closed:
            raise TransferError("Client is closed")
        return self._ops

    async def download(
        self,
        target: TargetLike,
        sink: SupportsWrite,
        *,
        cancel: CancellationToken | None = None,
        on_progress: DownloadProgressCallback | None = None,
    ) -> ObjectMetadata | None:
        ops = self._ensure_open()
        return await ops.download(target, sink, cancel=cancel, on_progress=on_progress)

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
        ops = self._ensure_open()
        return await ops.download_file(
            target,
            local_path,
            overwrite=overwrite,
            create_parents=create_parents,
            cancel=cancel,
            on_progress=on_progress,
        )

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
        ops = self._ensure_open()
        return await ops.append_chunk(
            data,
            upload_id=upload_id,
            offset=offset,
            count=count,
            as_team_member=as_team_member,
            cancel=cancel,
        )

    async def commit_chunked_upload(
        self,
        target: TargetLike,
        upload_id: str,
        policy: ConflictPolicy | None = None,
        *,
        locale: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ObjectMetadata:
        ops = self._ensure_open()
        return await ops.commit_chunked_upload(
            target, upload_id, policy, locale=locale, cancel=cancel
        )

    def create_upload_session(self, *, as_team_member: str | None = None) -> AsyncUploadSession:
        return AsyncUploadSession(self._ensure_open(), as_team_member=as_team_member)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._ops.aclose()

    async def __aenter__(self) -> AsyncTransferClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


__all__ = ["TransferClient", "AsyncTransferClient"]
