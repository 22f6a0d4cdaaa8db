"""One-shot transfer functions.

Each call opens a client configured from the ``CHUNKSTORE_*`` environment
(plus the keyword overrides), runs one operation and closes the client.
Reuse a TransferClient or AsyncTransferClient for repeated calls.
"""

from __future__ import annotations

import os

from .cancellation import CancellationToken
from .client import AsyncTransferClient, TransferClient
from ._core import TargetLike
from .options import TransferOptions
from .types import (
    ChunkedUploadResult,
    ConflictPolicy,
    DownloadProgressCallback,
    ObjectMetadata,
    SupportsWrite,
)


def download(
    target: TargetLike,
    sink: SupportsWrite,
    *,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
    on_progress: DownloadProgressCallback | None = None,
) -> ObjectMetadata | None:
    with TransferClient(access_token, options=options) as client:
        return client.download(target, sink, cancel=cancel, on_progress=on_progress)


async def download_async(
    target: TargetLike,
    sink: SupportsWrite,
    *,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
    on_progress: DownloadProgressCallback | None = None,
) -> ObjectMetadata | None:
    async with AsyncTransferClient(access_token, options=options) as client:
        return await client.download(target, sink, cancel=cancel, on_progress=on_progress)


def download_file(
    target: TargetLike,
    local_path: str | os.PathLike[str],
    *,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    overwrite: bool = True,
    create_parents: bool = True,
    cancel: CancellationToken | None = None,
    on_progress: DownloadProgressCallback | None = None,
) -> str:
    """Download ``target`` to ``local_path`` and return the destination path.

    The bytes land in ``<local_path>.part`` first, which replaces
    ``local_path`` only once the whole object has arrived.
    """
    with TransferClient(access_token, options=options) as client:
        return client.download_file(
            target,
            local_path,
            overwrite=overwrite,
            create_parents=create_parents,
            cancel=cancel,
            on_progress=on_progress,
        )


async def download_file_async(
    target: TargetLike,
    local_path: str | os.PathLike[str],
    *,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    overwrite: bool = True,
    create_parents: bool = True,
    cancel: CancellationToken | None = None,
    on_progress: DownloadProgressCallback | None = None,
) -> str:
    async with AsyncTransferClient(access_token, options=options) as client:
        return await client.download_file(
            target,
            local_path,
            overwrite=overwrite,
            create_parents=create_parents,
            cancel=cancel,
            on_progress=on_progress,
        )


def append_chunk(
    data: bytes | bytearray | memoryview,
    *,
    upload_id: str | None = None,
    offset: int | None = None,
    count: int | None = None,
    as_team_member: str | None = None,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
) -> ChunkedUploadResult:
    """Append one chunk; omit ``upload_id`` to start a new upload session."""
    with TransferClient(access_token, options=options) as client:
        return client.append_chunk(
            data,
            upload_id=upload_id,
            offset=offset,
            count=count,
            as_team_member=as_team_member,
            cancel=cancel,
        )


async def append_chunk_async(
    data: bytes | bytearray | memoryview,
    *,
    upload_id: str | None = None,
    offset: int | None = None,
    count: int | None = None,
    as_team_member: str | None = None,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
) -> ChunkedUploadResult:
    async with AsyncTransferClient(access_token, options=options) as client:
        return await client.append_chunk(
            data,
            upload_id=upload_id,
            offset=offset,
            count=count,
            as_team_member=as_team_member,
            cancel=cancel,
        )


def commit_chunked_upload(
    target: TargetLike,
    upload_id: str,
    policy: ConflictPolicy | None = None,
    *,
    locale: str | None = None,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
) -> ObjectMetadata:
    with TransferClient(access_token, options=options) as client:
        return client.commit_chunked_upload(
            target, upload_id, policy, locale=locale, cancel=cancel
        )


async def commit_chunked_upload_async(
    target: TargetLike,
    upload_id: str,
    policy: ConflictPolicy | None = None,
    *,
    locale: str | None = None,
    access_token: str | None = None,
    options: TransferOptions | None = None,
    cancel: CancellationToken | None = None,
) -> ObjectMetadata:
    async with AsyncTransferClient(access_token, options=options) as client:
        return await client.commit_chunked_upload(
            target, upload_id, policy, locale=locale, cancel=cancel
        )


__all__ = [
    "download",
    "download_async",
    "download_file",
    "download_file_async",
    "append_chunk",
    "append_chunk_async",
    "commit_chunked_upload",
    "commit_chunked_upload_async",
]
