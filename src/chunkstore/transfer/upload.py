from __future__ import annotations

from typing import TYPE_CHECKING

from .._http.iter_coroutine import iter_coroutine
from .cancellation import CancellationToken
from .errors import TransferError
from .types import ChunkedUploadResult, ConflictPolicy, ObjectMetadata, TransferTarget

if TYPE_CHECKING:
    from ._core import AsyncTransferOps, SyncTransferOps


class _UploadState:
    def __init__(self, as_team_member: str | None) -> None:
        self._as_team_member = as_team_member
        self._upload_id: str | None = None
        self._offset = 0

    @property
    def upload_id(self) -> str | None:
        """Server-assigned session id; None until the first append succeeds."""
        return self._upload_id

    @property
    def offset(self) -> int:
        """Number of bytes the server has confirmed so far."""
        return self._offset

    def _next_offset(self, offset: int | None) -> int | None:
        if offset is not None:
            return offset
        # the first append starts the session and carries no offset
        return self._offset if self._upload_id is not None else None

    def _adopt(self, result: ChunkedUploadResult) -> ChunkedUploadResult:
        self._upload_id = result.upload_id
        self._offset = result.offset
        return result

    def _commit_target(self, path: str | TransferTarget) -> tuple[TransferTarget, str]:
        if self._upload_id is None:
            raise TransferError("nothing has been appended to this upload session")
        if isinstance(path, TransferTarget):
            return path, self._upload_id
        return TransferTarget(path, as_team_member=self._as_team_member), self._upload_id


class UploadSession(_UploadState):
    """
    Uploads one file as a series of appended chunks followed by a commit.

    The session tracks the server's upload id and confirmed offset, so each
    call only needs the next chunk. Chunks are sent one at a time in call
    order; looping over the source is left to the caller.

    Example:
        >>> session = client.create_upload_session()
        >>> session.append(first_chunk)
        >>> session.append(second_chunk)
        >>> metadata = session.commit("backups/archive.tar")
    """

    def __init__(self, ops: SyncTransferOps, *, as_team_member: str | None = None) -> None:
        super().__init__(as_team_member)
        self._ops = ops

    def append(
        self,
        data: bytes | bytearray | memoryview,
        *,
        count: int | None = None,
        offset: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> ChunkedUploadResult:
        """
        Append ``data[:count]`` at the running offset.

        Args:
            data: The chunk to send.
            count: How many leading bytes of ``data`` to send. Defaults to all.
            offset: Overrides the running offset; the caller then owns contiguity.
            cancel: Token that aborts the request.

        Returns:
            The server's upload id, confirmed offset and expiry.
        """
        result = iter_coroutine(
            self._ops.append_chunk(
                data,
                upload_id=self._upload_id,
                offset=self._next_offset(offset),
                count=count,
                as_team_member=self._as_team_member,
                cancel=cancel,
            )
        )
        return self._adopt(result)

    def commit(
        self,
        path: str | TransferTarget,
        policy: ConflictPolicy | None = None,
        *,
        locale: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ObjectMetadata:
        """Turn the appended bytes into the file at ``path``."""
        target, upload_id = self._commit_target(path)
        return iter_coroutine(
            self._ops.commit_chunked_upload(
                target, upload_id, policy or ConflictPolicy(), locale=locale, cancel=cancel
            )
        )


class AsyncUploadSession(_UploadState):
    """Async counterpart of UploadSession."""

    def __init__(self, ops: AsyncTransferOps, *, as_team_member: str | None = None) -> None:
        super().__init__(as_team_member)
        self._ops = ops

    async def append(
        self,
        data: bytes | bytearray | memoryview,
        *,
        count: int | None = None,
        offset: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> ChunkedUploadResult:
        result = await self._ops.append_chunk(
            data,
            upload_id=self._upload_id,
            offset=self._next_offset(offset),
            count=count,
            as_team_member=self._as_team_member,
            cancel=cancel,
        )
        return self._adopt(result)

    async def commit(
        self,
        path: str | TransferTarget,
        policy: ConflictPolicy | None = None,
        *,
        locale: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ObjectMetadata:
        target, upload_id = self._commit_target(path)
        return await self._ops.commit_chunked_upload(
            target, upload_id, policy or ConflictPolicy(), locale=locale, cancel=cancel
        )


__all__ = ["UploadSession", "AsyncUploadSession"]
