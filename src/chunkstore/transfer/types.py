from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

from .errors import ProtocolError, TransferError
from .utils import normalize_path, parse_http_date, validate_path

Root = Literal["auto", "dropbox", "sandbox"]


@dataclass(frozen=True, slots=True)
class TransferTarget:
    path: str
    rev: str | None = None
    as_team_member: str | None = None

    def __post_init__(self) -> None:
        validate_path(self.path)
        object.__setattr__(self, "path", normalize_path(self.path))


@dataclass(frozen=True, slots=True)
class ByteWindow:
    """Half-open byte range ``[start, end)`` requested in one round."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end <= self.start:
            raise TransferError(f"invalid byte window [{self.start}, {self.end})")

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def range_header(self) -> str:
        # HTTP ranges are inclusive
        return f"bytes={self.start}-{self.end - 1}"


@dataclass(slots=True)
class TransferProgress:
    read: int = 0
    rounds: int = 0


@dataclass(slots=True)
class ObjectMetadata:
    path: str
    bytes: int
    size: str = ""
    rev: str | None = None
    revision: int | None = None
    is_dir: bool = False
    is_deleted: bool = False
    mime_type: str | None = None
    root: str | None = None
    modified: datetime | None = None
    client_mtime: datetime | None = None
    hash: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    length: int | None
    etag: str
    metadata: ObjectMetadata | None


@dataclass(slots=True)
class ChunkedUploadResult:
    upload_id: str
    offset: int
    expires: datetime | None


@dataclass(frozen=True, slots=True)
class ConflictPolicy:
    overwrite: bool = True
    parent_rev: str | None = None
    autorename: bool = True


class SupportsWrite(Protocol):
    def write(self, data: bytes, /) -> Any:  # pragma: no cover - Protocol
        ...


DownloadProgressCallback = (
    Callable[[int, int | None], None] | Callable[[int, int | None], Awaitable[None]]
)


def _parse_optional_date(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    return parse_http_date(value)


def parse_metadata(payload: Mapping[str, Any]) -> ObjectMetadata:
    """Build ObjectMetadata from the service's JSON record.

    Raises ProtocolError when the record has no usable byte count.
    """
    if not isinstance(payload, Mapping):
        raise ProtocolError("metadata must be a JSON object")
    byte_count = payload.get("bytes")
    if isinstance(byte_count, bool) or not isinstance(byte_count, int) or byte_count < 0:
        raise ProtocolError(f"metadata has an invalid byte count: {byte_count!r}")

    revision = payload.get("revision")
    return ObjectMetadata(
        path=str(payload.get("path", "")),
        bytes=byte_count,
        size=str(payload.get("size", "")),
        rev=payload.get("rev"),
        revision=revision if isinstance(revision, int) else None,
        is_dir=bool(payload.get("is_dir", False)),
        is_deleted=bool(payload.get("is_deleted", False)),
        mime_type=payload.get("mime_type"),
        root=payload.get("root"),
        modified=_parse_optional_date(payload.get("modified")),
        client_mtime=_parse_optional_date(payload.get("client_mtime")),
        hash=payload.get("hash"),
        raw=dict(payload),
    )


def parse_chunked_upload_result(payload: Mapping[str, Any]) -> ChunkedUploadResult:
    try:
        upload_id = payload["upload_id"]
        offset = payload["offset"]
    except (KeyError, TypeError) as exc:
        raise ProtocolError(f"chunked upload response is missing {exc}") from exc
    if not isinstance(upload_id, str) or not upload_id:
        raise ProtocolError("chunked upload response has no upload_id")
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise ProtocolError(f"chunked upload response has an invalid offset: {offset!r}")
    return ChunkedUploadResult(
        upload_id=upload_id,
        offset=offset,
        expires=_parse_optional_date(payload.get("expires")),
    )


__all__ = [
    "Root",
    "TransferTarget",
    "ByteWindow",
    "TransferProgress",
    "ObjectMetadata",
    "ResolvedIdentity",
    "ChunkedUploadResult",
    "ConflictPolicy",
    "SupportsWrite",
    "DownloadProgressCallback",
    "parse_metadata",
    "parse_chunked_upload_result",
]
