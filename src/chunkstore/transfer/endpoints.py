from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from .options import TransferOptions
from .types import ByteWindow, ConflictPolicy, TransferTarget

METADATA_HEADER = "x-dropbox-metadata"
TEAM_MEMBER_HEADER = "X-Dropbox-Perform-As-Team-Member"


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """An HTTP request ready to hand to the executor."""

    method: str
    url: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None
    stream: bool = False


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def _files_url(options: TransferOptions, target: TransferTarget) -> str:
    return f"{options.content_url}/files/{options.root}/{quote(target.path, safe='/')}"


def _build_headers(
    *,
    as_team_member: str | None = None,
    window: ByteWindow | None = None,
    etag: str = "",
    content_type: str | None = None,
) -> dict[str, str]:
    headers: dict[str, str] = {}
    if as_team_member:
        headers[TEAM_MEMBER_HEADER] = as_team_member
    if window is not None:
        headers["range"] = window.range_header
    if etag:
        headers["if-match"] = etag
    if content_type:
        headers["content-type"] = content_type
    return headers


def describe_request(
    options: TransferOptions,
    target: TransferTarget,
    *,
    with_content: bool = False,
) -> RequestDescriptor:
    """The open/describe request that starts a download.

    The HEAD form carries only headers. ``with_content`` switches to GET so a
    failing request returns its error body.
    """
    params = {"rev": target.rev} if target.rev else {}
    return RequestDescriptor(
        method="GET" if with_content else "HEAD",
        url=_files_url(options, target),
        params=params,
        headers=_build_headers(as_team_member=target.as_team_member),
        stream=with_content,
    )


def range_request(
    options: TransferOptions,
    target: TransferTarget,
    window: ByteWindow,
    etag: str,
) -> RequestDescriptor:
    params = {"rev": target.rev} if target.rev else {}
    return RequestDescriptor(
        method="GET",
        url=_files_url(options, target),
        params=params,
        headers=_build_headers(as_team_member=target.as_team_member, window=window, etag=etag),
        stream=True,
    )


def chunked_upload_request(
    options: TransferOptions,
    data: bytes,
    *,
    upload_id: str | None = None,
    offset: int | None = None,
    as_team_member: str | None = None,
) -> RequestDescriptor:
    params: dict[str, Any] = {}
    if upload_id:
        params["upload_id"] = upload_id
    if offset is not None:
        params["offset"] = offset
    return RequestDescriptor(
        method="PUT",
        url=f"{options.content_url}/chunked_upload",
        params=params,
        headers=_build_headers(
            as_team_member=as_team_member, content_type="application/octet-stream"
        ),
        content=data,
    )


def commit_request(
    options: TransferOptions,
    target: TransferTarget,
    upload_id: str,
    policy: ConflictPolicy,
    *,
    locale: str | None = None,
) -> RequestDescriptor:
    params: dict[str, Any] = {
        "upload_id": upload_id,
        "overwrite": _bool_param(policy.overwrite),
        "autorename": _bool_param(policy.autorename),
    }
    if policy.parent_rev:
        params["parent_rev"] = policy.parent_rev
    if locale:
        params["locale"] = locale
    return RequestDescriptor(
        method="POST",
        url=(
            f"{options.content_url}/commit_chunked_upload/"
            f"{options.root}/{quote(target.path, safe='/')}"
        ),
        params=params,
        headers=_build_headers(as_team_member=target.as_team_member),
    )


__all__ = [
    "METADATA_HEADER",
    "TEAM_MEMBER_HEADER",
    "RequestDescriptor",
    "describe_request",
    "range_request",
    "chunked_upload_request",
    "commit_request",
]
