"""Fixtures for integration tests using respx mocking."""

import json
import re
from collections.abc import Callable

import httpx
import pytest

CONTENT_API_BASE = "https://api-content.dropbox.com/1"
OBJECT_PATH = "docs/report.bin"
OBJECT_URL = f"{CONTENT_API_BASE}/files/auto/{OBJECT_PATH}"
OBJECT_ETAG = '"rev-4f2a"'

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d+)$")


def make_payload(size: int) -> bytes:
    return bytes(i % 251 for i in range(size))


@pytest.fixture
def object_bytes() -> bytes:
    """Scenario object: 250000 bytes, read in 100000 byte rounds."""
    return make_payload(250_000)


@pytest.fixture
def mock_object_metadata(object_bytes: bytes) -> dict:
    """Metadata record as the service sends it in x-dropbox-metadata."""
    return {
        "size": "244.1 KB",
        "rev": "4f2a0a1b2c",
        "thumb_exists": False,
        "bytes": len(object_bytes),
        "modified": "Tue, 19 Jul 2011 21:55:38 +0000",
        "client_mtime": "Tue, 19 Jul 2011 21:55:38 +0000",
        "path": f"/{OBJECT_PATH}",
        "is_dir": False,
        "icon": "page_white",
        "root": "dropbox",
        "mime_type": "application/octet-stream",
        "revision": 1234,
    }


@pytest.fixture
def describe_headers(mock_object_metadata: dict) -> dict[str, str]:
    """Headers of a describe response that reports the length only via metadata."""
    return {
        "etag": OBJECT_ETAG,
        "x-dropbox-metadata": json.dumps(mock_object_metadata),
    }


@pytest.fixture
def range_responder() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """Build a respx side effect that serves ranged reads of ``data``.

    ``full_on_round`` makes that round answer 200 with the rest of the
    object. ``stall_on_round`` makes that round answer 206 with no body.
    ``total`` controls the Content-Range total ("*" when unknown).
    """

    def factory(
        data: bytes,
        *,
        etag: str = OBJECT_ETAG,
        full_on_round: int | None = None,
        stall_on_round: int | None = None,
        total: str | None = None,
    ) -> Callable[[httpx.Request], httpx.Response]:
        rounds = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal rounds
            rounds += 1
            if request.headers.get("if-match") != etag:
                return httpx.Response(412, json={"error": "The file has changed"})
            match = _RANGE_RE.match(request.headers.get("range", ""))
            assert match is not None, "ranged reads must carry a Range header"
            first, last = int(match.group(1)), int(match.group(2))

            if rounds == full_on_round:
                return httpx.Response(200, content=data[first:])
            if rounds == stall_on_round:
                return httpx.Response(
                    206, content=b"", headers={"content-range": f"bytes {first}-{last}/*"}
                )
            body = data[first : last + 1]
            content_range = f"bytes {first}-{first + len(body) - 1}/{total or len(data)}"
            return httpx.Response(206, content=body, headers={"content-range": content_range})

        return handler

    return factory
