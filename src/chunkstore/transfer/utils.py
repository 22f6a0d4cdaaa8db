from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from .errors import TransferError

MAXIMUM_PATH_LENGTH = 4096
DISALLOWED_PATH_CHARACTERS = ["//"]
_CONTENT_RANGE_RE = re.compile(r"^bytes\s+(\d+)-(\d+)/(\d+|\*)$")


def debug(message: str, *args: Any) -> None:
    try:
        debug_env = os.getenv("DEBUG", "")
        if "chunkstore" in debug_env:
            print(f"chunkstore: {message}", *args)
    except Exception:
        pass


def validate_path(path: str) -> None:
    if not path or not path.strip("/"):
        raise TransferError("path is required")
    if len(path) > MAXIMUM_PATH_LENGTH:
        raise TransferError(f"path is too long, maximum length is {MAXIMUM_PATH_LENGTH}")
    for invalid in DISALLOWED_PATH_CHARACTERS:
        if invalid in path:
            raise TransferError(f'path cannot contain "{invalid}", please encode it if needed')


def normalize_path(path: str) -> str:
    # 'a/b' not '/a/b'
    return path.replace("\\", "/").lstrip("/")


def parse_http_date(value: str) -> datetime | None:
    """Parse the RFC 2822 dates the service uses ("Tue, 19 Jul 2011 21:55:38 +0000")."""
    try:
        return parsedate_to_datetime(value)
    except (ValueError, TypeError):
        pass
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def parse_content_range(value: str | None) -> tuple[int, int, int | None] | None:
    """Parse ``bytes first-last/total`` into ``(first, last, total)``; total may be None."""
    if not value:
        return None
    match = _CONTENT_RANGE_RE.match(value.strip())
    if match is None:
        return None
    total = None if match.group(3) == "*" else int(match.group(3))
    return int(match.group(1)), int(match.group(2)), total


__all__ = [
    "MAXIMUM_PATH_LENGTH",
    "debug",
    "validate_path",
    "normalize_path",
    "parse_http_date",
    "parse_content_length",
    "parse_content_range",
]
