"""Ranged downloads and chunked uploads against a Dropbox-style content API."""

from .transfer import (
    AsyncTransferClient,
    AsyncUploadSession,
    CancellationToken,
    ConflictPolicy,
    ObjectMetadata,
    TransferClient,
    TransferError,
    TransferOptions,
    TransferTarget,
    UploadSession,
)

__version__ = "0.1.0"

__all__ = [
    "TransferClient",
    "AsyncTransferClient",
    "UploadSession",
    "AsyncUploadSession",
    "CancellationToken",
    "ConflictPolicy",
    "ObjectMetadata",
    "TransferError",
    "TransferOptions",
    "TransferTarget",
]
