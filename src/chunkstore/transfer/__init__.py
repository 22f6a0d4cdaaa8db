from .cancellation import CancellationToken
from .client import AsyncTransferClient, TransferClient
from .download import RangeIterator, plan_windows, resolve_identity
from .errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    PreconditionFailedError,
    ProtocolError,
    QuotaExceededError,
    RangeNotSatisfiableError,
    RateLimitedError,
    ServerError,
    StallError,
    TransferCancelledError,
    TransferError,
    TransportError,
    UnauthorizedError,
)
from .ops import (
    append_chunk,
    append_chunk_async,
    commit_chunked_upload,
    commit_chunked_upload_async,
    download,
    download_async,
    download_file,
    download_file_async,
)
from .options import TransferOptions
from .types import (
    ByteWindow,
    ChunkedUploadResult,
    ConflictPolicy,
    ObjectMetadata,
    ResolvedIdentity,
    TransferProgress,
    TransferTarget,
)
from .upload import AsyncUploadSession, UploadSession

__all__ = [
    # clients
    "TransferClient",
    "AsyncTransferClient",
    "UploadSession",
    "AsyncUploadSession",
    "CancellationToken",
    "TransferOptions",
    # one-shot operations
    "download",
    "download_async",
    "download_file",
    "download_file_async",
    "append_chunk",
    "append_chunk_async",
    "commit_chunked_upload",
    "commit_chunked_upload_async",
    # protocol pieces
    "RangeIterator",
    "plan_windows",
    "resolve_identity",
    # types
    "ByteWindow",
    "ChunkedUploadResult",
    "ConflictPolicy",
    "ObjectMetadata",
    "ResolvedIdentity",
    "TransferProgress",
    "TransferTarget",
    # errors
    "TransferError",
    "TransportError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "RangeNotSatisfiableError",
    "RateLimitedError",
    "QuotaExceededError",
    "ServerError",
    "NetworkError",
    "StallError",
    "ProtocolError",
    "TransferCancelledError",
]
