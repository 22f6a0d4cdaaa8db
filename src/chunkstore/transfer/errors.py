from __future__ import annotations

from typing import Any

import httpx


class TransferError(Exception):
    """Base class for every failure raised by the transfer layer."""


class TransportError(TransferError):
    """A request came back with a non-success status (or never came back)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        data: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response
        self.data = data
        self.diagnostic: TransportError | None = None

    def attach_diagnostic(self, detailed: TransportError) -> None:
        """Adopt the message of a richer error obtained by re-issuing the request."""
        self.diagnostic = detailed
        if detailed.message and detailed.message != self.message:
            self.message = detailed.message
            self.args = (detailed.message,)
        if self.data is None:
            self.data = detailed.data


class BadRequestError(TransportError):
    pass


class UnauthorizedError(TransportError):
    pass


class ForbiddenError(TransportError):
    pass


class NotFoundError(TransportError):
    pass


class ConflictError(TransportError):
    pass


class PreconditionFailedError(TransportError):
    """The object changed since its fingerprint was captured."""


class RangeNotSatisfiableError(TransportError):
    pass


class RateLimitedError(TransportError):
    def __init__(self, message: str, *, retry_after: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class QuotaExceededError(TransportError):
    pass


class ServerError(TransportError):
    pass


class NetworkError(TransportError):
    """The request failed below HTTP: connect, read or protocol failure."""


class StallError(TransferError):
    """A partial-content round delivered no bytes."""


class ProtocolError(TransferError):
    """A response contradicts what the transfer already established."""


class TransferCancelledError(TransferError):
    """The caller cancelled the transfer."""

    def __init__(self, message: str = "Transfer was cancelled") -> None:
        super().__init__(message)


_STATUS_ERRORS: dict[int, type[TransportError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
    416: RangeNotSatisfiableError,
    507: QuotaExceededError,
}


def parse_retry_after(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_error_message(response: httpx.Response) -> tuple[str, Any | None]:
    parsed: Any | None = None
    message = f"HTTP {response.status_code}"
    try:
        body = response.content
    except httpx.ResponseNotRead:
        return message, None
    if not body:
        return message, None
    try:
        parsed = response.json()
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        err = parsed.get("error")
        if isinstance(err, dict):
            err = err.get("message") or err.get("code")
        if isinstance(err, str) and err:
            message = f"{message}: {err}"
        return message, parsed

    text = response.text
    if text:
        snippet = text if len(text) <= 500 else text[:500] + "..."
        message = f"{message}: {snippet}"
    return message, parsed


def classify_response(response: httpx.Response) -> TransportError:
    """Turn a non-success response into its typed TransportError.

    The response body must already be loaded.
    """
    message, data = _parse_error_message(response)
    status = response.status_code
    kwargs: dict[str, Any] = {"status_code": status, "response": response, "data": data}

    if status == 429 or (status == 503 and "retry-after" in response.headers):
        return RateLimitedError(
            message,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
            **kwargs,
        )
    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = ServerError if status >= 500 else TransportError
    return error_cls(message, **kwargs)


def should_retry(status_code: int) -> bool:
    return status_code in {429, 500, 502, 503, 504}


__all__ = [
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
    "classify_response",
    "parse_retry_after",
    "should_retry",
]
