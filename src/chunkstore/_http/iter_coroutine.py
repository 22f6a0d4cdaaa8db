"""iter_coroutine - drive the shared async transfer core from sync code."""

from __future__ import annotations

import typing

_T = typing.TypeVar("_T")


def iter_coroutine(coro: typing.Coroutine[None, None, _T]) -> _T:
    """
    Run a coroutine built on SyncTransport to completion without an event loop.

    The sync engine reuses the async transfer core. Its transport methods are
    declared async but never await, so the whole download or upload call
    finishes on the first send(None).

    Args:
        coro: A coroutine that completes without suspending.

    Returns:
        The return value of the coroutine.

    Raises:
        RuntimeError: If the coroutine suspends, which means an async-only
            awaitable (an async sink, an async sleep) reached the sync engine.
    """
    try:
        coro.send(None)
    except StopIteration as ex:
        return ex.value  # type: ignore [no-any-return]
    else:
        raise RuntimeError(f"coroutine {coro!r} did not stop after one iteration!")
    finally:
        coro.close()


__all__ = ["iter_coroutine"]
