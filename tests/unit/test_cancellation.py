import threading

import pytest

from chunkstore.transfer import CancellationToken, TransferCancelledError


class TestCancellationToken:
    def test_cancel_runs_callbacks_once(self) -> None:
        token = CancellationToken()
        calls: list[str] = []
        token.register(lambda: calls.append("a"))
        token.register(lambda: calls.append("b"))

        token.cancel()
        token.cancel()

        assert token.cancelled
        assert calls == ["a", "b"]

    def test_unregistered_callback_does_not_run(self) -> None:
        token = CancellationToken()
        calls: list[str] = []
        unregister = token.register(lambda: calls.append("x"))

        unregister()
        token.cancel()

        assert calls == []

    def test_register_after_cancel_runs_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls: list[str] = []

        token.register(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel()

        with pytest.raises(TransferCancelledError):
            token.raise_if_cancelled()

    def test_cancel_from_another_thread(self) -> None:
        token = CancellationToken()
        fired = threading.Event()
        token.register(fired.set)

        worker = threading.Thread(target=token.cancel)
        worker.start()
        worker.join()

        assert fired.is_set()
        assert token.cancelled

    def test_none_token_cannot_be_cancelled(self) -> None:
        token = CancellationToken.none()

        assert not token.cancelled
        token.register(lambda: None)()
        with pytest.raises(TypeError):
            token.cancel()
