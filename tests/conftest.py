"""Shared fixtures for all tests."""

from collections.abc import Generator

import pytest


@pytest.fixture
def mock_env_clear(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear all chunkstore-related environment variables for testing.

    This ensures tests don't accidentally use real credentials or a
    developer's local configuration from the environment.
    """
    env_vars_to_clear = [
        "CHUNKSTORE_ACCESS_TOKEN",
        "CHUNKSTORE_CHUNK_SIZE",
        "CHUNKSTORE_ROOT",
        "CHUNKSTORE_CONTENT_URL",
        "CHUNKSTORE_TIMEOUT",
        "CHUNKSTORE_RETRIES",
        "DEBUG",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield
