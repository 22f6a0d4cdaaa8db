from __future__ import annotations

import io
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chunkstore import AsyncTransferClient, TransferClient, TransferOptions
from chunkstore.transfer import ObjectMetadata, TransferError
from chunkstore.transfer._core import BaseTransferOps


def _metadata() -> ObjectMetadata:
    return ObjectMetadata(path="/docs/report.bin", bytes=3)


class TestTransferClientLifecycle:
    def test_sync_client_reuses_owned_ops_client(self, mock_env_clear) -> None:
        mock_ops = MagicMock()
        mock_ops.download = AsyncMock(return_value=_metadata())

        with patch("chunkstore.transfer.client.SyncTransferOps", return_value=mock_ops) as ctor:
            client = TransferClient("test_token")
            client.download("docs/report.bin", io.BytesIO())
            client.download("docs/other.bin", io.BytesIO())

        assert ctor.call_count == 1
        assert mock_ops.download.await_count == 2

    def test_sync_close_is_idempotent_and_blocks_use_after_close(self, mock_env_clear) -> None:
        mock_ops = MagicMock()
        mock_ops.download = AsyncMock(return_value=_metadata())

        with patch("chunkstore.transfer.client.SyncTransferOps", return_value=mock_ops):
            client = TransferClient("test_token")
            client.close()
            client.close()

            with pytest.raises(TransferError, match="Client is closed"):
                client.download("docs/report.bin", io.BytesIO())
            with pytest.raises(TransferError, match="Client is closed"):
                client.create_upload_session()

        mock_ops.close.assert_called_once()
        mock_ops.download.assert_not_called()

    def test_sync_context_manager_closes(self, mock_env_clear) -> None:
        mock_ops = MagicMock()

        with patch("chunkstore.transfer.client.SyncTransferOps", return_value=mock_ops):
            with TransferClient("test_token"):
                pass

        mock_ops.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_async_close_is_idempotent_and_blocks_use_after_close(
        self, mock_env_clear
    ) -> None:
        mock_ops = MagicMock()
        mock_ops.aclose = AsyncMock()
        mock_ops.download = AsyncMock(return_value=_metadata())

        with patch("chunkstore.transfer.client.AsyncTransferOps", return_value=mock_ops):
            client = AsyncTransferClient("test_token")
            await client.aclose()
            await client.aclose()

            with pytest.raises(TransferError, match="Client is closed"):
                await client.download("docs/report.bin", io.BytesIO())

        mock_ops.aclose.assert_awaited_once()
        mock_ops.download.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, mock_env_clear) -> None:
        mock_ops = MagicMock()
        mock_ops.aclose = AsyncMock()

        with patch("chunkstore.transfer.client.AsyncTransferOps", return_value=mock_ops):
            async with AsyncTransferClient("test_token"):
                pass

        mock_ops.aclose.assert_awaited_once()


class TestTransferClientOptions:
    def test_options_come_from_environment(self, mock_env_clear) -> None:
        with patch.dict(
            os.environ,
            {
                "CHUNKSTORE_ACCESS_TOKEN": "env_token",
                "CHUNKSTORE_CHUNK_SIZE": "65536",
                "CHUNKSTORE_ROOT": "sandbox",
            },
        ):
            with TransferClient() as client:
                options = client.options

        assert options.access_token == "env_token"
        assert options.chunk_size == 65536
        assert options.root == "sandbox"

    def test_keyword_arguments_override_options(self, mock_env_clear) -> None:
        base = TransferOptions(access_token="base_token", chunk_size=1024, retries=5)

        with TransferClient("explicit_token", chunk_size=2048, options=base) as client:
            options = client.options

        assert options.access_token == "explicit_token"
        assert options.chunk_size == 2048
        assert options.retries == 5

    def test_invalid_configuration_raises(self, mock_env_clear) -> None:
        with pytest.raises(TransferError, match="root"):
            TransferClient("test_token", root="elsewhere")  # type: ignore[arg-type]

    def test_missing_token_raises(self, mock_env_clear) -> None:
        with pytest.raises(TransferError, match="No access token"):
            TransferClient()


class TestTransferOpsBase:
    def test_base_engine_cannot_be_instantiated(self) -> None:
        with pytest.raises(TypeError, match="_download_to_path"):
            BaseTransferOps(executor=MagicMock(), await_callbacks=True)  # type: ignore[abstract]
