"""Integration tests for download_file: .part staging and cleanup."""

import os

import httpx
import pytest
import respx

from chunkstore import AsyncTransferClient, TransferClient
from chunkstore.transfer import StallError, TransferError, download_file, download_file_async

CONTENT_API_BASE = "https://api-content.dropbox.com/1"
OBJECT_URL = f"{CONTENT_API_BASE}/files/auto/docs/report.bin"
CHUNK_SIZE = 100_000


class TestDownloadFile:
    @respx.mock
    def test_download_file_sync(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes))
        dst = tmp_path / "nested" / "report.bin"

        with TransferClient("test_token", chunk_size=CHUNK_SIZE) as client:
            result = client.download_file("docs/report.bin", dst)

        assert result == os.fspath(dst)
        assert dst.read_bytes() == object_bytes
        assert not os.path.exists(f"{dst}.part")

    @respx.mock
    @pytest.mark.asyncio
    async def test_download_file_async(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes))
        dst = tmp_path / "report.bin"

        async with AsyncTransferClient("test_token", chunk_size=CHUNK_SIZE) as client:
            await client.download_file("docs/report.bin", dst)

        assert dst.read_bytes() == object_bytes
        assert not os.path.exists(f"{dst}.part")

    @respx.mock
    def test_failed_download_removes_part_file(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes, stall_on_round=2))
        dst = tmp_path / "report.bin"

        with TransferClient("test_token", chunk_size=CHUNK_SIZE) as client:
            with pytest.raises(StallError):
                client.download_file("docs/report.bin", dst)

        assert not dst.exists()
        assert not os.path.exists(f"{dst}.part")

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_download_removes_part_file_async(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes, stall_on_round=2))
        dst = tmp_path / "report.bin"

        async with AsyncTransferClient("test_token", chunk_size=CHUNK_SIZE) as client:
            with pytest.raises(StallError):
                await client.download_file("docs/report.bin", dst)

        assert not dst.exists()
        assert not os.path.exists(f"{dst}.part")

    def test_existing_destination_without_overwrite(self, mock_env_clear, tmp_path):
        dst = tmp_path / "report.bin"
        dst.write_bytes(b"keep me")

        with TransferClient("test_token") as client:
            with pytest.raises(TransferError, match="destination exists"):
                client.download_file("docs/report.bin", dst, overwrite=False)

        assert dst.read_bytes() == b"keep me"

    @respx.mock
    def test_download_file_function(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes))
        dst = tmp_path / "report.bin"

        download_file("docs/report.bin", dst, access_token="test_token")

        assert dst.read_bytes() == object_bytes

    @respx.mock
    @pytest.mark.asyncio
    async def test_download_file_async_function(
        self, mock_env_clear, tmp_path, object_bytes, describe_headers, range_responder
    ):
        respx.head(OBJECT_URL).mock(return_value=httpx.Response(200, headers=describe_headers))
        respx.get(OBJECT_URL).mock(side_effect=range_responder(object_bytes))
        dst = tmp_path / "report.bin"

        await download_file_async("docs/report.bin", dst, access_token="test_token")

        assert dst.read_bytes() == object_bytes
