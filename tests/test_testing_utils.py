"""Tests for testing utilities module."""

import io

import pytest
from botocore.exceptions import ClientError

from s3uploader.testing.mocks import InMemoryClientManager, InMemoryS3, mock_s3_client
from s3uploader.testing.utils import create_test_settings


class TestInMemoryS3:
    """Tests for InMemoryS3 mock."""

    @pytest.mark.asyncio
    async def test_put_file_object_and_get(self):
        """Test a file body is consumed and read back."""
        s3 = InMemoryS3(read_chunk_size=3)

        await s3.put_object(Bucket="bucket", Key="a.bin", Body=io.BytesIO(b"abcdefgh"))
        response = await s3.get_object(Bucket="bucket", Key="a.bin")

        assert await response["Body"].read() == b"abcdefgh"
        assert response["ContentLength"] == 8

    @pytest.mark.asyncio
    async def test_get_nonexistent_object(self):
        """Test getting an object that doesn't exist."""
        s3 = InMemoryS3()

        with pytest.raises(ClientError) as exc_info:
            await s3.get_object(Bucket="bucket", Key="nonexistent")

        assert exc_info.value.response["Error"]["Code"] == "NoSuchKey"

    @pytest.mark.asyncio
    async def test_delete_nonexistent_object(self):
        """Test deleting a nonexistent object does not raise, like S3."""
        s3 = InMemoryS3()

        await s3.delete_object(Bucket="bucket", Key="nonexistent")

    @pytest.mark.asyncio
    async def test_head_object_not_found(self):
        """Test head object for nonexistent object."""
        s3 = InMemoryS3()
        await s3.create_bucket(Bucket="bucket")

        with pytest.raises(ClientError) as exc_info:
            await s3.head_object(Bucket="bucket", Key="missing")

        assert exc_info.value.response["Error"]["Code"] == "404"

    @pytest.mark.asyncio
    async def test_list_pagination(self):
        """Test MaxKeys and continuation tokens."""
        s3 = InMemoryS3()
        for key in ["c", "a", "b"]:
            await s3.put_object(Bucket="bucket", Key=key, Body=b"")

        first = await s3.list_objects_v2(Bucket="bucket", MaxKeys=2)
        second = await s3.list_objects_v2(
            Bucket="bucket", MaxKeys=2, ContinuationToken=first["NextContinuationToken"]
        )

        assert [o["Key"] for o in first["Contents"]] == ["a", "b"]
        assert first["IsTruncated"] is True
        assert [o["Key"] for o in second["Contents"]] == ["c"]
        assert second["IsTruncated"] is False

    @pytest.mark.asyncio
    async def test_streaming_body_chunks(self):
        """Test the body yields bounded chunks."""
        s3 = InMemoryS3()
        await s3.put_object(Bucket="bucket", Key="k", Body=b"x" * 10)
        response = await s3.get_object(Bucket="bucket", Key="k")

        chunks = [chunk async for chunk in response["Body"].iter_chunks(4)]

        assert [len(c) for c in chunks] == [4, 4, 2]

    @pytest.mark.asyncio
    async def test_calls_are_recorded(self):
        """Test calls and parameters are recorded."""
        s3 = InMemoryS3()
        await s3.generate_presigned_url("get_object", {"Bucket": "b", "Key": "k"}, ExpiresIn=60)

        assert s3.calls_to("generate_presigned_url")[0]["ExpiresIn"] == 60


class TestHelpers:
    """Tests for helper factories."""

    def test_mock_s3_client_context(self):
        """Test the context manager clears data afterwards."""
        with mock_s3_client() as s3:
            s3._ensure_bucket("bucket")
            s3._storage["bucket"]["k"] = b"v"

        assert s3.keys("bucket") == []

    @pytest.mark.asyncio
    async def test_client_manager_yields_same_mock(self):
        """Test the client manager always hands out the same store."""
        manager = InMemoryClientManager()

        async with manager.get_async_client() as first:
            pass
        async with manager.get_async_client() as second:
            pass

        assert first is second is manager.s3
        assert manager.opened == 2
        assert manager.closed == 2

    def test_create_test_settings(self):
        """Test test settings carry credentials and overrides."""
        settings = create_test_settings(bucket="b", max_size=10)

        assert settings.bucket == "b"
        assert settings.max_size == 10
        assert settings.missing_credentials() == []
