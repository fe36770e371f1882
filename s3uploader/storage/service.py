"""Object storage operations against an S3-compatible endpoint."""

import inspect
import logging
import mimetypes
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO

import aiohttp
from botocore.exceptions import BotoCoreError, ClientError

from s3uploader.core.exceptions import (
    BucketNotFoundError,
    ObjectNotFoundError,
    StorageError,
    StorageValidationError,
    TransportError,
)
from s3uploader.storage.validation import validate_object_key

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXPIRES_IN = 3600
MAX_EXPIRES_IN = 7 * 24 * 3600
DEFAULT_LIST_LIMIT = 100
MAX_KEYS_PER_PAGE = 1000
CHUNK_SIZE = 1024 * 1024

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def guess_content_type(name: str) -> str:
    """Guess a MIME type from a file name, falling back to octet-stream."""
    return mimetypes.guess_type(name)[0] or DEFAULT_CONTENT_TYPE


def validate_expires_in(expires_in: Any) -> int:
    """Check a presigned URL lifetime in seconds."""
    if isinstance(expires_in, bool) or not isinstance(expires_in, int):
        raise StorageValidationError(
            "Expiration must be a whole number of seconds",
            field="expires",
            value=str(expires_in),
        )
    if expires_in < 1 or expires_in > MAX_EXPIRES_IN:
        raise StorageValidationError(
            f"Expiration must be between 1 and {MAX_EXPIRES_IN} seconds "
            f"(got {expires_in})",
            field="expires",
            value=str(expires_in),
        )
    return expires_in


@dataclass(frozen=True)
class ObjectInfo:
    """One entry of a listing."""

    key: str
    size: int = 0
    last_modified: datetime | None = None


@dataclass
class ObjectListing:
    """Keys returned by one list call, in the order the store sent them.

    Attributes:
        objects: Listed entries
        prefix: Prefix filter that was applied, if any
        limit: Maximum number of entries requested
        truncated: True when the store had more matching keys
    """

    objects: list[ObjectInfo] = field(default_factory=list)
    prefix: str | None = None
    limit: int = DEFAULT_LIST_LIMIT
    truncated: bool = False

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.objects]

    def __len__(self) -> int:
        return len(self.objects)

    def to_dict(self) -> dict:
        return {
            "prefix": self.prefix,
            "limit": self.limit,
            "truncated": self.truncated,
            "count": len(self.objects),
            "objects": [
                {
                    "key": obj.key,
                    "size": obj.size,
                    "last_modified": (
                        obj.last_modified.isoformat() if obj.last_modified else None
                    ),
                }
                for obj in self.objects
            ],
        }


@dataclass(frozen=True)
class PresignedURL:
    """A signed GET URL and how long it stays valid."""

    url: str
    expires_in: int = DEFAULT_EXPIRES_IN

    def to_dict(self) -> dict:
        return {"url": self.url, "expires_in": self.expires_in}


class ObjectStream:
    """Streaming body of a downloaded object.

    Chunks are pulled from the network on demand; call :meth:`close` when
    done so the connection goes back to the pool.
    """

    def __init__(
        self,
        key: str,
        body: Any,
        content_length: int | None = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ):
        self.key = key
        self.content_length = content_length
        self.content_type = content_type
        self._body = body

    async def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._body.iter_chunks(chunk_size):
                yield chunk
        except (BotoCoreError, aiohttp.ClientError) as e:
            raise TransportError(operation="get_object", original_error=e) from e

    async def close(self) -> None:
        result = self._body.close()
        if inspect.isawaitable(result):
            await result


class ObjectStorageService:
    """Stateless wrapper around the S3 calls s3uploader needs.

    Each method takes the S3 client to use, so the same service instance
    can be shared by concurrent requests.

    Example:
        service = ObjectStorageService("my-bucket")

        async with manager.get_async_client() as s3_client:
            await service.put(s3_client, "report.pdf", fh, size=1024)
            url = await service.presign(s3_client, "report.pdf")
    """

    def __init__(self, bucket_name: str):
        """Initialize the storage service.

        Args:
            bucket_name: Bucket every operation targets
        """
        self.bucket_name = bucket_name

    def _translate(
        self, error: Exception, operation: str, key: str | None = None
    ) -> StorageError:
        """Map a botocore failure onto the s3uploader error taxonomy."""
        if isinstance(error, ClientError):
            code = str(error.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES and key is not None:
                return ObjectNotFoundError(key, self.bucket_name)
            if code == "NoSuchBucket":
                return BucketNotFoundError(self.bucket_name)
        return TransportError(operation=operation, original_error=error)

    async def put(
        self,
        s3_client,
        key: str,
        body: BinaryIO | bytes,
        content_type: str | None = None,
        size: int | None = None,
    ) -> str | None:
        """Upload ``body`` under ``key``.

        A file object is handed to the transport as is, which reads it in
        chunks instead of loading it into memory.

        Args:
            s3_client: The S3 client to use
            key: Destination object key
            body: Open binary file or bytes
            content_type: MIME type (guessed from the key if not provided)
            size: Content length in bytes, when known

        Returns:
            The ETag reported by the store
        """
        validate_object_key(key)
        params: dict[str, Any] = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": body,
            "ContentType": content_type or guess_content_type(key),
        }
        if size is not None:
            params["ContentLength"] = size

        logger.debug(f"PutObject s3://{self.bucket_name}/{key} ({params['ContentType']})")
        try:
            response = await s3_client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "put_object", key) from e
        return response.get("ETag")

    async def head(self, s3_client, key: str) -> dict:
        """Return size and content type of an object.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        validate_object_key(key)
        try:
            response = await s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "head_object", key) from e
        return {
            "key": key,
            "size": response.get("ContentLength", 0),
            "content_type": response.get("ContentType", DEFAULT_CONTENT_TYPE),
            "last_modified": response.get("LastModified"),
        }

    async def get(self, s3_client, key: str) -> ObjectStream:
        """Open an object for streaming.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        validate_object_key(key)
        logger.debug(f"GetObject s3://{self.bucket_name}/{key}")
        try:
            response = await s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "get_object", key) from e
        return ObjectStream(
            key=key,
            body=response["Body"],
            content_length=response.get("ContentLength"),
            content_type=response.get("ContentType", DEFAULT_CONTENT_TYPE),
        )

    async def list(
        self,
        s3_client,
        prefix: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> ObjectListing:
        """List up to ``limit`` keys starting with ``prefix``.

        The remaining budget is sent as ``MaxKeys`` on every page so the
        store never returns more than needed.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise StorageValidationError(
                f"Limit must be a positive integer (got {limit})",
                field="limit",
                value=str(limit),
            )

        listing = ObjectListing(prefix=prefix or None, limit=limit)
        continuation_token = None

        while len(listing.objects) < limit:
            remaining = limit - len(listing.objects)
            params: dict[str, Any] = {
                "Bucket": self.bucket_name,
                "MaxKeys": min(remaining, MAX_KEYS_PER_PAGE),
            }
            if prefix:
                params["Prefix"] = prefix
            if continuation_token:
                params["ContinuationToken"] = continuation_token

            try:
                response = await s3_client.list_objects_v2(**params)
            except (ClientError, BotoCoreError) as e:
                raise self._translate(e, "list_objects_v2") from e

            for obj in response.get("Contents", [])[:remaining]:
                listing.objects.append(
                    ObjectInfo(
                        key=obj["Key"],
                        size=obj.get("Size", 0),
                        last_modified=obj.get("LastModified"),
                    )
                )

            listing.truncated = bool(response.get("IsTruncated", False))
            continuation_token = response.get("NextContinuationToken")
            if not listing.truncated or not continuation_token:
                break

        logger.debug(
            f"Listed {len(listing.objects)} object(s) in {self.bucket_name} "
            f"(prefix={prefix!r}, limit={limit}, truncated={listing.truncated})"
        )
        return listing

    async def delete(self, s3_client, key: str) -> None:
        """Delete an object.

        DeleteObject succeeds for missing keys, so existence is checked
        first to report a missing key as not found.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        await self.head(s3_client, key)
        logger.debug(f"DeleteObject s3://{self.bucket_name}/{key}")
        try:
            await s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "delete_object", key) from e

    async def presign(
        self,
        s3_client,
        key: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> PresignedURL:
        """Generate a presigned URL for downloading an object.

        Signing is local; no request reaches the store.

        Args:
            s3_client: The S3 client to use
            key: The object key
            expires_in: URL lifetime in seconds

        Returns:
            The presigned URL and its lifetime
        """
        validate_object_key(key)
        expires_in = validate_expires_in(expires_in)
        try:
            url = await s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "generate_presigned_url", key) from e
        return PresignedURL(url=url, expires_in=expires_in)
