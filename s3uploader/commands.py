"""Command dispatcher shared by the CLI and the web front-end.

Each public coroutine performs one user-level command: it validates the
request, opens an S3 client, runs the storage calls and returns a plain
result object. Errors are raised as :mod:`s3uploader.core.exceptions`
classes and formatted by the caller.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from s3uploader.core.client import S3ClientManager
from s3uploader.core.exceptions import LocalIOError
from s3uploader.core.settings import StorageSettings
from s3uploader.storage.service import (
    DEFAULT_EXPIRES_IN,
    DEFAULT_LIST_LIMIT,
    ObjectListing,
    ObjectStorageService,
    ObjectStream,
    PresignedURL,
    guess_content_type,
    validate_expires_in,
)
from s3uploader.storage.validation import (
    TransferRequest,
    resolve_download_path,
    validate_download_destination,
    validate_object_key,
    validate_upload,
)
from s3uploader.utils import format_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload."""

    key: str
    size: int
    content_type: str
    download_url: PresignedURL

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": self.size,
            "content_type": self.content_type,
            "download_url": self.download_url.url,
            "expires_in": self.download_url.expires_in,
        }


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of a successful download to a local file."""

    key: str
    path: Path
    size: int


class CommandDispatcher:
    """Runs upload, download, list, delete and presign commands.

    The dispatcher holds only the read-only settings, a client manager and
    a stateless storage service, so one instance can serve every request of
    the web front-end concurrently.
    """

    def __init__(
        self,
        settings: StorageSettings,
        client_manager: S3ClientManager | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            settings: Resolved storage settings
            client_manager: Source of S3 clients (built from settings if omitted)

        Raises:
            ConfigurationError: If the credentials are missing
        """
        settings.require_credentials()
        self.settings = settings
        self.client_manager = client_manager or S3ClientManager(settings)
        self.service = ObjectStorageService(settings.bucket)

    async def upload(
        self,
        file_path: str | os.PathLike,
        key: str | None = None,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> UploadResult:
        """Upload a local file and return a download link for it.

        The size ceiling is checked before the file is opened.

        Args:
            file_path: Local file to upload
            key: Object key (defaults to the file name)
            expires_in: Lifetime of the returned download URL in seconds

        Raises:
            LocalIOError: If the file cannot be read
            SizeLimitExceededError: If the file is larger than the ceiling
        """
        path = Path(file_path)
        validate_expires_in(expires_in)
        logger.debug(f"Uploading {path} (max size {format_size(self.settings.max_size)})")

        size = validate_upload(path, self.settings.max_size)
        request = TransferRequest(
            local_path=path,
            key=validate_object_key(key or path.name),
            size=size,
            max_size=self.settings.max_size,
        )
        content_type = guess_content_type(path.name)
        logger.debug(f"File size: {format_size(size)}, content type: {content_type}")

        async with self.client_manager.get_async_client() as s3_client:
            try:
                with request.local_path.open("rb") as fh:
                    await self.service.put(
                        s3_client,
                        request.key,
                        fh,
                        content_type=content_type,
                        size=request.size,
                    )
            except OSError as e:
                raise LocalIOError(
                    f"Cannot read {path}: {e}", path=str(path), original_error=e
                ) from e
            download_url = await self.service.presign(s3_client, request.key, expires_in)

        logger.info(f"Uploaded {path} to s3://{self.settings.bucket}/{request.key}")
        return UploadResult(
            key=request.key,
            size=size,
            content_type=content_type,
            download_url=download_url,
        )

    async def download(
        self,
        key: str,
        output: str | os.PathLike | None = None,
    ) -> DownloadResult:
        """Stream an object into a local file.

        Bytes go to a ``.part`` file next to the destination, which is
        renamed into place only after the last chunk is written. A failed
        download leaves no partial file behind.

        Args:
            key: Object key to download
            output: Destination file or directory (defaults to the current
                directory and the key's base name)

        Raises:
            ObjectNotFoundError: If the key does not exist
            LocalIOError: If the destination cannot be written
        """
        validate_object_key(key)
        target = validate_download_destination(resolve_download_path(key, output))
        request = TransferRequest(local_path=target, key=key)
        partial = target.with_name(target.name + ".part")
        logger.debug(f"Downloading {key} -> {target}")

        written = 0
        async with self.open_download(request.key) as stream:
            try:
                with partial.open("wb") as fh:
                    async for chunk in stream.iter_chunks():
                        fh.write(chunk)
                        written += len(chunk)
                        if stream.content_length:
                            logger.debug(
                                f"Progress: {written * 100 // stream.content_length}% "
                                f"({format_size(written)}/{format_size(stream.content_length)})"
                            )
                os.replace(partial, request.local_path)
            except OSError as e:
                partial.unlink(missing_ok=True)
                raise LocalIOError(
                    f"Cannot write {target}: {e}", path=str(target), original_error=e
                ) from e
            except BaseException:
                partial.unlink(missing_ok=True)
                raise

        logger.info(f"Downloaded s3://{self.settings.bucket}/{key} to {target}")
        return DownloadResult(key=key, path=request.local_path, size=written)

    @asynccontextmanager
    async def open_download(self, key: str) -> AsyncGenerator[ObjectStream, None]:
        """Open an object for streaming and close it on exit.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        async with self.client_manager.get_async_client() as s3_client:
            stream = await self.service.get(s3_client, key)
            try:
                yield stream
            finally:
                await stream.close()

    async def presign(self, key: str, expires_in: int = DEFAULT_EXPIRES_IN) -> PresignedURL:
        """Generate a time-limited download URL without transferring bytes."""
        logger.debug(f"Generating presigned URL for {key} ({expires_in}s)")
        async with self.client_manager.get_async_client() as s3_client:
            return await self.service.presign(s3_client, key, expires_in)

    async def list(
        self,
        prefix: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> ObjectListing:
        """List objects in the configured bucket. An empty listing is not an error."""
        logger.debug(
            f"Listing files in bucket {self.settings.bucket} "
            f"(prefix={prefix!r}, limit={limit})"
        )
        async with self.client_manager.get_async_client() as s3_client:
            return await self.service.list(s3_client, prefix=prefix, limit=limit)

    async def delete(self, key: str) -> str:
        """Delete one object and return its key.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        async with self.client_manager.get_async_client() as s3_client:
            await self.service.delete(s3_client, key)
        logger.info(f"Deleted s3://{self.settings.bucket}/{key}")
        return key
