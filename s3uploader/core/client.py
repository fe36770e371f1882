"""S3 client factory for s3uploader."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from aiobotocore.client import AioBaseClient
from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from s3uploader.core.exceptions import TransportError
from s3uploader.core.settings import StorageSettings

logger = logging.getLogger(__name__)


@runtime_checkable
class S3ClientProtocol(Protocol):
    """Protocol for the S3 operations s3uploader issues."""

    async def get_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Get an object from S3."""
        ...

    async def put_object(self, Bucket: str, Key: str, Body: Any, **kwargs) -> dict[str, Any]:
        """Put an object to S3."""
        ...

    async def delete_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Delete an object from S3."""
        ...

    async def list_objects_v2(self, Bucket: str, **kwargs) -> dict[str, Any]:
        """List objects in S3."""
        ...

    async def head_object(self, Bucket: str, Key: str, **kwargs) -> dict[str, Any]:
        """Get object metadata."""
        ...

    async def generate_presigned_url(
        self, ClientMethod: str, Params: dict, ExpiresIn: int = 3600, **kwargs
    ) -> str:
        """Sign a URL for the given client method."""
        ...


class S3ClientManager:
    """Creates aiobotocore clients from resolved settings.

    The manager keeps only immutable configuration and a lazily created
    session, so one instance can serve concurrent requests.
    """

    def __init__(self, settings: StorageSettings):
        """Initialize the client manager.

        Args:
            settings: Resolved storage settings

        Raises:
            ConfigurationError: If the credentials are missing
        """
        settings.require_credentials()
        self.settings = settings
        self._session = None
        self._endpoint_url = settings.endpoint_url
        # SigV4 signing allows presigned lifetimes up to 7 days
        if self._endpoint_url:
            self._client_config = Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            )
        else:
            self._client_config = Config(signature_version="s3v4")

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url

    def _client_kwargs(self) -> dict[str, Any]:
        return {
            "region_name": self.settings.region,
            "aws_access_key_id": self.settings.access_key.get_secret_value(),
            "aws_secret_access_key": self.settings.secret_key.get_secret_value(),
            "endpoint_url": self._endpoint_url,
            "config": self._client_config,
        }

    @asynccontextmanager
    async def get_async_client(self) -> AsyncGenerator[AioBaseClient, None]:
        """Get an async S3 client within a context manager.

        s3uploader errors raised inside the ``async with`` block pass
        through untouched.

        Yields:
            An aiobotocore S3 client

        Raises:
            TransportError: If client creation or a raw botocore call fails
        """
        if self._session is None:
            self._session = get_session()

        logger.debug(
            f"Creating S3 client for bucket {self.settings.bucket} "
            f"(endpoint: {self._endpoint_url or 'default'})"
        )
        try:
            async with self._session.create_client(
                "s3", **self._client_kwargs()
            ) as client:
                yield client
        except BotoCoreError as e:
            raise TransportError(
                original_error=e,
                endpoint=self._endpoint_url,
            ) from e
