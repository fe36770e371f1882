"""s3uploader: upload, download and share files on S3-compatible storage."""

__version__ = "1.0.0"

# Core components
from s3uploader.core.client import S3ClientManager
from s3uploader.core.exceptions import (
    AuthenticationError,
    BucketNotFoundError,
    ConfigurationError,
    LocalIOError,
    ObjectNotFoundError,
    SizeLimitExceededError,
    StorageError,
    StorageValidationError,
    TransportError,
)
from s3uploader.core.settings import StorageSettings, load_settings

# Storage components
from s3uploader.storage import (
    ObjectListing,
    ObjectStorageService,
    PresignedURL,
    TransferRequest,
    validate_upload,
)

# Commands
from s3uploader.commands import CommandDispatcher, DownloadResult, UploadResult

__all__ = [
    # Version
    "__version__",
    # Core
    "S3ClientManager",
    "StorageSettings",
    "load_settings",
    "StorageError",
    "ConfigurationError",
    "StorageValidationError",
    "SizeLimitExceededError",
    "ObjectNotFoundError",
    "BucketNotFoundError",
    "LocalIOError",
    "TransportError",
    "AuthenticationError",
    # Storage
    "ObjectStorageService",
    "ObjectListing",
    "PresignedURL",
    "TransferRequest",
    "validate_upload",
    # Commands
    "CommandDispatcher",
    "UploadResult",
    "DownloadResult",
]
