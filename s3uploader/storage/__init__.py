"""Storage utilities for s3uploader.

This module provides the object storage service that talks to the S3
endpoint and the validation run before any transfer starts.
"""

from s3uploader.storage.service import (
    ObjectInfo,
    ObjectListing,
    ObjectStorageService,
    ObjectStream,
    PresignedURL,
)
from s3uploader.storage.validation import (
    TransferRequest,
    validate_download_destination,
    validate_upload,
)

__all__ = [
    "ObjectInfo",
    "ObjectListing",
    "ObjectStorageService",
    "ObjectStream",
    "PresignedURL",
    "TransferRequest",
    "validate_download_destination",
    "validate_upload",
]
