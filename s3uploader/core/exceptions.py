"""Custom exceptions for s3uploader.

Every failure the storage layer can report is one of these classes, so both
the CLI and the HTTP front-end can classify errors without inspecting
botocore internals.
"""

from s3uploader.utils import format_size


class StorageError(Exception):
    """Base exception for all s3uploader errors.

    All s3uploader exceptions inherit from this class, making it easy
    to catch all tool-specific errors.
    """

    def __init__(self, message: str, hint: str | None = None):
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class ConfigurationError(StorageError):
    """Raised when the resolved configuration is missing or invalid."""

    def __init__(
        self,
        message: str | None = None,
        missing_fields: list[str] | None = None,
    ):
        """Initialize the configuration error.

        Args:
            message: Custom error message
            missing_fields: List of missing configuration fields
        """
        self.missing_fields = missing_fields or []

        if missing_fields:
            fields_str = ", ".join(missing_fields)
            message = f"Missing required configuration: {fields_str}"
            hint = (
                "Pass them as command line flags or set the matching "
                "STORAGE_* environment variables (a .env file works too)."
            )
        else:
            hint = "Check your storage configuration."

        super().__init__(message or "Invalid storage configuration", hint)


class StorageValidationError(StorageError):
    """Raised when a request argument is rejected before any network call."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
    ):
        """Initialize the validation error.

        Args:
            message: The error message
            field: The argument that failed validation
            value: The invalid value (don't include sensitive data!)
        """
        self.field = field
        self.value = value

        hint = None
        if field:
            hint = f"Check the value for '{field}'."

        super().__init__(message, hint)


class SizeLimitExceededError(StorageError):
    """Raised when a file is larger than the configured size ceiling."""

    def __init__(self, size: int, limit: int, path: str | None = None):
        """Initialize the size limit error.

        Args:
            size: Actual size of the file in bytes
            limit: Configured maximum size in bytes
            path: Local path of the rejected file
        """
        self.size = size
        self.limit = limit
        self.path = path

        subject = f"File '{path}'" if path else "File"
        super().__init__(
            f"{subject} exceeds max size {format_size(limit)} "
            f"(file size: {format_size(size)})",
            "Raise the ceiling with --max-size or STORAGE_MAX_SIZE.",
        )


class ObjectNotFoundError(StorageError):
    """Raised when the requested object key does not exist."""

    def __init__(self, key: str, bucket: str | None = None):
        """Initialize the not found error.

        Args:
            key: The object key that was not found
            bucket: The bucket that was searched
        """
        self.key = key
        self.bucket = bucket

        location = f"s3://{bucket}/{key}" if bucket else key
        super().__init__(
            f"Object '{location}' not found",
            "Use the list command to see the available keys.",
        )


class BucketNotFoundError(StorageError):
    """Raised when the configured bucket doesn't exist."""

    def __init__(self, bucket_name: str):
        """Initialize the bucket not found error.

        Args:
            bucket_name: The bucket that was not found
        """
        self.bucket_name = bucket_name
        super().__init__(
            f"Bucket '{bucket_name}' not found",
            f"Create the bucket with: aws s3 mb s3://{bucket_name}\n"
            "Or check the --bucket flag / STORAGE_BUCKET environment variable.",
        )


class LocalIOError(StorageError):
    """Raised when a local file cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the local I/O error.

        Args:
            message: The error message
            path: The local path involved
            original_error: The underlying OSError, if any
        """
        self.path = path
        self.original_error = original_error
        super().__init__(message)


class TransportError(StorageError):
    """Raised when a call to the S3 endpoint fails.

    This exception wraps underlying botocore errors with helpful
    context about what might be wrong. It is never retried here.
    """

    def __init__(
        self,
        message: str | None = None,
        operation: str | None = None,
        original_error: Exception | None = None,
        endpoint: str | None = None,
    ):
        """Initialize the transport error.

        Args:
            message: Custom error message (optional)
            operation: The S3 operation that failed (e.g., 'put_object')
            original_error: The original exception that caused this error
            endpoint: The S3 endpoint URL being connected to
        """
        self.operation = operation
        self.original_error = original_error
        self.endpoint = endpoint

        if message:
            final_message, hint = message, None
        elif original_error:
            final_message, hint = self._format_error(original_error, endpoint)
        else:
            final_message = "Failed to reach the storage endpoint"
            hint = "Check your credentials and network connection."

        super().__init__(final_message, hint)

    def _format_error(
        self, error: Exception, endpoint: str | None
    ) -> tuple[str, str | None]:
        """Format the error message based on the underlying error."""
        error_str = str(error)

        if "Could not connect" in error_str or "Connection refused" in error_str:
            return (
                f"Could not connect to storage at {endpoint or 'AWS'}",
                "Check your network connection and the --endpoint / STORAGE_URL value.",
            )

        if "InvalidAccessKeyId" in error_str:
            return (
                "Invalid access key",
                "Check the --access-key flag or STORAGE_ACCESS_KEY variable.",
            )

        if "SignatureDoesNotMatch" in error_str:
            return (
                "Request signature mismatch",
                "Check the --secret-key flag or STORAGE_SECRET_KEY variable.",
            )

        if "AccessDenied" in error_str:
            return (
                "Access denied to storage resources",
                "Check the permissions attached to your access key.",
            )

        prefix = f"{self.operation} failed" if self.operation else "Storage error"
        return (f"{prefix}: {error}", None)


class AuthenticationError(StorageError):
    """Raised when the web front-end rejects a request password."""

    def __init__(self, message: str = "Invalid password"):
        super().__init__(message, "Ask the server operator for the server password.")
