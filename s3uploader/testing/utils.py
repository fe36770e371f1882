"""Testing utilities for s3uploader."""

from s3uploader.core.settings import StorageSettings

TEST_PASSWORD = "testing"


def create_test_settings(
    bucket: str = "test-bucket",
    max_size: int = 100 * 1024 * 1024,
    **overrides
) -> StorageSettings:
    """Create settings for tests without touching the environment.

    The ``.env`` file is skipped so a developer's local configuration
    cannot leak into test runs. The server password is ``TEST_PASSWORD``
    unless overridden.

    Args:
        bucket: Bucket name for tests
        max_size: Upload size ceiling in bytes
        **overrides: Additional settings to override

    Returns:
        StorageSettings instance configured for testing
    """
    values = {
        "bucket": bucket,
        "region": "us-east-1",
        "access_key": "testing",
        "secret_key": "testing",
        "url": "http://localhost:4566",
        "max_size": max_size,
        "password": TEST_PASSWORD,
    }
    values.update(overrides)
    return StorageSettings(_env_file=None, **values)
