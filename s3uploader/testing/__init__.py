"""Testing utilities for s3uploader.

This module provides an in-memory S3 double, a client manager that hands
it out, and pytest fixtures wiring both into a dispatcher.

Usage in conftest.py:
    pytest_plugins = ["s3uploader.testing.fixtures"]

Or build the pieces yourself:
    from s3uploader.testing import InMemoryS3, InMemoryClientManager

    s3 = InMemoryS3()
    dispatcher = CommandDispatcher(settings, InMemoryClientManager(s3))
"""

from s3uploader.testing.mocks import (
    InMemoryClientManager,
    InMemoryS3,
    InMemoryStreamingBody,
    mock_s3_client,
)
from s3uploader.testing.utils import TEST_PASSWORD, create_test_settings

__all__ = [
    "InMemoryS3",
    "InMemoryClientManager",
    "InMemoryStreamingBody",
    "mock_s3_client",
    "create_test_settings",
    "TEST_PASSWORD",
]
