"""Pytest fixtures for s3uploader testing.

To use these fixtures, add to your conftest.py:

    pytest_plugins = ["s3uploader.testing.fixtures"]
"""

import pytest

from s3uploader.commands import CommandDispatcher
from s3uploader.core.settings import StorageSettings
from s3uploader.testing.mocks import InMemoryClientManager, InMemoryS3
from s3uploader.testing.utils import TEST_PASSWORD, create_test_settings


@pytest.fixture
def s3_test_bucket() -> str:
    """Provide test bucket name."""
    return "test-bucket"


@pytest.fixture
def storage_settings(s3_test_bucket: str) -> StorageSettings:
    """Provide test settings with a 100MB ceiling.

    Returns:
        StorageSettings instance configured for testing
    """
    return create_test_settings(bucket=s3_test_bucket)


@pytest.fixture
def mock_s3(s3_test_bucket: str) -> InMemoryS3:
    """Provide in-memory S3 mock with the test bucket created.

    Returns:
        InMemoryS3 instance
    """
    s3 = InMemoryS3()
    s3._ensure_bucket(s3_test_bucket)
    yield s3
    s3.clear()


@pytest.fixture
def client_manager(mock_s3: InMemoryS3) -> InMemoryClientManager:
    """Provide a client manager that always yields ``mock_s3``."""
    return InMemoryClientManager(mock_s3)


@pytest.fixture
def dispatcher(
    storage_settings: StorageSettings,
    client_manager: InMemoryClientManager,
) -> CommandDispatcher:
    """Provide a dispatcher wired to the in-memory store."""
    return CommandDispatcher(storage_settings, client_manager)


@pytest.fixture
def storage_test_app(
    storage_settings: StorageSettings,
    client_manager: InMemoryClientManager,
):
    """Provide a FastAPI test client backed by the in-memory store.

    Every request carries the test server password.

    Yields:
        FastAPI TestClient with mocked S3
    """
    try:
        from fastapi.testclient import TestClient
        from s3uploader.fastapi.app import create_app
        from s3uploader.fastapi.dependencies import PASSWORD_HEADER
    except ImportError:
        pytest.skip("fastapi or httpx not installed")
        return

    app = create_app(settings=storage_settings, client_manager=client_manager)

    with TestClient(app, headers={PASSWORD_HEADER: TEST_PASSWORD}) as client:
        yield client
