"""Shared pytest configuration for s3uploader tests."""

import pytest

from s3uploader.testing.fixtures import (  # noqa: F401
    client_manager,
    dispatcher,
    mock_s3,
    s3_test_bucket,
    storage_settings,
    storage_test_app,
)

STORAGE_ENV_VARS = [
    "STORAGE_BUCKET",
    "STORAGE_REGION",
    "STORAGE_ACCESS_KEY",
    "STORAGE_SECRET_KEY",
    "STORAGE_URL",
    "STORAGE_MAX_SIZE",
    "STORAGE_VERBOSE",
    "STORAGE_HOST",
    "STORAGE_PORT",
    "STORAGE_PASSWORD",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test without STORAGE_* variables, from an empty directory.

    Working from ``tmp_path`` keeps a developer's ``.env`` file out of
    settings resolution.
    """
    for name in STORAGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
