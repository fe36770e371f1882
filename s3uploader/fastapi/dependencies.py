"""FastAPI dependencies for s3uploader routes."""

import secrets

from fastapi import Depends, Header, Request

from s3uploader.commands import CommandDispatcher
from s3uploader.core.exceptions import AuthenticationError
from s3uploader.core.settings import StorageSettings

PASSWORD_HEADER = "X-Password"


def get_settings(request: Request) -> StorageSettings:
    """Return the settings the app was created with."""
    return request.app.state.settings


def get_dispatcher(request: Request) -> CommandDispatcher:
    """Return the shared command dispatcher."""
    return request.app.state.dispatcher


def check_password(settings: StorageSettings, password: str | None) -> None:
    """Reject the request unless it carries the configured password.

    Raises:
        AuthenticationError: If the password is missing or wrong
    """
    if settings.password is None or not password:
        raise AuthenticationError()
    expected = settings.password.get_secret_value()
    if not secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError()


def require_password(
    settings: StorageSettings = Depends(get_settings),
    x_password: str | None = Header(None, alias=PASSWORD_HEADER),
) -> None:
    """Guard a route with the server password sent in the ``X-Password`` header."""
    check_password(settings, x_password)
