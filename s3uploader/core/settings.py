"""Configuration resolution for s3uploader.

Values come from three places, highest precedence first:

1. Explicit keyword overrides (the CLI passes every flag the user gave)
2. ``STORAGE_*`` environment variables, then an optional ``.env`` file
3. Built-in defaults

The resolved :class:`StorageSettings` is frozen and is handed explicitly to
every component that needs it.
"""

import logging
from typing import Any

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from s3uploader.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "default-bucket"
DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_SIZE = 100 * 1024 * 1024
DEFAULT_PORT = 8080


class StorageSettings(BaseSettings):
    """Immutable configuration record for one process.

    Attributes:
        bucket: Target bucket name
        region: Region used for signing requests
        access_key: Access key id (never logged)
        secret_key: Secret access key (never logged)
        url: Custom S3-compatible endpoint; None uses AWS endpoint resolution
        max_size: Upload size ceiling in bytes
        verbose: Emit diagnostic output
        host: Interface the web server binds to
        port: Port the web server binds to
        password: Password the web server requires on every file route
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    bucket: str = DEFAULT_BUCKET
    region: str = DEFAULT_REGION
    access_key: SecretStr = SecretStr("")
    secret_key: SecretStr = SecretStr("")
    url: str | None = None
    max_size: int = Field(DEFAULT_MAX_SIZE, ge=0)
    verbose: bool = False
    host: str = "0.0.0.0"
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    password: SecretStr | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _blank_url_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def endpoint_url(self) -> str | None:
        """Endpoint passed to botocore, or None for the default resolver."""
        return self.url

    def missing_credentials(self) -> list[str]:
        """Return the names of credential fields that are still empty."""
        missing = []
        if not self.access_key.get_secret_value():
            missing.append("access_key")
        if not self.secret_key.get_secret_value():
            missing.append("secret_key")
        return missing

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless both credentials are present."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(missing_fields=missing)

    def require_password(self) -> None:
        """Raise ConfigurationError unless a non-empty server password is set."""
        if self.password is None or not self.password.get_secret_value():
            raise ConfigurationError(missing_fields=["password"])


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"]) or "settings"
        parts.append(f"{field}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(parts)


def load_settings(env_file: str | None = ".env", **overrides: Any) -> StorageSettings:
    """Resolve settings from overrides, the environment and defaults.

    Overrides whose value is None are treated as "not given" so that the
    environment or the default can supply the value instead.

    Args:
        env_file: Dotenv file to read, or None to skip it
        **overrides: Explicit values, typically the CLI flags

    Returns:
        The resolved, frozen settings

    Raises:
        ConfigurationError: If credentials are missing or a value is invalid
    """
    given = {name: value for name, value in overrides.items() if value is not None}

    try:
        settings = StorageSettings(_env_file=env_file, **given)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e

    settings.require_credentials()

    logger.debug(
        f"Resolved settings: bucket={settings.bucket} region={settings.region} "
        f"endpoint={settings.endpoint_url or 'default'} max_size={settings.max_size}"
    )
    return settings
