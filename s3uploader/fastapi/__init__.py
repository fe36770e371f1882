"""FastAPI front-end for s3uploader."""

from s3uploader.fastapi.app import create_app
from s3uploader.fastapi.error_handlers import register_error_handlers

__all__ = ["create_app", "register_error_handlers"]
