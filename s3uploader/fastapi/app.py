"""Web front-end exposing the storage commands over HTTP."""

import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from pathlib import Path, PurePath

from fastapi import APIRouter, Depends, FastAPI, File, Form, Header, Query, UploadFile
from fastapi.responses import HTMLResponse, StreamingResponse

from s3uploader import __version__
from s3uploader.commands import CommandDispatcher
from s3uploader.core.client import S3ClientManager
from s3uploader.core.exceptions import (
    LocalIOError,
    SizeLimitExceededError,
    StorageValidationError,
)
from s3uploader.core.settings import StorageSettings
from s3uploader.fastapi.dependencies import (
    PASSWORD_HEADER,
    check_password,
    get_dispatcher,
    get_settings,
    require_password,
)
from s3uploader.fastapi.error_handlers import register_error_handlers
from s3uploader.storage.service import (
    CHUNK_SIZE,
    DEFAULT_EXPIRES_IN,
    DEFAULT_LIST_LIMIT,
    ObjectStream,
)
from s3uploader.storage.validation import key_basename

logger = logging.getLogger(__name__)

TTL_UNITS = {"seconds": 1, "minutes": 60, "hours": 3600}

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>S3 File Uploader</title>
</head>
<body>
    <h1>S3 File Uploader</h1>
    <form action="/upload" method="post" enctype="multipart/form-data">
        <p><label for="file">Select file</label>
           <input type="file" name="file" id="file" required></p>
        <p><label for="identifier">Identifier</label>
           <input type="text" name="identifier" id="identifier" placeholder="File identifier"></p>
        <p><label>Expiration (TTL)</label>
           <input type="number" name="ttl_value" min="1" max="100" value="1">
           <select name="ttl_unit">
               <option value="minutes">Minutes</option>
               <option value="hours" selected>Hours</option>
           </select></p>
        <p><label for="password">Password</label>
           <input type="password" name="password" id="password" required></p>
        <button type="submit">Upload</button>
    </form>
</body>
</html>
"""

router = APIRouter()


def ttl_seconds(ttl_value: int, ttl_unit: str) -> int:
    """Convert the form's TTL fields into seconds."""
    if ttl_unit not in TTL_UNITS:
        raise StorageValidationError(
            f"Unknown TTL unit '{ttl_unit}'", field="ttl_unit", value=ttl_unit
        )
    if ttl_value < 1:
        raise StorageValidationError(
            "TTL value must be at least 1", field="ttl_value", value=str(ttl_value)
        )
    return ttl_value * TTL_UNITS[ttl_unit]


async def spool_upload(upload: UploadFile, destination: Path, max_size: int) -> int:
    """Copy an uploaded part to disk chunk by chunk.

    The multipart parser has already buffered the part by the time a route
    runs, so this is a second check of the size ceiling: a part whose
    parsed size is over ``max_size`` is refused before anything is copied,
    and copying stops as soon as the part grows past it.
    """
    if upload.size is not None and upload.size > max_size:
        raise SizeLimitExceededError(size=upload.size, limit=max_size, path=upload.filename)

    written = 0
    try:
        with destination.open("wb") as fh:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size:
                    raise SizeLimitExceededError(size=written, limit=max_size, path=upload.filename)
                fh.write(chunk)
    except OSError as e:
        raise LocalIOError(
            f"Failed to create temp file: {e}", path=str(destination), original_error=e
        ) from e
    return written


async def stream_object(stack: AsyncExitStack, stream: ObjectStream) -> AsyncIterator[bytes]:
    """Yield an object's chunks and release its client when iteration ends.

    The exit stack is closed on exhaustion, on error and when the response
    is abandoned mid-stream.
    """
    try:
        async for chunk in stream.iter_chunks():
            yield chunk
    finally:
        await stack.aclose()


@router.get("/", response_class=HTMLResponse)
async def index() -> str:
    return INDEX_HTML


@router.get("/health")
async def health(settings: StorageSettings = Depends(get_settings)) -> dict:
    return {"status": "ok", "bucket": settings.bucket, "version": __version__}


@router.post("/upload")
async def upload(
    file: UploadFile = File(...),
    identifier: str = Form(""),
    ttl_value: int = Form(1),
    ttl_unit: str = Form("hours"),
    password: str = Form(""),
    x_password: str | None = Header(None, alias=PASSWORD_HEADER),
    settings: StorageSettings = Depends(get_settings),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> dict:
    """Upload one file and return a presigned download link for it.

    The password comes from the form field, or the ``X-Password`` header
    for scripted clients. A non-empty ``identifier`` replaces the file's
    stem in the object key; the original extension is kept.
    """
    check_password(settings, password or x_password)
    expires_in = ttl_seconds(ttl_value, ttl_unit)

    filename = key_basename(PurePath(file.filename or "").name or "unnamed")
    key = filename
    if identifier.strip():
        key = identifier.strip() + PurePath(filename).suffix

    with tempfile.TemporaryDirectory(prefix="s3uploader-") as tmp_dir:
        temp_path = Path(tmp_dir) / filename
        await spool_upload(file, temp_path, settings.max_size)
        logger.debug(f"Spooled upload {filename} to {temp_path}")
        result = await dispatcher.upload(temp_path, key=key, expires_in=expires_in)

    return result.to_dict()


@router.get("/files", dependencies=[Depends(require_password)])
async def list_files(
    prefix: str | None = Query(None),
    limit: int = Query(DEFAULT_LIST_LIMIT),
    settings: StorageSettings = Depends(get_settings),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> dict:
    listing = await dispatcher.list(prefix=prefix, limit=limit)
    return {"bucket": settings.bucket, "keys": listing.keys, **listing.to_dict()}


@router.get("/files/{key:path}", dependencies=[Depends(require_password)])
async def download(
    key: str,
    presign: bool = Query(False),
    expires: int = Query(DEFAULT_EXPIRES_IN),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Stream an object back, or return a presigned URL with ``?presign=true``."""
    if presign:
        presigned = await dispatcher.presign(key, expires)
        return {"key": key, **presigned.to_dict()}

    headers = {"Content-Disposition": f'attachment; filename="{key_basename(key)}"'}

    stack = AsyncExitStack()
    try:
        stream = await stack.enter_async_context(dispatcher.open_download(key))
    except BaseException:
        await stack.aclose()
        raise

    if stream.content_length is not None:
        headers["Content-Length"] = str(stream.content_length)

    return StreamingResponse(
        stream_object(stack, stream),
        media_type=stream.content_type,
        headers=headers,
    )


@router.delete("/files/{key:path}", dependencies=[Depends(require_password)])
async def delete(
    key: str,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> dict:
    deleted = await dispatcher.delete(key)
    return {"deleted": deleted}


def create_app(
    settings: StorageSettings,
    client_manager: S3ClientManager | None = None,
) -> FastAPI:
    """Create the web front-end.

    Args:
        settings: Resolved storage settings, shared read-only by all requests
        client_manager: Source of S3 clients (built from settings if omitted)

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If no server password is configured
    """
    settings.require_password()
    app = FastAPI(
        title="s3uploader",
        description="Upload and download files from S3-compatible storage",
        version=__version__,
    )
    app.state.settings = settings
    app.state.dispatcher = CommandDispatcher(settings, client_manager)

    register_error_handlers(app)
    app.include_router(router)
    return app
