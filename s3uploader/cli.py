"""s3uploader CLI tool."""

import asyncio
import functools
import logging

import click

from s3uploader import __version__
from s3uploader.commands import CommandDispatcher
from s3uploader.core.exceptions import ObjectNotFoundError, StorageError
from s3uploader.core.settings import StorageSettings, load_settings
from s3uploader.storage.service import DEFAULT_EXPIRES_IN, DEFAULT_LIST_LIMIT
from s3uploader.utils import format_size

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# CLI parameter name -> settings field
_SETTING_FIELDS = {
    "bucket": "bucket",
    "region": "region",
    "access_key": "access_key",
    "secret_key": "secret_key",
    "endpoint": "url",
    "max_size": "max_size",
}


def storage_options(func):
    """Attach the connection flags, accepted before or after the subcommand."""
    options = [
        click.option("--bucket", help="Storage bucket name (overrides env STORAGE_BUCKET)"),
        click.option("--region", help="Storage region (overrides env STORAGE_REGION)"),
        click.option("--access-key", help="Storage access key (overrides env STORAGE_ACCESS_KEY)"),
        click.option("--secret-key", help="Storage secret key (overrides env STORAGE_SECRET_KEY)"),
        click.option("--endpoint", help="Storage endpoint URL (overrides env STORAGE_URL)"),
        click.option(
            "--max-size",
            metavar="BYTES",
            help="Maximum upload size in bytes (overrides env STORAGE_MAX_SIZE)",
        ),
        click.option("-v", "--verbose", is_flag=True, help="Enable verbose output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )
    # botocore is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.INFO if verbose else logging.WARNING)


def resolve_settings(ctx: click.Context, local_options: dict) -> StorageSettings:
    """Merge group-level and subcommand-level flags, then load settings.

    A flag given after the subcommand wins over the same flag given before
    it; the environment and defaults fill in whatever is left.
    """
    options = dict(ctx.obj["options"])
    for name, value in local_options.items():
        if name == "verbose":
            options["verbose"] = options.get("verbose") or value
        elif value is not None:
            options[name] = value

    ctx.obj["verbose"] = bool(options.get("verbose"))
    overrides = {
        field: options.get(name) for name, field in _SETTING_FIELDS.items()
    }
    if options.get("verbose"):
        overrides["verbose"] = True

    settings = load_settings(**overrides)
    ctx.obj["verbose"] = settings.verbose
    configure_logging(settings.verbose)
    return settings


def handle_errors(func):
    """Turn s3uploader errors into a message on stderr and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            return func(*args, **kwargs)
        except ObjectNotFoundError as e:
            click.echo(f"Not found: {e.key}", err=True)
            ctx.exit(1)
        except StorageError as e:
            click.echo(f"Error: {e.message}", err=True)
            if e.hint and ctx.obj.get("verbose"):
                click.echo(f"Hint: {e.hint}", err=True)
            ctx.exit(1)

    return wrapper


@click.group()
@storage_options
@click.pass_context
def cli(ctx, **options):
    """Upload and download files from S3-compatible storage."""
    ctx.ensure_object(dict)
    ctx.obj["options"] = options
    ctx.obj["verbose"] = options["verbose"]


@cli.command()
@click.argument("file_path", type=click.Path(dir_okay=False))
@click.option(
    "--expires",
    type=int,
    default=DEFAULT_EXPIRES_IN,
    show_default=True,
    help="Lifetime of the returned download URL in seconds",
)
@click.option("--key", help="Object key to store the file under (defaults to the file name)")
@storage_options
@click.pass_context
@handle_errors
def upload(ctx, file_path, expires, key, **options):
    """Upload a file to storage."""
    settings = resolve_settings(ctx, options)
    if settings.verbose:
        click.echo(f"📤 Uploading file: {file_path}")
        click.echo(f"  Max size allowed: {format_size(settings.max_size)}")

    async def _upload():
        dispatcher = CommandDispatcher(settings)
        return await dispatcher.upload(file_path, key=key, expires_in=expires)

    result = asyncio.run(_upload())

    click.echo(f"Uploaded: {result.key} ({format_size(result.size)}) -> {result.download_url.url}")
    if settings.verbose:
        click.echo(f"  Content type: {result.content_type}")
        click.echo(f"  Link expires in {result.download_url.expires_in} seconds")


@cli.command()
@click.argument("file_name")
@click.option("--output", type=click.Path(), help="Output file or directory")
@click.option("--presign", is_flag=True, help="Print a presigned URL instead of downloading")
@click.option(
    "--expires",
    type=int,
    default=DEFAULT_EXPIRES_IN,
    show_default=True,
    help="Presigned URL lifetime in seconds",
)
@storage_options
@click.pass_context
@handle_errors
def download(ctx, file_name, output, presign, expires, **options):
    """Download a file from storage."""
    settings = resolve_settings(ctx, options)

    if presign:
        if settings.verbose:
            click.echo(f"🔗 Generating presigned URL for {file_name}")

        async def _presign():
            dispatcher = CommandDispatcher(settings)
            return await dispatcher.presign(file_name, expires)

        presigned = asyncio.run(_presign())
        click.echo(presigned.url)
        click.echo(f"Expires in: {presigned.expires_in} seconds")
        return

    async def _download():
        dispatcher = CommandDispatcher(settings)
        return await dispatcher.download(file_name, output)

    result = asyncio.run(_download())
    click.echo(f"Downloaded: {result.key} -> {result.path} ({format_size(result.size)})")


@cli.command("list")
@click.option("--prefix", help="Only list keys starting with this prefix")
@click.option(
    "--limit",
    type=int,
    default=DEFAULT_LIST_LIMIT,
    show_default=True,
    help="Maximum number of keys to list",
)
@storage_options
@click.pass_context
@handle_errors
def list_files(ctx, prefix, limit, **options):
    """List files in the storage bucket."""
    settings = resolve_settings(ctx, options)
    if settings.verbose:
        click.echo(f"📄 Listing files in bucket {settings.bucket}", err=True)
        if prefix:
            click.echo(f"  Prefix: {prefix}", err=True)
        click.echo(f"  Limit: {limit}", err=True)

    async def _list():
        dispatcher = CommandDispatcher(settings)
        return await dispatcher.list(prefix=prefix, limit=limit)

    listing = asyncio.run(_list())

    if not listing.objects:
        click.echo("No files found", err=True)
        return

    for obj in listing.objects:
        if settings.verbose:
            modified = obj.last_modified.isoformat() if obj.last_modified else "unknown"
            click.echo(f"{obj.key}\t{obj.size} bytes\t{modified}")
        else:
            click.echo(obj.key)

    if listing.truncated and settings.verbose:
        click.echo(f"(more than {limit} matching keys; raise --limit to see them)", err=True)


@cli.command()
@click.argument("file_name")
@storage_options
@click.pass_context
@handle_errors
def delete(ctx, file_name, **options):
    """Delete a file from storage."""
    settings = resolve_settings(ctx, options)
    if settings.verbose:
        click.echo(f"🗑️ Deleting file: {file_name}")

    async def _delete():
        dispatcher = CommandDispatcher(settings)
        return await dispatcher.delete(file_name)

    deleted = asyncio.run(_delete())
    click.echo(f"Deleted: {deleted}")


@cli.command()
@click.option("--port", type=click.IntRange(1, 65535), help="Port to bind (default 8080, env STORAGE_PORT)")
@click.option("--host", help="Interface to bind (default 0.0.0.0, env STORAGE_HOST)")
@storage_options
@click.pass_context
@handle_errors
def server(ctx, port, host, **options):
    """Start the web upload server."""
    import uvicorn

    from s3uploader.fastapi.app import create_app

    settings = resolve_settings(ctx, options)
    settings.require_password()
    if port is not None or host is not None:
        settings = settings.model_copy(
            update={
                "port": port if port is not None else settings.port,
                "host": host or settings.host,
            }
        )

    click.echo(f"Starting server on {settings.host}:{settings.port}")
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.verbose else "info",
    )


@cli.command()
def version():
    """Show s3uploader version."""
    click.echo(f"s3uploader version: {__version__}")


if __name__ == "__main__":
    cli()
