import click
import requests
import os
from pyfilehub.config.settings import get_config_manager
from pyfilehub.core.storage.file import TimestampTokenNamer
from pyfilehub.logging.setup import get_logger
from pyfilehub.models import (
    BatchUploadResponseModel,
    CategoryListResponseModel,
    FileListResponseModel,
    FileRecordModel,
    HealthResponseModel,
    StorageInfoResponseModel,
    UploadResponseModel,
)
from pyfilehub.utils import format_file_size

logger = get_logger(__name__)
logger.debug("Loaded admin_cli.py")

API_PREFIX = "/api/v1"


def error_message(response):
    """Pull the human-readable message out of an API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    detail = body.get("detail", body) if isinstance(body, dict) else body
    if isinstance(detail, dict) and "error" in detail:
        error = detail["error"]
        message = error.get("message", "Unknown error")
        if error.get("details"):
            message = f"{message}: {'; '.join(error['details'])}"
        return message
    if isinstance(detail, dict) and "message" in detail:
        return detail["message"]
    return str(detail) if detail else "Unknown error"


def echo_record(record):
    click.echo(f"Stored name: {record.stored_name}")
    click.echo(f"  Original name: {record.original_name}")
    click.echo(f"  Category: {record.category}")
    click.echo(f"  Size: {format_file_size(record.size_bytes)}")
    click.echo(f"  Content type: {record.content_type}")
    click.echo(f"  Uploaded: {record.upload_time} by {record.upload_user}")


@click.group()
@click.pass_context
def admin_cli(ctx):
    """Admin CLI for managing stored files."""
    ctx.ensure_object(dict)
    config_manager = get_config_manager()
    config_manager.load()
    ctx.obj["CONFIG_MANAGER"] = config_manager


@admin_cli.command(name="list")
@click.option("--category", default=None, help="Filter by category (e.g. DOCUMENT)")
@click.option("--page", default=0, type=int, help="Zero-based page number")
@click.option("--size", default=None, type=int, help="Page size")
@click.pass_context
def list_files(ctx, category, page, size):
    """List stored files, most recent first."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        params = {"page": page}
        if category:
            params["category"] = category
        if size is not None:
            params["size"] = size

        response = requests.get(f"{base_url}{API_PREFIX}/files", params=params)
        if response.status_code == 200:
            data = FileListResponseModel(**response.json())
            pagination = data.pagination
            click.echo(
                f"Files: {pagination.total} "
                f"(page {pagination.page + 1} of {max(pagination.total_pages, 1)})")
            for record in data.files:
                click.echo(
                    f"{record.stored_name}\t{record.category}\t"
                    f"{format_file_size(record.size_bytes)}")
        else:
            click.echo(f"Failed to list files: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--category", default=None, help="Category override")
@click.option("--user", "upload_user", default=None, help="Uploader name")
@click.pass_context
def upload(ctx, paths, category, upload_user):
    """Upload one or more files."""
    base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
    form = {}
    if category:
        form["category"] = category
    if upload_user:
        form["upload_user"] = upload_user

    handles = []
    try:
        for path in paths:
            handles.append((os.path.basename(path), open(path, "rb")))

        if len(handles) == 1:
            response = requests.post(
                f"{base_url}{API_PREFIX}/files/upload",
                files={"file": handles[0]},
                data=form,
            )
            if response.status_code == 200:
                data = UploadResponseModel(**response.json())
                click.echo("File uploaded successfully.")
                echo_record(data.file)
            else:
                click.echo(f"Failed to upload file: {error_message(response)}")
            return

        response = requests.post(
            f"{base_url}{API_PREFIX}/files/upload/batch",
            files=[("files", handle) for handle in handles],
            data=form,
        )
        if response.status_code == 200:
            data = BatchUploadResponseModel(**response.json())
            click.echo(
                f"Uploaded {data.success_count} of {data.total_count} files.")
            for record in data.success_files:
                click.echo(f"  OK {record.original_name} -> {record.stored_name}")
            for failed in data.failed_files:
                click.echo(f"  FAILED {failed.filename}: {failed.reason}")
        else:
            click.echo(f"Failed to upload files: {error_message(response)}")
    except (requests.RequestException, OSError) as e:
        click.echo(f"Error: {e}")
    finally:
        for _, fh in handles:
            fh.close()


@admin_cli.command()
@click.argument("stored_name")
@click.pass_context
def info(ctx, stored_name):
    """Show metadata for a stored file."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.get(
            f"{base_url}{API_PREFIX}/files/{stored_name}/info")
        if response.status_code == 200:
            echo_record(FileRecordModel(**response.json()))
        else:
            click.echo(f"Failed to fetch file info: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.argument("stored_name")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False, writable=True),
              help="Destination path (default: original filename)")
@click.pass_context
def download(ctx, stored_name, output):
    """Download a stored file."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.get(
            f"{base_url}{API_PREFIX}/files/download/{stored_name}")
        if response.status_code == 200:
            output = output or TimestampTokenNamer().extract_original_name(
                stored_name) or stored_name
            with open(output, "wb") as f:
                f.write(response.content)
            click.echo(f"Saved {len(response.content)} bytes to {output}")
        else:
            click.echo(f"Failed to download file: {error_message(response)}")
    except (requests.RequestException, OSError) as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.argument("stored_name")
@click.confirmation_option(prompt="Are you sure you want to delete this file?")
@click.pass_context
def delete(ctx, stored_name):
    """Delete a stored file."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.delete(f"{base_url}{API_PREFIX}/files/{stored_name}")
        if response.status_code == 200:
            click.echo(f"File deleted: {stored_name}")
        else:
            click.echo(f"Failed to delete file: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.pass_context
def stats(ctx):
    """Show file counts per category."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.get(f"{base_url}{API_PREFIX}/categories")
        if response.status_code == 200:
            data = CategoryListResponseModel(**response.json())
            click.echo("Category statistics:")
            for category in data.categories:
                click.echo(f"  {category.display_name}: {category.count}")
        else:
            click.echo(f"Failed to fetch statistics: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.pass_context
def storage(ctx):
    """Show storage usage."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.get(f"{base_url}{API_PREFIX}/storage/info")
        if response.status_code == 200:
            data = StorageInfoResponseModel(**response.json())
            click.echo(f"Storage path: {data.storage_path}")
            click.echo(f"Files: {data.total_files} ({data.total_size_formatted})")
            click.echo(f"Free space: {format_file_size(data.free_space)}")
            click.echo(f"Max file size: {data.max_file_size_formatted}")
        else:
            click.echo(f"Failed to fetch storage info: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


@admin_cli.command()
@click.pass_context
def health(ctx):
    """Check if the API is working correctly."""
    try:
        base_url = ctx.obj["CONFIG_MANAGER"].api_base_url
        response = requests.get(f"{base_url}/api/health")
        if response.status_code == 200:
            data = HealthResponseModel(**response.json())
            click.echo(f"API is {data.status} (max upload {data.max_file_size_formatted})")
        else:
            click.echo(f"API check failed: {error_message(response)}")
    except requests.RequestException as e:
        click.echo(f"Error: {e}")


if __name__ == "__main__":
    admin_cli()
