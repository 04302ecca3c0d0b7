"""This module defines the command that stores a submission in Google Cloud Storage."""

import uuid
from pathlib import Path

import click
from submission_validator.providers.config import ConfigProvider
from submission_validator.providers.gcs import GcsProvider


@click.command("upload")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--bucket", default=None, help="The destination bucket. Defaults to the configured bucket.")
@click.option("--key", default=None, help="The object key. Defaults to a generated 'uploads/<uuid>' key.")
def upload(file_path: Path, bucket: str | None, key: str | None) -> None:
    """Stores a local submission so it can be checked with validate-object.

    Args:
        file_path: The file to store.
        bucket: The bucket name.
        key: The object key.
    """
    bucket_name = bucket or ConfigProvider.get_config().GCP_GCS_BUCKET_SUBMISSIONS
    object_key = key or f"uploads/{uuid.uuid4()}"
    content_type = GcsProvider().upload_submission(bucket_name, object_key, file_path.read_bytes(), file_path.name)
    click.echo(f"Stored {file_path.name} as {object_key} ({content_type}).")
    click.echo(object_key)
