"""This module provides a Google Cloud Storage (GCS) provider.

It is the object-store byte source of the validator: it stores submissions
and exposes a stored object as an `ObjectStoreResult`,
whose body is resolved lazily and asynchronously by the media parser.
"""

import asyncio
from typing import cast

from google.api_core import exceptions
from google.auth.credentials import AnonymousCredentials
from google.cloud.storage import Blob, Client

from submission_validator.models.inputs import ObjectStoreResult
from submission_validator.providers.config import ConfigProvider
from submission_validator.providers.file_type import FileTypeProvider
from submission_validator.providers.logging import Logger, LoggingProvider


class GcsProvider:
    """A provider for interacting with Google Cloud Storage."""

    _client: Client | None = None

    def __init__(self) -> None:
        """Initializes the provider."""
        self.logger: Logger = LoggingProvider().get_logger()

    def get_client(self) -> Client:
        """Returns a GCS client, creating one if it doesn't exist.

        Returns:
            A GCS client.
        """
        if not self._client:
            config = ConfigProvider.get_config()
            if config.GCP_GCS_HOST:
                self._client = Client(
                    credentials=AnonymousCredentials(),
                    project=config.GCP_PROJECT,
                    client_options={"api_endpoint": config.GCP_GCS_HOST},
                )
            else:
                self._client = Client()
        return self._client

    def upload_submission(self, bucket_name: str, key: str, content: bytes, file_name: str) -> str:
        """Stores a submission so it can later be validated with `get_object`.

        The content type is inferred from the file name here, once, and is
        trusted as declared when the object is read back.

        Args:
            bucket_name: The name of the GCS bucket.
            key: The object key to store the submission under.
            content: The raw bytes of the submission.
            file_name: The original file name, kept in the blob metadata.

        Returns:
            The content type the object was stored with.
        """
        content_type = FileTypeProvider().infer_mime_type(file_name) or "application/octet-stream"
        blob = self.get_client().bucket(bucket_name).blob(key)
        blob.metadata = {"filename": file_name}
        blob.upload_from_string(content, content_type=content_type)
        self.logger.info(f"Stored '{file_name}' as '{key}' in bucket '{bucket_name}' ({content_type}).")
        return content_type

    def get_object(self, bucket_name: str, source_blob_name: str) -> ObjectStoreResult | None:
        """Fetches the metadata of a stored submission.

        The content itself is not downloaded here; the returned result carries
        an accessor that downloads it when awaited.

        Args:
            bucket_name: The name of the GCS bucket.
            source_blob_name: The name of the blob.

        Returns:
            The object-store result, or None if the blob does not exist.
        """
        client = self.get_client()
        blob = client.bucket(bucket_name).get_blob(source_blob_name)
        if blob is None:
            self.logger.warning(f"Object '{source_blob_name}' not found in bucket '{bucket_name}'.")
            return None

        metadata = dict(blob.metadata or {})
        metadata.setdefault("filename", source_blob_name.rsplit("/", 1)[-1])

        async def body() -> bytes | None:
            return await asyncio.to_thread(self._download_blob, blob)

        return ObjectStoreResult(metadata=metadata, content_type=blob.content_type, body=body)

    def _download_blob(self, blob: Blob) -> bytes | None:
        """Downloads the content of a blob.

        Args:
            blob: The blob to download.

        Returns:
            The blob content, or None if it disappeared or could not be read.
        """
        try:
            return cast(bytes, blob.download_as_bytes())
        except exceptions.NotFound:
            self.logger.warning(f"Object '{blob.name}' disappeared before its content could be read.")
            return None
        except exceptions.GoogleAPIError as e:
            self.logger.error(f"Failed to download object '{blob.name}': {e}", exc_info=True)
            return None
