"""This module defines the raw input shapes accepted by the media parser.

A submission reaches the parser either as an upload descriptor (a file name
and an in-memory buffer, as produced by a multipart upload) or as the result
of an object-store "get" call (metadata, a declared content type and a body
that still has to be awaited).
"""

from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

BodyAccessor = Callable[[], Awaitable[bytes | None]]


class UploadDescriptor(BaseModel):
    """A file received through a direct (multipart) upload.

    Attributes:
        original_name: The name of the file as sent by the client.
        buffer: The full content of the file.
        mimetype: The content type sent by the client. The parser does not
            trust it and re-derives the type from the file name.
    """

    model_config = ConfigDict(populate_by_name=True)

    original_name: str = Field(alias="originalname")
    buffer: bytes
    mimetype: str | None = None


class ObjectStoreResult(BaseModel):
    """The result of fetching a submission from an object store.

    Attributes:
        metadata: The user metadata stored with the object. The original file
            name is read from its ``filename`` entry.
        content_type: The content type declared when the object was stored.
        body: An accessor that resolves the object's bytes, or None when they
            could not be obtained.
    """

    model_config = ConfigDict(populate_by_name=True)

    metadata: dict[str, str] = Field(default_factory=dict)
    content_type: str | None = Field(default=None, alias="ContentType")
    body: BodyAccessor | None = Field(default=None, alias="Body")

    @property
    def file_name(self) -> str | None:
        """The original file name recorded in the object metadata."""
        return self.metadata.get("filename") or None
