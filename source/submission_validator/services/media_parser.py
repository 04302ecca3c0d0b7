"""This module provides the service that turns raw submissions into media entities.

It accepts the two raw input shapes (an upload descriptor or an object-store
result), classifies the payload as an archive or a single file, expands
archives into flattened member files and wraps everything into the typed
media model. Parsing never raises for bad input: anything that cannot be
interpreted is reported as None so callers can tell "could not parse" apart
from "parsed but invalid".
"""

import asyncio
import io
import lzma
import zipfile
import zlib
from collections.abc import Iterable, Mapping
from typing import Any

import rarfile
from pydantic import ValidationError

from submission_validator.exceptions.validation import ArchiveLimitError, MediaParseError
from submission_validator.models.inputs import ObjectStoreResult, UploadDescriptor
from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.providers.config import Config, ConfigProvider
from submission_validator.providers.file_type import FileTypeProvider, is_archive_mimetype, is_rar_mimetype
from submission_validator.providers.logging import Logger, LoggingProvider


def local_name(member_path: str) -> str:
    """Strips the directory part of an archive member path.

    Args:
        member_path: The member path as stored in the archive.

    Returns:
        The last path component. Both forward and backward slashes are
        treated as separators.
    """
    return member_path.replace("\\", "/").rsplit("/", 1)[-1]


class MediaParser:
    """Parses raw submissions into `SingleMedia` or `ArchiveMedia` entities.

    Attributes:
        logger: An instance of the application's logger.
        config: The application's configuration object.
        file_type_provider: The provider used to infer MIME types from names.
    """

    logger: Logger
    config: Config
    file_type_provider: FileTypeProvider

    def __init__(self, file_type_provider: FileTypeProvider | None = None) -> None:
        """Initializes the parser with its dependencies.

        Args:
            file_type_provider: The provider used for MIME inference.
        """
        self.logger = LoggingProvider().get_logger()
        self.config = ConfigProvider.get_config()
        self.file_type_provider = file_type_provider or FileTypeProvider()

    async def parse_unknown_media(self, raw_input: Any) -> SingleMedia | ArchiveMedia | None:
        """Parses an input of unknown shape into a media entity.

        Args:
            raw_input: An `UploadDescriptor`, an `ObjectStoreResult`, or a
                mapping holding the fields of either shape.

        Returns:
            The parsed media entity, or None if the input is not a known shape
            or its content could not be obtained or decoded.
        """
        parsed_input = self._coerce_input(raw_input)
        if isinstance(parsed_input, UploadDescriptor):
            return self.parse_unknown_upload(parsed_input)
        if isinstance(parsed_input, ObjectStoreResult):
            return await self.parse_unknown_object(parsed_input)

        self.logger.warning(f"Unrecognized submission input of type {type(raw_input).__name__}.")
        return None

    def parse_unknown_upload(self, upload: UploadDescriptor) -> SingleMedia | ArchiveMedia | None:
        """Parses a direct upload.

        The content type is always derived from the file name; the type sent
        by the client is ignored.

        Args:
            upload: The upload descriptor.

        Returns:
            The parsed media entity, or None if a declared archive could not be
            decoded.
        """
        content_type = self.file_type_provider.infer_mime_type(upload.original_name)
        return self._build_media(upload.original_name, content_type, upload.buffer)

    async def parse_unknown_object(self, result: ObjectStoreResult) -> SingleMedia | ArchiveMedia | None:
        """Parses an object-store result.

        The content type declared on the stored object is trusted as is. The
        body is awaited exactly once.

        Args:
            result: The object-store result.

        Returns:
            The parsed media entity, or None if the file name or body is
            missing, the body could not be resolved, or a declared archive
            could not be decoded.
        """
        file_name = result.file_name
        if not file_name:
            self.logger.warning("Object-store result has no file name in its metadata.")
            return None
        if result.body is None:
            self.logger.warning(f"Object-store result for '{file_name}' has no body.")
            return None

        try:
            content = await asyncio.wait_for(result.body(), timeout=self.config.OBJECT_BODY_TIMEOUT_SECONDS)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            self.logger.warning(f"Gave up waiting for the body of '{file_name}'.")
            return None

        if content is None:
            self.logger.warning(f"Body of '{file_name}' could not be obtained.")
            return None

        return self._build_media(file_name, result.content_type or "", content)

    def parse_unknown_zip(self, content: bytes) -> list[SingleMedia]:
        """Expands a zip archive into single media entities.

        Directory entries are skipped and each member is named after its
        local name only, so nested folder structure is discarded.

        Args:
            content: The byte content of the zip archive.

        Returns:
            The member files in archive directory order.

        Raises:
            zipfile.BadZipFile: If the content is not a valid zip archive.
            MediaParseError: If the data of a member is corrupt or cannot be
                decompressed.
            ArchiveLimitError: If a member, or the archive as a whole, exceeds
                the configured uncompressed size limits.
        """
        members: list[SingleMedia] = []
        with io.BytesIO(content) as stream:
            with zipfile.ZipFile(stream, strict_timestamps=False) as archive:
                infos = [info for info in archive.infolist() if not info.is_dir()]
                self._check_archive_limits((info.filename, info.file_size) for info in infos)
                for info in infos:
                    name = local_name(info.filename)
                    if not name:
                        continue
                    members.append(
                        SingleMedia(
                            file_name=name,
                            content_type=self.file_type_provider.infer_mime_type(name),
                            raw_bytes=self._read_zip_member(archive, info),
                        )
                    )
        return members

    def _read_zip_member(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        """Decompresses one zip member.

        Args:
            archive: The open zip archive.
            info: The member to read.

        Returns:
            The uncompressed member bytes.

        Raises:
            MediaParseError: If the member data is corrupt, truncated,
                encrypted or uses an unsupported compression method.
        """
        try:
            return archive.read(info)
        except (zipfile.BadZipFile, zlib.error, lzma.LZMAError, EOFError, NotImplementedError, RuntimeError) as error:
            raise MediaParseError(f"Failed to decompress archive member '{info.filename}': {error}") from error

    def parse_unknown_rar(self, content: bytes) -> list[SingleMedia]:
        """Expands a RAR archive into single media entities.

        Args:
            content: The byte content of the RAR archive.

        Returns:
            The member files in archive directory order.

        Raises:
            MediaParseError: If the archive is invalid, password protected or
                a member cannot be read.
            ArchiveLimitError: If the configured size limits are exceeded.
        """
        members: list[SingleMedia] = []
        try:
            with io.BytesIO(content) as stream:
                with rarfile.RarFile(stream) as archive:
                    infos = [info for info in archive.infolist() if not info.isdir()]
                    self._check_archive_limits((info.filename, info.file_size) for info in infos)
                    for info in infos:
                        name = local_name(info.filename)
                        if not name:
                            continue
                        members.append(
                            SingleMedia(
                                file_name=name,
                                content_type=self.file_type_provider.infer_mime_type(name),
                                raw_bytes=archive.read(info.filename),
                            )
                        )
        except rarfile.PasswordRequired as error:
            raise MediaParseError("Password-protected RAR archives are not supported") from error
        except rarfile.Error as error:
            raise MediaParseError("Failed to extract from RAR archive") from error
        return members

    def _build_media(self, file_name: str, content_type: str, content: bytes) -> SingleMedia | ArchiveMedia | None:
        """Wraps resolved content into the matching media variant.

        Args:
            file_name: The name of the submitted file.
            content_type: The content type of the submitted file.
            content: The resolved byte content.

        Returns:
            An `ArchiveMedia` for archive content types, a `SingleMedia`
            otherwise, or None if the archive could not be decoded.
        """
        if not is_archive_mimetype(content_type):
            return SingleMedia(file_name=file_name, content_type=content_type, raw_bytes=content)

        try:
            if is_rar_mimetype(content_type):
                children = self.parse_unknown_rar(content)
            else:
                children = self.parse_unknown_zip(content)
        except (zipfile.BadZipFile, MediaParseError, RuntimeError, ValueError, OSError) as e:
            self.logger.warning(f"Could not decode archive '{file_name}' ({content_type}): {e}")
            return None

        self.logger.info(f"Parsed archive '{file_name}' with {len(children)} member file(s).")
        return ArchiveMedia(file_name=file_name, content_type=content_type, raw_bytes=content, children=children)

    def _check_archive_limits(self, members: Iterable[tuple[str, int]]) -> None:
        """Rejects archives whose declared sizes exceed the configured limits.

        Args:
            members: An iterable of (member name, uncompressed size) pairs.

        Raises:
            ArchiveLimitError: If a limit is exceeded.
        """
        total = 0
        for name, size in members:
            if size > self.config.ARCHIVE_MAX_ENTRY_SIZE_BYTES:
                raise ArchiveLimitError(f"Archive member '{name}' is too large ({size} bytes)")
            total += size
            if total > self.config.ARCHIVE_MAX_TOTAL_UNCOMPRESSED_BYTES:
                raise ArchiveLimitError(f"Archive expands to more than {total} bytes")

    def _coerce_input(self, raw_input: Any) -> UploadDescriptor | ObjectStoreResult | None:
        """Identifies the shape of a raw input by its populated fields.

        Args:
            raw_input: The raw input.

        Returns:
            The input as one of the known shapes, or None.
        """
        if isinstance(raw_input, (UploadDescriptor, ObjectStoreResult)):
            return raw_input
        if not isinstance(raw_input, Mapping):
            return None

        try:
            if ("originalname" in raw_input or "original_name" in raw_input) and "buffer" in raw_input:
                return UploadDescriptor.model_validate(raw_input)
            if "metadata" in raw_input or "Metadata" in raw_input:
                fields = dict(raw_input)
                if "Metadata" in fields:
                    fields["metadata"] = fields.pop("Metadata")
                return ObjectStoreResult.model_validate(fields)
        except ValidationError as e:
            self.logger.warning(f"Submission input does not match a known shape: {e}")
        return None
