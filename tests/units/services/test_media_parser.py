import asyncio
import io
import zipfile
import zlib
from collections.abc import Callable
from unittest.mock import MagicMock, patch

import pytest
import rarfile
from submission_validator.models.enums import MediaKind
from submission_validator.models.inputs import ObjectStoreResult, UploadDescriptor
from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.services.media_parser import MediaParser, local_name


def make_body(content: bytes | None) -> Callable:
    """Builds an async body accessor resolving to the given content."""

    async def body() -> bytes | None:
        return content

    return body


@pytest.fixture
def parser() -> MediaParser:
    """Provides a MediaParser instance."""
    return MediaParser()


@pytest.mark.parametrize(
    "path, expected",
    [("a.csv", "a.csv"), ("folder/a.csv", "a.csv"), ("x/y/z.txt", "z.txt"), ("win\\dir\\b.csv", "b.csv"), ("dir/", "")],
)
def test_local_name(path: str, expected: str) -> None:
    """Should keep only the last path component."""
    assert local_name(path) == expected


def test_upload_of_plain_file(parser: MediaParser) -> None:
    """
    Should parse a text upload into a SingleMedia with byte-identical content.
    """
    upload = UploadDescriptor(original_name="file1.txt", buffer=b"hello world", mimetype="application/pdf")

    media = asyncio.run(parser.parse_unknown_media(upload))

    assert isinstance(media, SingleMedia)
    assert media.file_name == "file1.txt"
    assert media.content_type == "text/plain"
    assert media.raw_bytes == b"hello world"


def test_upload_of_zip_flattens_members(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should expand a zip upload into its member files, discarding folders.
    """
    # Arrange
    content = make_zip({"file1.txt": b"one", "folder2/file2.csv": b"a,b\n1,2\n"}, directories=["folder2"])
    upload = UploadDescriptor(original_name="Submission.zip", buffer=content)

    # Act
    media = asyncio.run(parser.parse_unknown_media(upload))

    # Assert
    assert isinstance(media, ArchiveMedia)
    assert media.kind == MediaKind.ARCHIVE
    assert media.raw_bytes == content
    assert [child.file_name for child in media.children] == ["file1.txt", "file2.csv"]
    assert [child.content_type for child in media.children] == ["text/plain", "text/csv"]
    assert media.children[1].raw_bytes == b"a,b\n1,2\n"


def test_directory_only_zip_gives_empty_archive(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should parse a zip holding only directories into an archive with no children.
    """
    content = make_zip({}, directories=["folder1", "folder1/folder2"])

    media = parser.parse_unknown_upload(UploadDescriptor(original_name="empty.zip", buffer=content))

    assert isinstance(media, ArchiveMedia)
    assert media.children == []


def test_corrupt_zip_gives_none(parser: MediaParser) -> None:
    """
    Should return None when a declared zip cannot be decoded.
    """
    media = parser.parse_unknown_upload(UploadDescriptor(original_name="broken.zip", buffer=b"not a zip"))

    assert media is None


def test_corrupt_rar_gives_none(parser: MediaParser) -> None:
    """
    Should return None when a declared rar cannot be decoded.
    """
    media = parser.parse_unknown_upload(UploadDescriptor(original_name="broken.rar", buffer=b"not a rar"))

    assert media is None


def test_password_protected_rar_gives_none(parser: MediaParser) -> None:
    """
    Should return None for password-protected rar archives.
    """
    with patch("submission_validator.services.media_parser.rarfile.RarFile") as mock_rar:
        mock_rar.return_value.__enter__.side_effect = rarfile.PasswordRequired("locked")
        media = parser.parse_unknown_upload(UploadDescriptor(original_name="locked.rar", buffer=b"Rar!"))

    assert media is None


def test_rar_member_read_failure_gives_none(parser: MediaParser) -> None:
    """
    Should return None when a rar member cannot be extracted.
    """
    # Arrange
    member = MagicMock(filename="event.csv", file_size=3)
    member.isdir.return_value = False
    archive = MagicMock()
    archive.infolist.return_value = [member]
    archive.read.side_effect = rarfile.BadRarFile("truncated")

    # Act
    with patch("submission_validator.services.media_parser.rarfile.RarFile") as mock_rar:
        mock_rar.return_value.__enter__.return_value = archive
        media = parser.parse_unknown_upload(UploadDescriptor(original_name="data.rar", buffer=b"Rar!"))

    # Assert
    assert media is None


def test_zip_with_corrupt_member_data_gives_none(parser: MediaParser) -> None:
    """
    Should return None when a member's compressed data is damaged but the
    archive directory is intact.
    """
    # Arrange
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("event.csv", b"event_id,event_date\n" + b"e1,2024-01-01\n" * 200)
    content = bytearray(buffer.getvalue())
    data_offset = 30 + len("event.csv")
    for position in range(data_offset, data_offset + 8):
        content[position] ^= 0xFF

    # Act
    media = parser.parse_unknown_upload(UploadDescriptor(original_name="broken.zip", buffer=bytes(content)))

    # Assert
    assert media is None


@pytest.mark.parametrize(
    "error",
    [zlib.error("invalid distance too far back"), EOFError("truncated"), NotImplementedError("compression type 99")],
)
def test_zip_member_decompression_errors_give_none(
    parser: MediaParser, make_zip: Callable[..., bytes], error: Exception
) -> None:
    """
    Should return None for any failure while decompressing a member.
    """
    content = make_zip({"event.csv": b"event_id\ne1\n"})

    with patch("submission_validator.services.media_parser.zipfile.ZipFile.read", side_effect=error):
        media = parser.parse_unknown_upload(UploadDescriptor(original_name="submission.zip", buffer=content))

    assert media is None


def test_rar_members_are_flattened(parser: MediaParser) -> None:
    """
    Should expand rar members like zip members.
    """
    # Arrange
    directory = MagicMock(filename="folder", file_size=0)
    directory.isdir.return_value = True
    member = MagicMock(filename="folder/Event.csv", file_size=3)
    member.isdir.return_value = False
    archive = MagicMock()
    archive.infolist.return_value = [directory, member]
    archive.read.return_value = b"a,b"

    # Act
    with patch("submission_validator.services.media_parser.rarfile.RarFile") as mock_rar:
        mock_rar.return_value.__enter__.return_value = archive
        media = parser.parse_unknown_upload(UploadDescriptor(original_name="data.rar", buffer=b"Rar!"))

    # Assert
    assert isinstance(media, ArchiveMedia)
    assert [child.file_name for child in media.children] == ["event.csv"]
    archive.read.assert_called_once_with("folder/Event.csv")


def test_archive_over_entry_limit_gives_none(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should refuse archives whose members exceed the configured entry size.
    """
    parser.config.ARCHIVE_MAX_ENTRY_SIZE_BYTES = 4
    content = make_zip({"big.csv": b"0123456789"})

    assert parser.parse_unknown_upload(UploadDescriptor(original_name="big.zip", buffer=content)) is None


def test_archive_over_total_limit_gives_none(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should refuse archives whose members together exceed the total limit.
    """
    parser.config.ARCHIVE_MAX_ENTRY_SIZE_BYTES = 10
    parser.config.ARCHIVE_MAX_TOTAL_UNCOMPRESSED_BYTES = 15
    content = make_zip({"a.csv": b"0123456789", "b.csv": b"0123456789"})

    assert parser.parse_unknown_upload(UploadDescriptor(original_name="big.zip", buffer=content)) is None


def test_object_result_uses_declared_content_type(parser: MediaParser) -> None:
    """
    Should trust the content type declared on the stored object.
    """
    result = ObjectStoreResult(metadata={"filename": "data.bin"}, content_type="text/csv", body=make_body(b"a,b"))

    media = asyncio.run(parser.parse_unknown_media(result))

    assert isinstance(media, SingleMedia)
    assert media.content_type == "text/csv"
    assert media.raw_bytes == b"a,b"


def test_object_result_with_zip(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should expand a stored zip into its members.
    """
    content = make_zip({"Occurrence.csv": b"id\n1\n"})
    result = ObjectStoreResult(
        metadata={"filename": "Submission.zip"}, content_type="application/zip", body=make_body(content)
    )

    media = asyncio.run(parser.parse_unknown_media(result))

    assert isinstance(media, ArchiveMedia)
    assert media.child_base_names() == ["occurrence"]


def test_object_result_with_none_body_gives_none(parser: MediaParser) -> None:
    """
    Should return None when the body resolves to nothing.
    """
    result = ObjectStoreResult(metadata={"filename": "a.csv"}, content_type="text/csv", body=make_body(None))

    assert asyncio.run(parser.parse_unknown_media(result)) is None


def test_object_result_without_body_or_name_gives_none(parser: MediaParser) -> None:
    """
    Should return None when the body accessor or the file name is missing.
    """
    no_body = ObjectStoreResult(metadata={"filename": "a.csv"}, content_type="text/csv")
    no_name = ObjectStoreResult(metadata={}, content_type="text/csv", body=make_body(b"x"))

    assert asyncio.run(parser.parse_unknown_object(no_body)) is None
    assert asyncio.run(parser.parse_unknown_object(no_name)) is None


def test_object_result_timeout_gives_none(parser: MediaParser) -> None:
    """
    Should give up on a body that does not resolve in time.
    """

    async def slow_body() -> bytes:
        await asyncio.sleep(5)
        return b"late"

    parser.config.OBJECT_BODY_TIMEOUT_SECONDS = 0.01
    result = ObjectStoreResult(metadata={"filename": "a.csv"}, content_type="text/csv", body=slow_body)

    assert asyncio.run(parser.parse_unknown_media(result)) is None


def test_mapping_inputs_are_discriminated(parser: MediaParser) -> None:
    """
    Should recognize upload and object-store shapes given as plain mappings.
    """
    upload = {"originalname": "file1.txt", "buffer": b"x", "mimetype": "text/plain"}
    stored = {"Metadata": {"filename": "a.csv"}, "ContentType": "text/csv", "Body": make_body(b"y")}

    upload_media = asyncio.run(parser.parse_unknown_media(upload))
    stored_media = asyncio.run(parser.parse_unknown_media(stored))

    assert isinstance(upload_media, SingleMedia) and upload_media.raw_bytes == b"x"
    assert isinstance(stored_media, SingleMedia) and stored_media.raw_bytes == b"y"


@pytest.mark.parametrize("raw_input", [None, 42, "file.csv", {}, {"buffer": b"x"}, {"originalname": 1, "buffer": 2}])
def test_unknown_inputs_give_none(parser: MediaParser, raw_input: object) -> None:
    """
    Should return None for inputs of no known shape.
    """
    assert asyncio.run(parser.parse_unknown_media(raw_input)) is None


def test_reparsing_gives_equal_results(parser: MediaParser, make_zip: Callable[..., bytes]) -> None:
    """
    Should parse the same payload into equal entities every time.
    """
    content = make_zip({"a.csv": b"1", "b/c.txt": b"2"})
    upload = UploadDescriptor(original_name="s.zip", buffer=content)

    first = parser.parse_unknown_upload(upload)
    second = parser.parse_unknown_upload(upload)

    assert first is not None and second is not None
    assert first.model_dump() == second.model_dump()
