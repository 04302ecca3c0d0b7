"""Factories for media-level validators.

Each factory takes its configuration and returns a validator function that
inspects a `SingleMedia` or an `ArchiveMedia` and appends file errors to the
media's validation state.
"""

import re
from collections.abc import Iterable

from submission_validator.models.catalog import MediaValidator
from submission_validator.models.enums import FileErrorMessage, MediaKind
from submission_validator.models.media import ArchiveMedia, SingleMedia


def _member_files(media: SingleMedia | ArchiveMedia) -> list[SingleMedia]:
    """Returns the files a media entity is made of.

    Args:
        media: A single file or an archive.

    Returns:
        The archive's children, or the single file itself.
    """
    if media.kind == MediaKind.ARCHIVE:
        return list(media.children)
    return [media]


def get_required_files_validator(required_base_names: Iterable[str]) -> MediaValidator:
    """Builds a validator that checks that required files are present.

    Names are compared case-insensitively against the base names of the
    archive members, so ``Event.csv`` satisfies ``"event"``. A single file
    counts as an archive with one member.

    Args:
        required_base_names: The required base names, in reporting order.

    Returns:
        The validator. It appends one error per missing name, in the order
        the names were given, and never touches the archive's members.
    """
    required = [name.lower() for name in required_base_names]

    def validator(media: SingleMedia | ArchiveMedia) -> None:
        present = {member.base_name for member in _member_files(media)}
        media.validation_state.append_errors(
            FileErrorMessage.MISSING_REQUIRED_FILE.format_message(file_name=name)
            for name in required
            if name not in present
        )

    return validator


def get_mimetype_validator(reg_exps: Iterable[str]) -> MediaValidator:
    """Builds a validator that checks the media's content type.

    Args:
        reg_exps: Regular expressions; the content type must match one of
            them (searched anywhere in the string, case-insensitive).

    Returns:
        The validator.
    """
    patterns = [re.compile(reg_exp, re.IGNORECASE) for reg_exp in reg_exps]
    allowed = ", ".join(pattern.pattern for pattern in patterns)

    def validator(media: SingleMedia | ArchiveMedia) -> None:
        if not patterns:
            return
        if any(pattern.search(media.content_type) for pattern in patterns):
            return
        media.validation_state.append_errors(
            [FileErrorMessage.UNSUPPORTED_MIMETYPE.format_message(mimetype=media.content_type, allowed=allowed)]
        )

    return validator


def get_file_not_empty_validator() -> MediaValidator:
    """Builds a validator that rejects zero-byte files.

    For an archive every member is checked and the errors are recorded on the
    archive itself.

    Returns:
        The validator.
    """

    def validator(media: SingleMedia | ArchiveMedia) -> None:
        media.validation_state.append_errors(
            FileErrorMessage.EMPTY_FILE.format_message(file_name=member.file_name)
            for member in _member_files(media)
            if member.size_bytes == 0
        )

    return validator


def get_max_file_size_validator(max_bytes: int) -> MediaValidator:
    """Builds a validator that rejects files larger than a limit.

    Args:
        max_bytes: The largest accepted size in bytes.

    Returns:
        The validator. It checks the raw size of the media itself, which for
        an archive is the compressed size.
    """

    def validator(media: SingleMedia | ArchiveMedia) -> None:
        if media.size_bytes <= max_bytes:
            return
        media.validation_state.append_errors(
            [
                FileErrorMessage.FILE_TOO_LARGE.format_message(
                    file_name=media.file_name, size_bytes=media.size_bytes, max_bytes=max_bytes
                )
            ]
        )

    return validator
