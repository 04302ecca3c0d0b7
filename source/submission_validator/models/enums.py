"""This module defines the enumerations for the application."""

from enum import StrEnum


class MediaKind(StrEnum):
    """Discriminates the two variants of a parsed media entity."""

    SINGLE = "single"
    ARCHIVE = "archive"


class ContentKind(StrEnum):
    """Discriminates a single worksheet from a collection of worksheets."""

    WORKSHEET = "worksheet"
    COLLECTION = "collection"


class ErrorType(StrEnum):
    """Broad categories attached to header and row errors."""

    INVALID_HEADER = "Invalid Header"
    MISSING_DATA = "Missing Data"
    INVALID_VALUE = "Invalid Value"
    OUT_OF_RANGE = "Out of Range"
    INVALID_KEY = "Invalid Key"


class ErrorCode(StrEnum):
    """Machine-readable codes attached to header and row errors."""

    DUPLICATE_HEADER = "Duplicate Header"
    MISSING_REQUIRED_HEADER = "Missing Required Header"
    UNKNOWN_HEADER = "Unknown Header"
    MISSING_REQUIRED_FIELD = "Missing Required Field"
    INVALID_VALUE = "Invalid Value"
    UNEXPECTED_FORMAT = "Unexpected Format"
    OUT_OF_RANGE = "Out of Range"
    DANGLING_PARENT_CHILD_KEY = "Missing Child Key from Parent"


class FileErrorMessage(StrEnum):
    """Provides standardized messages for media-level (file) errors."""

    MISSING_REQUIRED_FILE = "Missing required file: {file_name}"
    UNSUPPORTED_MIMETYPE = "File mimetype is invalid: {mimetype}, must be one of: {allowed}"
    EMPTY_FILE = "File is empty: {file_name}"
    FILE_TOO_LARGE = "File {file_name} is {size_bytes} bytes, exceeding the limit of {max_bytes} bytes"
    UNREADABLE_CONTENT = "Could not read tabular content from {file_name}: {reason}"

    def __str__(self) -> str:
        """Returns the string representation of the enum member.

        Returns:
            The string representation of the enum member.
        """
        return self.value

    def format_message(self, **kwargs: object) -> str:
        """Formats the message with the given arguments.

        Args:
            **kwargs: The arguments to format the message with.

        Returns:
            The formatted message.
        """
        return self.value.format(**kwargs)


class RuleScope(StrEnum):
    """The level of a submission a declarative validation rule applies to."""

    MEDIA = "media"
    FILE = "file"
    COLUMN = "column"
    COLLECTION = "collection"
