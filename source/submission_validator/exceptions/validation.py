"""This module defines custom exceptions raised while parsing and validating submissions."""


class SubmissionValidatorError(Exception):
    """Base exception for errors raised by the submission validator."""

    pass


class MediaParseError(SubmissionValidatorError):
    """Raised when a payload cannot be decoded into media entities."""

    pass


class ArchiveLimitError(MediaParseError):
    """Raised when an archive exceeds the configured decompression limits."""

    pass


class WorksheetExtractionError(SubmissionValidatorError):
    """Raised when tabular content cannot be read from a media entity."""

    pass


class ValidationSchemaError(SubmissionValidatorError):
    """Raised when a validation schema cannot be parsed."""

    pass
