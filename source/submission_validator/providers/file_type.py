"""This module provides the file type helpers used to classify payloads.

It contains the byte classifier that decides whether a declared MIME type
belongs to the archive family, and a provider that infers a MIME type from a
file name using a fixed extension table.
"""

import mimetypes
import re

from submission_validator.providers.logging import Logger, LoggingProvider

ARCHIVE_MIMETYPE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"zip"),
    re.compile(r"x-zip-compressed"),
    re.compile(r"x-rar-compressed"),
)
RAR_MIMETYPE_PATTERN = re.compile(r"x-rar-compressed")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSM_MIMETYPE = "application/vnd.ms-excel.sheet.macroenabled.12"
WORKBOOK_MIMETYPES = frozenset({XLSX_MIMETYPE, XLSM_MIMETYPE})

_EXTRA_TYPES: dict[str, str] = {
    ".csv": "text/csv",
    ".txt": "text/plain",
    ".zip": "application/zip",
    ".rar": "application/x-rar-compressed",
    ".xlsx": XLSX_MIMETYPE,
    ".xlsm": XLSM_MIMETYPE,
    ".xls": "application/vnd.ms-excel",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".json": "application/json",
    ".xml": "application/xml",
}


def _build_mime_table() -> mimetypes.MimeTypes:
    """Builds a MIME table that ignores the host's mime.types files.

    Returns:
        A MimeTypes instance seeded with Python's defaults plus the types
        relevant to submissions.
    """
    table = mimetypes.MimeTypes()
    for extension, mime_type in _EXTRA_TYPES.items():
        table.add_type(mime_type, extension)
    return table


_MIME_TABLE = _build_mime_table()


def is_archive_mimetype(mimetype: str | None) -> bool:
    """Checks if a MIME type string belongs to the zip archive family.

    The patterns are searched anywhere in the string, so extended MIME
    strings such as ``application/zip; charset=binary`` still match.

    Args:
        mimetype: The MIME type to check. May be empty or None.

    Returns:
        True if the MIME type is a zip, x-zip-compressed or x-rar-compressed
        type, False otherwise.
    """
    if not mimetype:
        return False
    return any(pattern.search(mimetype) for pattern in ARCHIVE_MIMETYPE_PATTERNS)


def is_rar_mimetype(mimetype: str | None) -> bool:
    """Checks if an archive MIME type must be decoded as RAR instead of zip.

    Args:
        mimetype: The MIME type to check.

    Returns:
        True for x-rar-compressed types.
    """
    if not mimetype:
        return False
    return RAR_MIMETYPE_PATTERN.search(mimetype) is not None


def is_workbook_mimetype(mimetype: str | None) -> bool:
    """Checks if a MIME type denotes an Office Open XML workbook.

    Args:
        mimetype: The MIME type to check.

    Returns:
        True for .xlsx and .xlsm workbooks.
    """
    if not mimetype:
        return False
    return mimetype.split(";", 1)[0].strip().lower() in WORKBOOK_MIMETYPES


class FileTypeProvider:
    """A provider for inferring file types from their names."""

    def __init__(self) -> None:
        """Initializes the FileTypeProvider."""
        self.logger: Logger = LoggingProvider().get_logger()

    def infer_mime_type(self, file_name: str) -> str:
        """Infers the MIME type of a file from its extension.

        Args:
            file_name: The name of the file, with or without a path prefix.

        Returns:
            The inferred MIME type, or an empty string if the extension is
            unknown.
        """
        mime_type, _ = _MIME_TABLE.guess_type(file_name.lower(), strict=False)
        if mime_type is None:
            self.logger.debug(f"Could not infer a MIME type for '{file_name}'.")
            return ""
        return mime_type
