"""This module provides the service that extracts worksheets from media entities.

CSV files expose a single implicit sheet named after the file. Workbooks and
archives of per-purpose CSV or workbook files expose several named sheets; only
the sheets whose names the caller maps to a classification key are extracted.
"""

import csv
import io
import zipfile
import zlib
from collections.abc import Mapping
from typing import Any, TypeVar
from xml.etree.ElementTree import ParseError

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from submission_validator.exceptions.validation import WorksheetExtractionError
from submission_validator.models.enums import MediaKind
from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.models.worksheets import Worksheet
from submission_validator.providers.config import Config, ConfigProvider
from submission_validator.providers.file_type import is_workbook_mimetype
from submission_validator.providers.logging import Logger, LoggingProvider

K = TypeVar("K")

WORKBOOK_ERRORS = (
    InvalidFileException,
    zipfile.BadZipFile,
    ParseError,
    KeyError,
    OSError,
    ValueError,
    EOFError,
    zlib.error,
)


def _normalized(name: str) -> str:
    """Normalizes a sheet or file name for matching.

    Args:
        name: The name to normalize.

    Returns:
        The stripped, lower-cased name.
    """
    return name.strip().lower()


class WorksheetExtractor:
    """Extracts `Worksheet` objects from parsed media.

    Attributes:
        logger: An instance of the application's logger.
        config: The application's configuration object.
    """

    logger: Logger
    config: Config

    def __init__(self) -> None:
        """Initializes the extractor."""
        self.logger = LoggingProvider().get_logger()
        self.config = ConfigProvider.get_config()

    def extract(
        self,
        media: SingleMedia | ArchiveMedia,
        sheet_names: Mapping[K, str],
        default_key: K | None = None,
    ) -> dict[K, Worksheet]:
        """Extracts the worksheets a caller asked for from any media entity.

        Args:
            media: The parsed media.
            sheet_names: The expected sheet or file name per classification key.
            default_key: The key given to a CSV file whose base name matches no
                entry of `sheet_names`.

        Returns:
            The extracted worksheets keyed by classification key, in source
            order. A CSV that maps to no key yields an empty mapping.

        Raises:
            WorksheetExtractionError: If the content cannot be read.
        """
        if media.kind == MediaKind.ARCHIVE:
            return self.extract_archive_worksheets(media, sheet_names)
        if is_workbook_mimetype(media.content_type):
            return self.extract_workbook_worksheets(media, sheet_names)

        key = self._key_for_name(media.base_name, sheet_names)
        if key is None:
            key = default_key
        if key is None:
            self.logger.info(f"No classification key for '{media.file_name}'; no worksheet extracted.")
            return {}
        return {key: self.extract_csv_worksheet(media)}

    def extract_csv_worksheet(self, media: SingleMedia) -> Worksheet:
        """Reads a CSV file as a single worksheet.

        Args:
            media: The media holding CSV bytes.

        Returns:
            A worksheet named after the file's base name. The first row is the
            header and the remaining rows are data rows; an empty file gives an
            empty header and no rows.

        Raises:
            WorksheetExtractionError: If the bytes cannot be decoded.
        """
        try:
            text = media.raw_bytes.decode(self.config.CSV_ENCODING)
        except UnicodeDecodeError as e:
            raise WorksheetExtractionError(f"'{media.file_name}' is not valid {self.config.CSV_ENCODING} text") from e

        try:
            rows = list(csv.reader(io.StringIO(text, newline="")))
        except csv.Error as e:
            raise WorksheetExtractionError(f"'{media.file_name}' is not a readable CSV file: {e}") from e

        if not rows:
            return Worksheet(name=media.base_name)

        header, *data_rows = rows
        return Worksheet(
            name=media.base_name,
            header_row=header,
            data_rows=[[cell if cell != "" else None for cell in row] for row in data_rows],
        )

    def extract_workbook_worksheets(self, media: SingleMedia, sheet_names: Mapping[K, str]) -> dict[K, Worksheet]:
        """Reads the mapped sheets of an .xlsx workbook.

        Args:
            media: The media holding workbook bytes.
            sheet_names: The expected sheet name per classification key.

        Returns:
            The worksheets of the mapped sheets, in workbook sheet order.
            Sheets that are not mapped are ignored.

        Raises:
            WorksheetExtractionError: If the workbook cannot be opened or one of
                the mapped sheets cannot be parsed.
        """
        wanted = {_normalized(name): key for key, name in reversed(list(sheet_names.items()))}
        worksheets: dict[K, Worksheet] = {}
        workbook = self._open_workbook(media)
        try:
            for sheet in workbook.worksheets:
                key = wanted.get(_normalized(sheet.title))
                if key is None or key in worksheets:
                    continue
                worksheets[key] = self._build_worksheet(sheet.title, self._read_sheet_rows(media, sheet))
        finally:
            workbook.close()

        self.logger.debug(f"Extracted {len(worksheets)} worksheet(s) from workbook '{media.file_name}'.")
        return worksheets

    def extract_workbook_member_worksheet(self, media: SingleMedia, sheet_name: str) -> Worksheet:
        """Reads the worksheet of a workbook found inside an archive.

        The sheet titled like `sheet_name` is read when the workbook has one;
        otherwise its first sheet is.

        Args:
            media: The archive member holding workbook bytes.
            sheet_name: The expected name of the member, and of its sheet.

        Returns:
            A worksheet named after the member's base name.

        Raises:
            WorksheetExtractionError: If the workbook or its sheet cannot be read.
        """
        workbook = self._open_workbook(media)
        try:
            sheets = workbook.worksheets
            if not sheets:
                return Worksheet(name=media.base_name)
            sheet = next((s for s in sheets if _normalized(s.title) == _normalized(sheet_name)), sheets[0])
            return self._build_worksheet(media.base_name, self._read_sheet_rows(media, sheet))
        finally:
            workbook.close()

    def extract_archive_worksheets(self, archive: ArchiveMedia, file_names: Mapping[K, str]) -> dict[K, Worksheet]:
        """Reads the mapped member files of an archive as worksheets.

        CSV members give one worksheet each. Workbook members give the sheet
        read by `extract_workbook_member_worksheet`.

        Args:
            archive: The archive media.
            file_names: The expected member base name per classification key.

        Returns:
            The worksheets of the mapped members, in archive member order.
            Unmapped members are ignored; when several members share a mapped
            base name, the first one wins.

        Raises:
            WorksheetExtractionError: If a mapped member cannot be read.
        """
        worksheets: dict[K, Worksheet] = {}
        for child in archive.children:
            key = self._key_for_name(child.base_name, file_names)
            if key is None or key in worksheets:
                continue
            if is_workbook_mimetype(child.content_type):
                worksheets[key] = self.extract_workbook_member_worksheet(child, file_names[key])
            else:
                worksheets[key] = self.extract_csv_worksheet(child)
        return worksheets

    def _open_workbook(self, media: SingleMedia) -> Workbook:
        """Opens workbook bytes in read-only mode.

        Args:
            media: The media holding workbook bytes.

        Returns:
            The open workbook. Callers must close it.

        Raises:
            WorksheetExtractionError: If the bytes are not a readable workbook.
        """
        try:
            return openpyxl.load_workbook(io.BytesIO(media.raw_bytes), read_only=True, data_only=True)
        except WORKBOOK_ERRORS as e:
            raise WorksheetExtractionError(f"'{media.file_name}' is not a readable workbook: {e}") from e

    def _read_sheet_rows(self, media: SingleMedia, sheet: Any) -> list[list[Any]]:
        """Reads every row of a sheet.

        Read-only workbooks parse sheet XML lazily, so malformed sheets only
        fail here.

        Args:
            media: The media the sheet belongs to.
            sheet: The openpyxl sheet.

        Returns:
            All rows of the sheet, header first.

        Raises:
            WorksheetExtractionError: If the sheet data cannot be parsed.
        """
        try:
            return [list(row) for row in sheet.iter_rows(values_only=True)]
        except WORKBOOK_ERRORS as e:
            raise WorksheetExtractionError(f"Sheet '{sheet.title}' of '{media.file_name}' is not readable: {e}") from e

    def _build_worksheet(self, name: str, rows: list[list[Any]]) -> Worksheet:
        """Splits raw rows into header and data rows.

        Args:
            name: The worksheet name.
            rows: All rows of the sheet, header first.

        Returns:
            The worksheet.
        """
        if not rows:
            return Worksheet(name=name)
        header, *data_rows = rows
        return Worksheet(name=name, header_row=header, data_rows=data_rows)

    def _key_for_name(self, name: str, names: Mapping[K, str]) -> K | None:
        """Finds the classification key whose expected name matches a name.

        Args:
            name: The sheet or base name found in the source.
            names: The expected name per classification key.

        Returns:
            The first matching key, or None.
        """
        wanted = _normalized(name)
        for key, expected in names.items():
            if _normalized(expected) == wanted:
                return key
        return None
