"""This module defines the models for tabular content extracted from media.

A `Worksheet` is the header + rows view of one sheet (or one CSV file). Its
cells never change after extraction; validators record findings in the
worksheet's `ContentState`, which extends the media ledger with header and
row errors.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime, time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from submission_validator.models.enums import ContentKind
from submission_validator.models.media import ValidationState

CellValue = str | int | float | None


class HeaderError(BaseModel):
    """An error about a header (column) of a worksheet.

    Validators may attach extra fields; they are kept as given.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    code: str
    message: str
    col: str | int


class RowError(BaseModel):
    """An error about a data row of a worksheet.

    Attributes:
        row: The 1-based spreadsheet row number (the header is row 1).
        col: The column the error refers to, when there is one.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    code: str
    message: str
    row: int
    col: str | int | None = None


class ContentSnapshot(BaseModel):
    """An immutable record of a worksheet's validation outcome."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(alias="fileName")
    file_errors: tuple[str, ...] = Field(default=(), alias="fileErrors")
    is_valid: bool = Field(alias="isValid")
    header_errors: tuple[HeaderError, ...] = Field(default=(), alias="headerErrors")
    row_errors: tuple[RowError, ...] = Field(default=(), alias="rowErrors")


class ContentState(ValidationState):
    """The error ledger of a worksheet.

    Appending a non-empty batch of header or row errors marks the state
    invalid, exactly like appending file errors does.
    """

    header_errors: list[HeaderError] = Field(default_factory=list)
    row_errors: list[RowError] = Field(default_factory=list)

    def append_header_errors(self, errors: Iterable[HeaderError]) -> None:
        """Appends a batch of header errors.

        Args:
            errors: The header errors to append.
        """
        batch = list(errors)
        if not batch:
            return
        self.header_errors.extend(batch)
        self.is_valid = False

    def append_row_errors(self, errors: Iterable[RowError]) -> None:
        """Appends a batch of row errors.

        Args:
            errors: The row errors to append.
        """
        batch = list(errors)
        if not batch:
            return
        self.row_errors.extend(batch)
        self.is_valid = False

    def snapshot(self) -> ContentSnapshot:  # type: ignore[override]
        """Returns an immutable copy of the current state.

        Returns:
            The content snapshot of this state.
        """
        return ContentSnapshot(
            file_name=self.subject_name,
            file_errors=tuple(self.errors),
            is_valid=self.is_valid,
            header_errors=tuple(self.header_errors),
            row_errors=tuple(self.row_errors),
        )


def normalize_cell(value: Any) -> CellValue:
    """Converts a raw spreadsheet cell into a worksheet cell value.

    Args:
        value: The value read from the source.

    Returns:
        The value as a string, number or None. Dates and times become ISO
        strings and any other type is stringified.
    """
    if value is None or isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class Worksheet(BaseModel):
    """The tabular view of one sheet.

    Attributes:
        name: The sheet name, or the owning file's base name for sources that
            expose a single implicit sheet.
        header_row: The header cells; empty cells become empty strings.
        data_rows: The data rows in source order.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal[ContentKind.WORKSHEET] = ContentKind.WORKSHEET
    name: str
    header_row: tuple[str, ...] = ()
    data_rows: tuple[tuple[CellValue, ...], ...] = ()

    _state: ContentState = PrivateAttr()

    @field_validator("header_row", mode="before")
    @classmethod
    def normalize_header(cls, value: Iterable[Any]) -> tuple[str, ...]:
        """Replaces empty header cells with empty strings.

        Args:
            value: The raw header cells.

        Returns:
            The header as a tuple of strings.
        """
        return tuple("" if cell is None else str(cell) for cell in value)

    @field_validator("data_rows", mode="before")
    @classmethod
    def normalize_rows(cls, value: Iterable[Iterable[Any]]) -> tuple[tuple[CellValue, ...], ...]:
        """Normalizes every cell of every data row.

        Args:
            value: The raw data rows.

        Returns:
            The rows as tuples of cell values.
        """
        return tuple(tuple(normalize_cell(cell) for cell in row) for row in value)

    def model_post_init(self, __context: Any) -> None:
        """Creates the content state alongside the worksheet.

        Args:
            __context: The Pydantic validation context (unused).
        """
        self._state = ContentState(subject_name=self.name)

    @property
    def state(self) -> ContentState:
        """The validation ledger of this worksheet."""
        return self._state

    def get_header_index(self, header: str) -> int | None:
        """Finds a column by header name, ignoring case and surrounding spaces.

        Args:
            header: The header to look for.

        Returns:
            The index of the first matching column, or None.
        """
        wanted = header.strip().lower()
        for index, cell in enumerate(self.header_row):
            if cell.strip().lower() == wanted:
                return index
        return None

    def get_cell(self, row: tuple[CellValue, ...], index: int) -> CellValue:
        """Reads a cell from a data row, tolerating short rows.

        Args:
            row: A data row of this worksheet.
            index: The column index.

        Returns:
            The cell value, or None when the row has no such column.
        """
        return row[index] if index < len(row) else None

    def iter_rows(self) -> Iterator[tuple[int, tuple[CellValue, ...]]]:
        """Iterates over data rows with their spreadsheet row numbers.

        Yields:
            Tuples of (row number, row), starting at row 2.
        """
        for offset, row in enumerate(self.data_rows):
            yield offset + 2, row

    def get_column_values(self, header: str) -> list[CellValue]:
        """Returns all values of a column, in row order.

        Args:
            header: The header of the column.

        Returns:
            The column values, or an empty list if the header is absent.
        """
        index = self.get_header_index(header)
        if index is None:
            return []
        return [self.get_cell(row, index) for row in self.data_rows]

    def get_content_state(self) -> ContentSnapshot:
        """Returns the snapshot of this worksheet's validation state.

        Returns:
            The content snapshot.
        """
        return self._state.snapshot()


class WorksheetCollection(BaseModel):
    """The worksheets extracted from one submission, keyed by classification.

    Attributes:
        name: The name of the submission the worksheets come from.
        worksheets: The worksheets, ordered as in the source.
    """

    kind: Literal[ContentKind.COLLECTION] = ContentKind.COLLECTION
    name: str
    worksheets: dict[Any, Worksheet] = Field(default_factory=dict)

    def get(self, key: Any) -> Worksheet | None:
        """Returns the worksheet for a classification key.

        Args:
            key: The classification key.

        Returns:
            The worksheet, or None if the source had no such sheet.
        """
        return self.worksheets.get(key)

    def get_content_state(self) -> list[ContentSnapshot]:
        """Returns the snapshots of all worksheets, in worksheet order.

        Returns:
            The list of content snapshots.
        """
        return [worksheet.get_content_state() for worksheet in self.worksheets.values()]
