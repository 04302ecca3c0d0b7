"""Factories for content-level validators.

Worksheet validators inspect the header and data rows of one worksheet and
append header or row errors to its content state. Collection validators
inspect several worksheets at once, for rules that span sheets such as
parent/child keys.

Headers are matched ignoring case and surrounding whitespace. Row numbers
are spreadsheet rows: the header is row 1 and the first data row is row 2.
"""

import re
from collections.abc import Hashable, Iterable, Sequence
from decimal import Decimal, InvalidOperation

from submission_validator.models.catalog import CollectionValidator, ContentValidator
from submission_validator.models.enums import ErrorCode, ErrorType
from submission_validator.models.worksheets import CellValue, HeaderError, RowError, Worksheet, WorksheetCollection


def _normalized(header: str) -> str:
    """Normalizes a header for comparison.

    Args:
        header: The header text.

    Returns:
        The stripped, lower-cased header.
    """
    return header.strip().lower()


def _is_blank(value: CellValue) -> bool:
    """Checks if a cell holds no data.

    Args:
        value: The cell value.

    Returns:
        True for None and for whitespace-only strings.
    """
    return value is None or (isinstance(value, str) and not value.strip())


def _to_decimal(value: CellValue) -> Decimal | None:
    """Parses a cell as a number.

    Args:
        value: The cell value.

    Returns:
        The numeric value, or None if the cell is not numeric.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _describe_bounds(min_value: float | None, max_value: float | None) -> str:
    """Describes the accepted range for an error message.

    Args:
        min_value: The lowest accepted value, if bounded below.
        max_value: The highest accepted value, if bounded above.

    Returns:
        A phrase naming only the bounds that are set.
    """
    if min_value is not None and max_value is not None:
        return f"in the range [{min_value}-{max_value}]"
    if min_value is not None:
        return f"at least {min_value}"
    if max_value is not None:
        return f"at most {max_value}"
    return "a number"


def get_duplicate_headers_validator() -> ContentValidator:
    """Builds a validator that reports headers appearing more than once.

    Returns:
        The validator. It reports every repeated occurrence, at the position of
        that occurrence.
    """

    def validator(worksheet: Worksheet) -> None:
        seen: set[str] = set()
        errors: list[HeaderError] = []
        for header in worksheet.header_row:
            key = _normalized(header)
            if not key:
                continue
            if key in seen:
                errors.append(
                    HeaderError(
                        type=ErrorType.INVALID_HEADER,
                        code=ErrorCode.DUPLICATE_HEADER,
                        message="Duplicate header",
                        col=header,
                    )
                )
            seen.add(key)
        worksheet.state.append_header_errors(errors)

    return validator


def get_required_headers_validator(required_headers: Iterable[str]) -> ContentValidator:
    """Builds a validator that reports missing required headers.

    Args:
        required_headers: The headers that must be present, in reporting order.

    Returns:
        The validator.
    """
    required = list(required_headers)

    def validator(worksheet: Worksheet) -> None:
        present = {_normalized(header) for header in worksheet.header_row}
        worksheet.state.append_header_errors(
            HeaderError(
                type=ErrorType.MISSING_DATA,
                code=ErrorCode.MISSING_REQUIRED_HEADER,
                message="Missing required header",
                col=header,
            )
            for header in required
            if _normalized(header) not in present
        )

    return validator


def get_valid_headers_validator(valid_headers: Iterable[str]) -> ContentValidator:
    """Builds a validator that reports headers outside a known set.

    Empty header cells are not reported.

    Args:
        valid_headers: Every header the worksheet may contain.

    Returns:
        The validator.
    """
    valid = {_normalized(header) for header in valid_headers}

    def validator(worksheet: Worksheet) -> None:
        worksheet.state.append_header_errors(
            HeaderError(
                type=ErrorType.INVALID_HEADER,
                code=ErrorCode.UNKNOWN_HEADER,
                message="Unsupported header",
                col=header,
            )
            for header in worksheet.header_row
            if _normalized(header) and _normalized(header) not in valid
        )

    return validator


def get_required_fields_validator(required_headers: Iterable[str]) -> ContentValidator:
    """Builds a validator that reports blank cells in required columns.

    Columns absent from the header are not checked here; missing headers are
    the concern of `get_required_headers_validator`.

    Args:
        required_headers: The columns that must have a value in every row.

    Returns:
        The validator.
    """
    required = list(required_headers)

    def validator(worksheet: Worksheet) -> None:
        columns = [(header, worksheet.get_header_index(header)) for header in required]
        errors: list[RowError] = []
        for row_number, row in worksheet.iter_rows():
            for header, index in columns:
                if index is None or not _is_blank(worksheet.get_cell(row, index)):
                    continue
                errors.append(
                    RowError(
                        type=ErrorType.MISSING_DATA,
                        code=ErrorCode.MISSING_REQUIRED_FIELD,
                        message=f"Missing required value for column: {header}",
                        row=row_number,
                        col=header,
                    )
                )
        worksheet.state.append_row_errors(errors)

    return validator


def get_code_values_validator(header: str, allowed_values: Iterable[str]) -> ContentValidator:
    """Builds a validator that restricts a column to a list of codes.

    Blank cells are accepted; combine with `get_required_fields_validator` to
    forbid them. Codes are compared ignoring case and surrounding whitespace.
    With no allowed codes the validator checks nothing.

    Args:
        header: The column to check.
        allowed_values: The accepted codes.

    Returns:
        The validator.
    """
    allowed_list = [str(value) for value in allowed_values]
    allowed = {_normalized(value) for value in allowed_list}

    def validator(worksheet: Worksheet) -> None:
        index = worksheet.get_header_index(header)
        if index is None or not allowed:
            return
        errors: list[RowError] = []
        for row_number, row in worksheet.iter_rows():
            value = worksheet.get_cell(row, index)
            if _is_blank(value) or _normalized(str(value)) in allowed:
                continue
            errors.append(
                RowError(
                    type=ErrorType.INVALID_VALUE,
                    code=ErrorCode.INVALID_VALUE,
                    message=f"Invalid value: {value}. Must be one of: {', '.join(allowed_list)}",
                    row=row_number,
                    col=header,
                )
            )
        worksheet.state.append_row_errors(errors)

    return validator


def get_valid_range_validator(
    header: str,
    min_value: float | None = None,
    max_value: float | None = None,
) -> ContentValidator:
    """Builds a validator that checks numeric values against inclusive bounds.

    Blank cells are accepted. Non-numeric values are reported as invalid.

    Args:
        header: The column to check.
        min_value: The lowest accepted value, or None for no lower bound.
        max_value: The highest accepted value, or None for no upper bound.

    Returns:
        The validator.
    """
    low = None if min_value is None else Decimal(str(min_value))
    high = None if max_value is None else Decimal(str(max_value))
    bounds = _describe_bounds(min_value, max_value)

    def validator(worksheet: Worksheet) -> None:
        index = worksheet.get_header_index(header)
        if index is None:
            return
        errors: list[RowError] = []
        for row_number, row in worksheet.iter_rows():
            value = worksheet.get_cell(row, index)
            if _is_blank(value):
                continue
            number = _to_decimal(value)
            if number is None:
                errors.append(
                    RowError(
                        type=ErrorType.INVALID_VALUE,
                        code=ErrorCode.INVALID_VALUE,
                        message=f"Invalid value: {value}. Must be a number",
                        row=row_number,
                        col=header,
                    )
                )
            elif (low is not None and number < low) or (high is not None and number > high):
                errors.append(
                    RowError(
                        type=ErrorType.OUT_OF_RANGE,
                        code=ErrorCode.OUT_OF_RANGE,
                        message=f"Invalid value: {value}. Must be {bounds}",
                        row=row_number,
                        col=header,
                    )
                )
        worksheet.state.append_row_errors(errors)

    return validator


def get_valid_format_validator(header: str, reg_exp: str, expected_format: str) -> ContentValidator:
    """Builds a validator that checks values against a regular expression.

    Blank cells are accepted.

    Args:
        header: The column to check.
        reg_exp: The pattern every value must match (searched from the start
            of the value).
        expected_format: A human readable description of the format, used in
            the error message.

    Returns:
        The validator.
    """
    pattern = re.compile(reg_exp)

    def validator(worksheet: Worksheet) -> None:
        index = worksheet.get_header_index(header)
        if index is None:
            return
        errors: list[RowError] = []
        for row_number, row in worksheet.iter_rows():
            value = worksheet.get_cell(row, index)
            if _is_blank(value) or pattern.match(str(value)):
                continue
            errors.append(
                RowError(
                    type=ErrorType.INVALID_VALUE,
                    code=ErrorCode.UNEXPECTED_FORMAT,
                    message=f"Unexpected Format: {value}. {expected_format}",
                    row=row_number,
                    col=header,
                )
            )
        worksheet.state.append_row_errors(errors)

    return validator


def get_parent_child_key_validator(
    parent_key: Hashable,
    child_key: Hashable,
    column_names: Sequence[str],
) -> CollectionValidator:
    """Builds a cross-sheet validator for parent/child key references.

    Every child row must reference an existing parent row through the given
    key columns. Errors are recorded on the child worksheet. Nothing is
    checked when either worksheet is missing from the collection.

    Args:
        parent_key: The classification key of the parent worksheet.
        child_key: The classification key of the child worksheet.
        column_names: The key columns, present in both worksheets.

    Returns:
        The collection validator.
    """
    columns = list(column_names)

    def key_of(worksheet: Worksheet, row: tuple[CellValue, ...], indexes: list[int]) -> tuple[str, ...]:
        cells = (worksheet.get_cell(row, index) for index in indexes)
        return tuple("" if _is_blank(cell) else str(cell).strip() for cell in cells)

    def validator(collection: WorksheetCollection) -> None:
        parent = collection.get(parent_key)
        child = collection.get(child_key)
        if parent is None or child is None:
            return

        parent_indexes = [index for column in columns if (index := parent.get_header_index(column)) is not None]
        child_indexes = [index for column in columns if (index := child.get_header_index(column)) is not None]
        if len(parent_indexes) != len(columns) or len(child_indexes) != len(columns):
            return

        parent_keys = {key_of(parent, row, parent_indexes) for _, row in parent.iter_rows()}
        errors: list[RowError] = []
        for row_number, row in child.iter_rows():
            key = key_of(child, row, child_indexes)
            if all(part == "" for part in key) or key in parent_keys:
                continue
            errors.append(
                RowError(
                    type=ErrorType.INVALID_KEY,
                    code=ErrorCode.DANGLING_PARENT_CHILD_KEY,
                    message=f"{child.name} row references missing {parent.name} key: {', '.join(key)}",
                    row=row_number,
                    col=", ".join(columns),
                )
            )
        child.state.append_row_errors(errors)

    return validator
