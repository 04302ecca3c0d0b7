import pytest
from submission_validator.models.enums import ErrorCode, ErrorType
from submission_validator.models.worksheets import Worksheet, WorksheetCollection
from submission_validator.validators.content import (
    get_code_values_validator,
    get_duplicate_headers_validator,
    get_parent_child_key_validator,
    get_required_fields_validator,
    get_required_headers_validator,
    get_valid_format_validator,
    get_valid_headers_validator,
    get_valid_range_validator,
)


def test_duplicate_headers() -> None:
    """Should report each repeated header, ignoring case and spaces."""
    worksheet = Worksheet(name="event", header_row=["id", "ID ", "date", "", ""])

    get_duplicate_headers_validator()(worksheet)

    errors = worksheet.state.header_errors
    assert [error.col for error in errors] == ["ID "]
    assert errors[0].type == ErrorType.INVALID_HEADER
    assert errors[0].code == ErrorCode.DUPLICATE_HEADER


def test_required_headers() -> None:
    """Should report missing required headers in the given order."""
    worksheet = Worksheet(name="event", header_row=["Event_ID"])

    get_required_headers_validator(["event_id", "date", "location"])(worksheet)

    assert [error.col for error in worksheet.state.header_errors] == ["date", "location"]
    assert worksheet.state.header_errors[0].code == ErrorCode.MISSING_REQUIRED_HEADER


def test_valid_headers() -> None:
    """Should report headers outside the known set, but not empty ones."""
    worksheet = Worksheet(name="event", header_row=["id", "Surprise", None])

    get_valid_headers_validator(["ID", "date"])(worksheet)

    assert [error.col for error in worksheet.state.header_errors] == ["Surprise"]
    assert worksheet.state.header_errors[0].code == ErrorCode.UNKNOWN_HEADER


def test_required_fields() -> None:
    """Should report blank required cells with spreadsheet row numbers."""
    worksheet = Worksheet(name="event", header_row=["id", "date"], data_rows=[["1", "2024"], ["  ", None], ["3"]])

    get_required_fields_validator(["id", "date", "absent"])(worksheet)

    assert [(error.row, error.col) for error in worksheet.state.row_errors] == [(3, "id"), (3, "date"), (4, "date")]
    assert worksheet.state.row_errors[0].code == ErrorCode.MISSING_REQUIRED_FIELD


def test_code_values() -> None:
    """Should report codes outside the allowed list, accepting blanks."""
    worksheet = Worksheet(name="event", header_row=["sex"], data_rows=[["Male"], [" female "], [None], ["unknown"]])

    get_code_values_validator("Sex", ["male", "female"])(worksheet)

    assert [error.row for error in worksheet.state.row_errors] == [5]
    assert worksheet.state.row_errors[0].message == "Invalid value: unknown. Must be one of: male, female"


def test_code_values_on_missing_column_is_a_no_op() -> None:
    """Should not report anything when the column is absent."""
    worksheet = Worksheet(name="event", header_row=["id"], data_rows=[["x"]])

    get_code_values_validator("sex", ["male"])(worksheet)

    assert worksheet.state.is_valid is True


@pytest.mark.parametrize(
    "value, code",
    [("-1", ErrorCode.OUT_OF_RANGE), ("101", ErrorCode.OUT_OF_RANGE), ("abc", ErrorCode.INVALID_VALUE)],
)
def test_valid_range_rejects(value: str, code: ErrorCode) -> None:
    """Should reject values outside the bounds and non-numeric values."""
    worksheet = Worksheet(name="event", header_row=["count"], data_rows=[[value]])

    get_valid_range_validator("count", 0, 100)(worksheet)

    assert [error.code for error in worksheet.state.row_errors] == [code]


@pytest.mark.parametrize("value", ["0", "100", "42.5", 7, None, ""])
def test_valid_range_accepts(value: object) -> None:
    """Should accept values within the inclusive bounds and blanks."""
    worksheet = Worksheet(name="event", header_row=["count"], data_rows=[[value]])

    get_valid_range_validator("count", 0, 100)(worksheet)

    assert worksheet.state.is_valid is True


def test_valid_range_with_open_bound() -> None:
    """Should only enforce the bounds that are given."""
    worksheet = Worksheet(name="event", header_row=["count"], data_rows=[["1000000"], ["-5"]])

    get_valid_range_validator("count", min_value=0)(worksheet)

    assert [error.row for error in worksheet.state.row_errors] == [3]


@pytest.mark.parametrize(
    "bounds, value, message",
    [
        ({"min_value": 0, "max_value": 10}, "11", "Invalid value: 11. Must be in the range [0-10]"),
        ({"min_value": 0}, "-5", "Invalid value: -5. Must be at least 0"),
        ({"max_value": 10}, "11", "Invalid value: 11. Must be at most 10"),
    ],
)
def test_valid_range_message_names_only_set_bounds(bounds: dict[str, int], value: str, message: str) -> None:
    """Should describe the accepted range without mentioning missing bounds."""
    worksheet = Worksheet(name="event", header_row=["count"], data_rows=[[value]])

    get_valid_range_validator("count", **bounds)(worksheet)

    assert [error.message for error in worksheet.state.row_errors] == [message]


def test_valid_format() -> None:
    """Should report values that do not match the pattern."""
    worksheet = Worksheet(name="event", header_row=["date"], data_rows=[["2024-01-31"], ["31/01/2024"], [None]])

    get_valid_format_validator("date", r"^\d{4}-\d{2}-\d{2}$", "Dates must be YYYY-MM-DD")(worksheet)

    errors = worksheet.state.row_errors
    assert [error.row for error in errors] == [3]
    assert errors[0].code == ErrorCode.UNEXPECTED_FORMAT
    assert errors[0].message == "Unexpected Format: 31/01/2024. Dates must be YYYY-MM-DD"


def test_parent_child_keys() -> None:
    """Should report child rows whose key has no parent row."""
    parent = Worksheet(name="event", header_row=["event_id"], data_rows=[["e1"], ["e2"]])
    child = Worksheet(
        name="occurrence",
        header_row=["occurrence_id", "Event_ID"],
        data_rows=[["o1", "e1"], ["o2", "e9"], ["o3", None]],
    )
    collection = WorksheetCollection(name="s.zip", worksheets={"event": parent, "occurrence": child})

    get_parent_child_key_validator("event", "occurrence", ["event_id"])(collection)

    assert parent.state.is_valid is True
    errors = child.state.row_errors
    assert [error.row for error in errors] == [3]
    assert errors[0].type == ErrorType.INVALID_KEY
    assert errors[0].code == ErrorCode.DANGLING_PARENT_CHILD_KEY


def test_parent_child_keys_without_parent_sheet() -> None:
    """Should check nothing when one of the worksheets is missing."""
    child = Worksheet(name="occurrence", header_row=["event_id"], data_rows=[["e9"]])
    collection = WorksheetCollection(name="s.zip", worksheets={"occurrence": child})

    get_parent_child_key_validator("event", "occurrence", ["event_id"])(collection)

    assert child.state.is_valid is True


def test_validators_are_reusable_across_worksheets() -> None:
    """Should keep no state between runs."""
    validator = get_required_headers_validator(["id"])
    first = Worksheet(name="a", header_row=["x"])
    second = Worksheet(name="b", header_row=["id"])

    validator(first)
    validator(second)

    assert first.state.is_valid is False
    assert second.state.is_valid is True
