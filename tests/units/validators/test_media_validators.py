from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.validators.media import (
    get_file_not_empty_validator,
    get_max_file_size_validator,
    get_mimetype_validator,
    get_required_files_validator,
)


def make_archive(*names: str, content: bytes = b"x") -> ArchiveMedia:
    """Builds an archive with the given member names."""
    return ArchiveMedia(
        file_name="submission.zip",
        content_type="application/zip",
        children=[SingleMedia(file_name=name, raw_bytes=content) for name in names],
    )


def test_required_files_reports_missing_names_in_order() -> None:
    """Should append one error per missing name, in the given order."""
    archive = make_archive("Occurrence.csv", "Taxon.csv")

    get_required_files_validator(["location", "event", "occurrence"])(archive)

    assert archive.validation_state.errors == [
        "Missing required file: location",
        "Missing required file: event",
    ]


def test_required_files_compares_base_names_ignoring_case() -> None:
    """Should accept members whose base names match in any case."""
    archive = make_archive("EVENT.CSV", "occurrence.txt")

    get_required_files_validator(["Event", "Occurrence"])(archive)

    assert archive.validation_state.is_valid is True


def test_required_files_leaves_members_untouched() -> None:
    """Should only record errors on the archive itself."""
    archive = make_archive("taxon.csv")

    get_required_files_validator(["event"])(archive)

    assert archive.children[0].validation_state.is_valid is True


def test_required_files_treats_single_file_as_one_member() -> None:
    """Should check a single file against its own base name."""
    media = SingleMedia(file_name="event.csv")

    get_required_files_validator(["event", "occurrence"])(media)

    assert media.validation_state.errors == ["Missing required file: occurrence"]


def test_mimetype_validator() -> None:
    """Should accept matching content types and reject the others."""
    validator = get_mimetype_validator(["text/csv", "application/zip"])
    csv_media = SingleMedia(file_name="a.csv", content_type="text/csv")
    txt_media = SingleMedia(file_name="a.txt", content_type="text/plain")

    validator(csv_media)
    validator(txt_media)

    assert csv_media.validation_state.is_valid is True
    assert txt_media.validation_state.errors == [
        "File mimetype is invalid: text/plain, must be one of: text/csv, application/zip"
    ]


def test_mimetype_validator_without_patterns_accepts_everything() -> None:
    """Should not restrict anything when no patterns are configured."""
    media = SingleMedia(file_name="a.bin")

    get_mimetype_validator([])(media)

    assert media.validation_state.is_valid is True


def test_file_not_empty_validator() -> None:
    """Should flag empty files and empty archive members."""
    empty = SingleMedia(file_name="a.csv")
    archive = ArchiveMedia(
        file_name="s.zip",
        raw_bytes=b"PK",
        children=[SingleMedia(file_name="a.csv", raw_bytes=b"1"), SingleMedia(file_name="b.csv")],
    )

    get_file_not_empty_validator()(empty)
    get_file_not_empty_validator()(archive)

    assert empty.validation_state.errors == ["File is empty: a.csv"]
    assert archive.validation_state.errors == ["File is empty: b.csv"]


def test_max_file_size_validator() -> None:
    """Should flag files larger than the limit."""
    small = SingleMedia(file_name="a.csv", raw_bytes=b"12")
    large = SingleMedia(file_name="b.csv", raw_bytes=b"12345")
    validator = get_max_file_size_validator(2)

    validator(small)
    validator(large)

    assert small.validation_state.is_valid is True
    assert large.validation_state.errors == ["File b.csv is 5 bytes, exceeding the limit of 2 bytes"]
