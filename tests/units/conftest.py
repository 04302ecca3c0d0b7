"""This module contains shared fixtures for all unit tests."""

import io
import os
import zipfile
from collections.abc import Callable, Iterable

import pytest


@pytest.fixture(scope="session", autouse=True)
def unset_gcp_settings() -> None:
    """Unsets GCP-related environment variables for the entire test session.

    This guarantees that no unit test can reach a real or emulated bucket.
    """
    os.environ.pop("GCP_GCS_HOST", None)
    os.environ.pop("GCP_GCS_BUCKET_SUBMISSIONS", None)


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """Fixture that builds zip archives in memory.

    Returns:
        A function taking a mapping of member paths to contents, and optional
        directory entries, and returning the archive bytes.
    """

    def _make_zip(members: dict[str, bytes], directories: Iterable[str] = ()) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            for directory in directories:
                archive.writestr(directory.rstrip("/") + "/", b"")
            for path, content in members.items():
                archive.writestr(path, content)
        return buffer.getvalue()

    return _make_zip


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Configures the application logger before any test swaps the standard streams.

    CLI tests run commands under `CliRunner`, which replaces `sys.stderr` for
    the duration of each invocation. Configuring the logger up front keeps
    its handler bound to the session's stream instead of a runner's one.
    """
    from submission_validator.providers.logging import LoggingProvider

    LoggingProvider().get_logger()
