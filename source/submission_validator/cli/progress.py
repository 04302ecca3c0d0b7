"""This module provides the spinner shown while a submission is processed."""

import os
import sys
from collections.abc import Generator
from contextlib import AbstractContextManager, contextmanager

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn


def should_show_progress(no_progress_flag: bool) -> bool:
    """Determines whether a spinner should be displayed.

    Args:
        no_progress_flag: The value of the --no-progress flag.

    Returns:
        True if the spinner should be shown, False otherwise.
    """
    if no_progress_flag or os.getenv("CI") == "1":
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


@contextmanager
def spinner(label: str) -> Generator[None, None, None]:
    """Shows a transient spinner on stderr, keeping stdout clean for reports.

    Args:
        label: The label for the spinner.

    Yields:
        None.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        progress.add_task(description=label, total=None)
        yield


@contextmanager
def null_spinner(label: str) -> Generator[None, None, None]:  # noqa: F841
    """A null spinner that does nothing.

    Args:
        label: The label for the spinner.

    Yields:
        None.
    """
    yield


def make_spinner(label: str, enabled: bool) -> AbstractContextManager[None]:
    """Returns a spinner, or a null spinner when progress is disabled.

    Args:
        label: The label for the spinner.
        enabled: Whether the spinner should be shown.

    Returns:
        The spinner context manager.
    """
    return spinner(label) if enabled else null_spinner(label)
