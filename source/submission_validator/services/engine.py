"""This module provides the validator execution engine.

The engine runs ordered lists of validator functions against media entities,
worksheets and worksheet collections. Validators report findings only by
appending to the target's validation state, and every validator in a list
always runs, so one pass surfaces every problem at once.
"""

from collections.abc import Sequence

from submission_validator.models.catalog import CollectionValidator, ContentValidator, MediaValidator
from submission_validator.models.enums import ContentKind
from submission_validator.models.media import ArchiveMedia, MediaSnapshot, SingleMedia
from submission_validator.models.worksheets import ContentSnapshot, Worksheet, WorksheetCollection
from submission_validator.providers.logging import Logger, LoggingProvider


class ValidatorEngine:
    """Runs validators and collects the resulting state snapshots.

    The engine holds no state between calls. Exceptions raised by a validator
    are not caught: validators must be total over well-typed input.
    """

    logger: Logger

    def __init__(self) -> None:
        """Initializes the engine."""
        self.logger = LoggingProvider().get_logger()

    def run_media_validators(
        self,
        target: SingleMedia | ArchiveMedia,
        validators: Sequence[MediaValidator],
    ) -> MediaSnapshot:
        """Runs media validators against a single file or an archive.

        Args:
            target: The media entity to validate. Archive validators receive
                the whole archive so they can check cross-file rules.
            validators: The validators, run strictly in the given order.

        Returns:
            The snapshot of the target's validation state after all
            validators ran.
        """
        for validator in validators:
            validator(target)

        snapshot = target.get_media_state()
        self.logger.debug(
            f"Ran {len(validators)} media validator(s) on '{target.file_name}': "
            f"{len(snapshot.file_errors)} error(s)."
        )
        return snapshot

    def run_content_validators(
        self,
        target: Worksheet | WorksheetCollection,
        validators: Sequence[ContentValidator] | Sequence[CollectionValidator],
    ) -> list[ContentSnapshot]:
        """Runs content validators against a worksheet or a worksheet collection.

        Args:
            target: A worksheet, or a collection of worksheets for cross-sheet
                validators.
            validators: The validators, run strictly in the given order. Each
                receives `target` itself.

        Returns:
            One snapshot per worksheet: a single snapshot for a worksheet, or
            the snapshots of all worksheets of a collection in collection
            order.
        """
        for validator in validators:
            validator(target)  # type: ignore[arg-type]

        if target.kind == ContentKind.COLLECTION:
            snapshots = target.get_content_state()
        else:
            snapshots = [target.get_content_state()]

        self.logger.debug(f"Ran {len(validators)} content validator(s) on '{target.name}'.")
        return snapshots
