"""This module provides the service that validates a parsed submission.

Validation runs in two phases. The media phase checks files as files (names,
types, sizes, required members). Only if every media subject passes does the
content phase extract worksheets and check headers and rows, since content
rules presuppose structurally valid files.
"""

from typing import Any

from submission_validator.exceptions.validation import WorksheetExtractionError
from submission_validator.models.catalog import RuleCatalog
from submission_validator.models.enums import FileErrorMessage, MediaKind
from submission_validator.models.media import ArchiveMedia, MediaSnapshot, SingleMedia
from submission_validator.models.reports import ValidationReport
from submission_validator.models.worksheets import ContentSnapshot, WorksheetCollection
from submission_validator.providers.logging import Logger, LoggingProvider
from submission_validator.services.engine import ValidatorEngine
from submission_validator.services.worksheets import WorksheetExtractor


class ValidationService:
    """Orchestrates the media and content validation of a submission.

    Attributes:
        logger: An instance of the application's logger.
        engine: The engine that runs validator lists.
        extractor: The worksheet extractor used by the content phase.
    """

    logger: Logger
    engine: ValidatorEngine
    extractor: WorksheetExtractor

    def __init__(
        self,
        engine: ValidatorEngine | None = None,
        extractor: WorksheetExtractor | None = None,
    ) -> None:
        """Initializes the service with its dependencies.

        Args:
            engine: The validator engine.
            extractor: The worksheet extractor.
        """
        self.logger = LoggingProvider().get_logger()
        self.engine = engine or ValidatorEngine()
        self.extractor = extractor or WorksheetExtractor()

    def validate(self, media: SingleMedia | ArchiveMedia, catalog: RuleCatalog[Any]) -> ValidationReport:
        """Validates a submission against the rules of its template class.

        Args:
            media: The parsed submission.
            catalog: The rule catalog of the submission's template class.

        Returns:
            The validation report. When any media subject is invalid, the
            report holds only media snapshots.
        """
        self.logger.info(f"Validating submission '{media.file_name}'.")
        media_state = self.validate_media(media, catalog)

        if not all(snapshot.is_valid for snapshot in media_state):
            self.logger.info(f"Media validation failed for '{media.file_name}'; skipping content validation.")
            return ValidationReport(media_state=tuple(media_state))

        try:
            content_state = self.validate_content(media, catalog)
        except WorksheetExtractionError as e:
            self.logger.warning(f"Could not extract worksheets from '{media.file_name}': {e}")
            media.validation_state.append_errors(
                [FileErrorMessage.UNREADABLE_CONTENT.format_message(file_name=media.file_name, reason=e)]
            )
            media_state[0] = media.get_media_state()
            return ValidationReport(media_state=tuple(media_state))

        report = ValidationReport(media_state=tuple(media_state), content_state=tuple(content_state))
        self.logger.info(f"Validation of '{media.file_name}' finished; valid: {report.is_valid}.")
        return report

    def validate_media(self, media: SingleMedia | ArchiveMedia, catalog: RuleCatalog[Any]) -> list[MediaSnapshot]:
        """Runs the media phase.

        The top-level media runs the submission validators followed by the
        validators of its own classification key. Archive members that map to
        a classification key then run that key's validators.

        Args:
            media: The parsed submission.
            catalog: The rule catalog.

        Returns:
            The top-level snapshot followed by the snapshots of the validated
            archive members, in member order.
        """
        own_key = catalog.key_for_name(media.base_name)
        if own_key is None and media.kind == MediaKind.SINGLE:
            own_key = catalog.default_key

        validators = [*catalog.submission_validators, *catalog.media_validators_for(own_key)]
        snapshots = [self.engine.run_media_validators(media, validators)]

        if media.kind == MediaKind.ARCHIVE:
            for child in media.children:
                child_validators = catalog.media_validators_for(catalog.key_for_name(child.base_name))
                if child_validators:
                    snapshots.append(self.engine.run_media_validators(child, child_validators))
        return snapshots

    def validate_content(self, media: SingleMedia | ArchiveMedia, catalog: RuleCatalog[Any]) -> list[ContentSnapshot]:
        """Runs the content phase.

        Args:
            media: The parsed submission, already known to be media-valid.
            catalog: The rule catalog.

        Returns:
            One snapshot per extracted worksheet, in source order.

        Raises:
            WorksheetExtractionError: If a mapped sheet cannot be read.
        """
        worksheets = self.extractor.extract(media, catalog.sheet_names, catalog.default_key)
        for key, worksheet in worksheets.items():
            self.engine.run_content_validators(worksheet, catalog.content_validators_for(key))

        collection = WorksheetCollection(name=media.file_name, worksheets=worksheets)
        return self.engine.run_content_validators(collection, list(catalog.collection_validators))
