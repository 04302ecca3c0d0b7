"""This module initializes the services package.

It also re-exports the media model and the services so callers can parse and
validate a submission from a single import location.
"""

from submission_validator.models.catalog import RuleCatalog
from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.models.reports import ValidationReport
from submission_validator.services.engine import ValidatorEngine
from submission_validator.services.media_parser import MediaParser
from submission_validator.services.schema_parser import ValidationSchemaParser
from submission_validator.services.validation import ValidationService
from submission_validator.services.worksheets import WorksheetExtractor

__all__ = [
    "MediaParser",
    "ValidationSchemaParser",
    "ValidationService",
    "ValidatorEngine",
    "WorksheetExtractor",
    "ArchiveMedia",
    "RuleCatalog",
    "SingleMedia",
    "ValidationReport",
]
