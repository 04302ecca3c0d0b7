"""This module defines the validation report handed to reporting layers."""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from submission_validator.models.media import MediaSnapshot
from submission_validator.models.worksheets import ContentSnapshot


class ValidationReport(BaseModel):
    """The outcome of validating one submission.

    Attributes:
        media_state: One snapshot per media subject, top-level media first.
        content_state: One snapshot per worksheet. Empty when media validation
            failed, since content validation is skipped in that case.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    media_state: tuple[MediaSnapshot, ...] = Field(default=(), alias="mediaState")
    content_state: tuple[ContentSnapshot, ...] = Field(default=(), alias="contentState")

    @computed_field(alias="isValid")  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        """Whether every media and content subject is valid."""
        return all(state.is_valid for state in self.media_state) and all(
            state.is_valid for state in self.content_state
        )

    @property
    def is_media_valid(self) -> bool:
        """Whether every media subject is valid."""
        return all(state.is_valid for state in self.media_state)

    def to_json_dict(self) -> dict:
        """Serializes the report with the camel-cased field names.

        Returns:
            A JSON-compatible dictionary.
        """
        return self.model_dump(mode="json", by_alias=True)
