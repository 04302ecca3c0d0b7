"""This module defines the Pydantic models for parsed media entities.

A submission is parsed into either a `SingleMedia` (one file) or an
`ArchiveMedia` (a zip-family archive and its flattened member files). Each
entity owns a `ValidationState`, an append-only error ledger that validators
write into and that is read back through an immutable snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from submission_validator.models.enums import MediaKind


class MediaSnapshot(BaseModel):
    """An immutable record of a media subject's validation outcome.

    Serialized with ``by_alias=True`` it produces the
    ``{"fileName", "fileErrors", "isValid"}`` shape handed to reporting.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(alias="fileName")
    file_errors: tuple[str, ...] = Field(default=(), alias="fileErrors")
    is_valid: bool = Field(alias="isValid")


class ValidationState(BaseModel):
    """The mutable error ledger attached to a media subject.

    Attributes:
        subject_name: The name reported for the subject, usually its file name.
        errors: The errors appended so far, in append order.
        is_valid: Starts True and becomes False permanently once a non-empty
            batch of errors has been appended.
    """

    subject_name: str
    errors: list[str] = Field(default_factory=list)
    is_valid: bool = True

    def append_errors(self, errors: Iterable[str]) -> None:
        """Appends a batch of errors to the ledger.

        An empty batch leaves the state untouched.

        Args:
            errors: The error messages to append.
        """
        batch = list(errors)
        if not batch:
            return
        self.errors.extend(batch)
        self.is_valid = False

    def snapshot(self) -> MediaSnapshot:
        """Returns an immutable copy of the current state.

        Returns:
            The snapshot of this state.
        """
        return MediaSnapshot(file_name=self.subject_name, file_errors=tuple(self.errors), is_valid=self.is_valid)


class BaseMedia(BaseModel):
    """Fields shared by both media variants.

    Attributes:
        file_name: The name of the file, lower-cased on construction.
        content_type: The declared or inferred MIME type.
        raw_bytes: The raw content of the file.
    """

    file_name: str
    content_type: str = ""
    raw_bytes: bytes = b""

    _validation_state: ValidationState = PrivateAttr()

    @field_validator("file_name")
    @classmethod
    def normalize_file_name(cls, value: str) -> str:
        """Lower-cases the file name.

        Args:
            value: The file name as given.

        Returns:
            The lower-cased file name.
        """
        return value.lower()

    def model_post_init(self, __context: Any) -> None:
        """Creates the validation state alongside the entity.

        Args:
            __context: The Pydantic validation context (unused).
        """
        self._validation_state = ValidationState(subject_name=self.file_name)

    @property
    def validation_state(self) -> ValidationState:
        """The validation ledger of this entity."""
        return self._validation_state

    @property
    def base_name(self) -> str:
        """The file name without its final extension."""
        stem, dot, _ = self.file_name.rpartition(".")
        return stem if dot else self.file_name

    @property
    def size_bytes(self) -> int:
        """The size of the raw content in bytes."""
        return len(self.raw_bytes)

    def get_media_state(self) -> MediaSnapshot:
        """Returns the snapshot of this entity's validation state.

        Returns:
            The media snapshot.
        """
        return self._validation_state.snapshot()


class SingleMedia(BaseMedia):
    """A single parsed file."""

    kind: Literal[MediaKind.SINGLE] = MediaKind.SINGLE


class ArchiveMedia(BaseMedia):
    """A parsed archive and the files it contains.

    Attributes:
        children: The member files in archive directory order, without
            directory entries and with their path prefixes discarded.
    """

    kind: Literal[MediaKind.ARCHIVE] = MediaKind.ARCHIVE
    children: list[SingleMedia] = Field(default_factory=list)

    def child_base_names(self) -> list[str]:
        """Returns the base names of all children, in children order.

        Returns:
            The list of base names.
        """
        return [child.base_name for child in self.children]


Media = Annotated[SingleMedia | ArchiveMedia, Field(discriminator="kind")]
