"""This module defines the rule catalog consumed by the validation service.

A catalog maps classification keys (template-specific: a Darwin Core class, a
spreadsheet template section, a plain file name...) to ordered validator
lists and to the sheet or file name expected for each key. The engine never
looks inside a catalog; the validation service only reads it through the
helpers below.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from submission_validator.models.media import ArchiveMedia, SingleMedia
from submission_validator.models.worksheets import Worksheet, WorksheetCollection

K = TypeVar("K")

MediaValidator = Callable[[SingleMedia | ArchiveMedia], None]
ContentValidator = Callable[[Worksheet], None]
CollectionValidator = Callable[[WorksheetCollection], None]


@dataclass(frozen=True)
class RuleCatalog(Generic[K]):
    """The validators and expected names of one template class.

    Attributes:
        submission_validators: Validators run against the top-level media
            (the whole archive, or the single uploaded file).
        media_validators: Media validators per classification key, run against
            the file classified under that key.
        content_validators: Content validators per classification key, run
            against the worksheet extracted for that key.
        collection_validators: Content validators run against all extracted
            worksheets together, for cross-sheet rules.
        sheet_names: The sheet (or archive member base) name expected for each
            classification key.
        default_key: The key used for a single-sheet source whose name does
            not match any entry of `sheet_names`.
    """

    submission_validators: Sequence[MediaValidator] = ()
    media_validators: Mapping[K, Sequence[MediaValidator]] = field(default_factory=dict)
    content_validators: Mapping[K, Sequence[ContentValidator]] = field(default_factory=dict)
    collection_validators: Sequence[CollectionValidator] = ()
    sheet_names: Mapping[K, str] = field(default_factory=dict)
    default_key: K | None = None

    def key_for_name(self, name: str) -> K | None:
        """Finds the classification key whose expected name matches a name.

        Args:
            name: A sheet name or file base name.

        Returns:
            The first matching key, ignoring case, or None.
        """
        wanted = name.strip().lower()
        for key, sheet_name in self.sheet_names.items():
            if sheet_name.strip().lower() == wanted:
                return key
        return None

    def media_validators_for(self, key: K | None) -> list[MediaValidator]:
        """Returns the media validators of a key.

        Args:
            key: The classification key, or None.

        Returns:
            The ordered validator list; empty for unknown keys.
        """
        if key is None:
            return []
        return list(self.media_validators.get(key, ()))

    def content_validators_for(self, key: K | None) -> list[ContentValidator]:
        """Returns the content validators of a key.

        Args:
            key: The classification key, or None.

        Returns:
            The ordered validator list; empty for unknown keys.
        """
        if key is None:
            return []
        return list(self.content_validators.get(key, ()))
