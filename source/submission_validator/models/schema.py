"""This module defines the models of a declarative validation schema.

A schema describes, for one template class, which rules apply to the
submission as a whole, to each file or sheet, and to each column. Every rule
entry is a single-key mapping from a rule name to its configuration, e.g.
``{"mimetype_validator": {"reg_exps": ["text/csv"]}}``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RuleEntry = dict[str, dict[str, Any]]


class ColumnSchema(BaseModel):
    """A column of a file or sheet."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    validations: list[RuleEntry] = Field(default_factory=list)


class FileSchema(BaseModel):
    """A file of an archive, or a sheet of a workbook.

    Attributes:
        name: The sheet name or file base name, which is also the
            classification key of the file.
        media_validations: Rules checking the file as a file.
        validations: Rules checking the file's worksheet as a whole.
        columns: The known columns and their rules.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    media_validations: list[RuleEntry] = Field(default_factory=list)
    validations: list[RuleEntry] = Field(default_factory=list)
    columns: list[ColumnSchema] = Field(default_factory=list)


class ValidationSchema(BaseModel):
    """The validation schema of one template class.

    Attributes:
        validations: Rules checking the submission as a whole.
        content_validations: Rules spanning several worksheets.
        files: The files or sheets the submission may contain.
    """

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    description: str | None = None
    validations: list[RuleEntry] = Field(default_factory=list)
    content_validations: list[RuleEntry] = Field(default_factory=list)
    files: list[FileSchema] = Field(default_factory=list)
