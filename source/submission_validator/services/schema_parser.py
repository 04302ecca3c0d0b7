"""This module turns declarative validation schemas into rule catalogs.

Template classes are usually described as JSON rather than code. The
`ValidationSchemaParser` reads such a schema, looks every rule name up in the
`ValidationRulesRegistry` and builds the validator functions, so a schema can
be handed to the validation service as a `RuleCatalog`.
"""

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from submission_validator.exceptions.validation import ValidationSchemaError
from submission_validator.models.catalog import (
    CollectionValidator,
    ContentValidator,
    MediaValidator,
    RuleCatalog,
)
from submission_validator.models.enums import RuleScope
from submission_validator.models.schema import ColumnSchema, FileSchema, RuleEntry, ValidationSchema
from submission_validator.providers.logging import Logger, LoggingProvider
from submission_validator.validators.content import (
    get_code_values_validator,
    get_duplicate_headers_validator,
    get_parent_child_key_validator,
    get_required_fields_validator,
    get_required_headers_validator,
    get_valid_format_validator,
    get_valid_headers_validator,
    get_valid_range_validator,
)
from submission_validator.validators.media import (
    get_file_not_empty_validator,
    get_max_file_size_validator,
    get_mimetype_validator,
    get_required_files_validator,
)


@dataclass(frozen=True)
class RuleContext:
    """Where in a schema a rule was declared.

    Attributes:
        file_name: The file the rule belongs to, if any.
        column_name: The column the rule belongs to, if any.
        column_names: All columns declared for the file.
    """

    file_name: str | None = None
    column_name: str | None = None
    column_names: list[str] = field(default_factory=list)


RuleBuilder = Callable[[Mapping[str, Any], RuleContext], Callable[[Any], None]]


@dataclass(frozen=True)
class ValidationRule:
    """A rule known to the registry.

    Attributes:
        scope: The level of the submission the rule applies to.
        build: Builds the validator from the rule's configuration.
    """

    scope: RuleScope
    build: RuleBuilder


def _code_values(config: Mapping[str, Any]) -> list[str]:
    """Reads the allowed codes of a code rule.

    Args:
        config: The rule configuration.

    Returns:
        The codes, accepting both ``{"name": code}`` entries and bare codes.
    """
    values = config.get("allowed_code_values", [])
    return [str(value["name"]) if isinstance(value, Mapping) else str(value) for value in values]


class ValidationRulesRegistry:
    """Maps the rule names used in schemas to validator factories."""

    rules: dict[str, ValidationRule] = {
        "mimetype_validator": ValidationRule(
            RuleScope.MEDIA,
            lambda config, _: get_mimetype_validator(config.get("reg_exps", [])),
        ),
        "submission_required_files_validator": ValidationRule(
            RuleScope.MEDIA,
            lambda config, _: get_required_files_validator(config.get("required_files", [])),
        ),
        "file_not_empty_validator": ValidationRule(
            RuleScope.MEDIA,
            lambda config, _: get_file_not_empty_validator(),
        ),
        "file_max_size_validator": ValidationRule(
            RuleScope.MEDIA,
            lambda config, _: get_max_file_size_validator(int(config["max_bytes"])),
        ),
        "file_duplicate_columns_validator": ValidationRule(
            RuleScope.FILE,
            lambda config, _: get_duplicate_headers_validator(),
        ),
        "file_required_columns_validator": ValidationRule(
            RuleScope.FILE,
            lambda config, _: get_required_headers_validator(config.get("required_columns", [])),
        ),
        "file_valid_columns_validator": ValidationRule(
            RuleScope.FILE,
            lambda config, context: get_valid_headers_validator(config.get("valid_columns") or context.column_names),
        ),
        "column_required_validator": ValidationRule(
            RuleScope.COLUMN,
            lambda config, context: get_required_fields_validator([str(context.column_name)]),
        ),
        "column_code_validator": ValidationRule(
            RuleScope.COLUMN,
            lambda config, context: get_code_values_validator(str(context.column_name), _code_values(config)),
        ),
        "column_format_validator": ValidationRule(
            RuleScope.COLUMN,
            lambda config, context: get_valid_format_validator(
                str(context.column_name), config.get("reg_exp", ""), config.get("expected_format", "")
            ),
        ),
        "column_range_validator": ValidationRule(
            RuleScope.COLUMN,
            lambda config, context: get_valid_range_validator(
                str(context.column_name), config.get("min_value"), config.get("max_value")
            ),
        ),
        "parent_child_key_validator": ValidationRule(
            RuleScope.COLLECTION,
            lambda config, _: get_parent_child_key_validator(
                config["parent_file"], config["child_file"], config.get("columns", [])
            ),
        ),
    }

    @classmethod
    def find_matching_rule(cls, name: str) -> ValidationRule | None:
        """Finds a rule by the name used in schemas.

        Args:
            name: The rule name.

        Returns:
            The rule, or None if the name is unknown.
        """
        return cls.rules.get(name)


class ValidationSchemaParser:
    """Reads a validation schema and builds its validators.

    Attributes:
        logger: An instance of the application's logger.
        schema: The parsed schema.
    """

    logger: Logger
    schema: ValidationSchema

    def __init__(self, schema: str | Mapping[str, Any]) -> None:
        """Initializes the parser.

        Args:
            schema: The schema as a JSON string or as an already decoded
                mapping.

        Raises:
            ValidationSchemaError: If the schema is not valid JSON or does not
                have the expected structure.
        """
        self.logger = LoggingProvider().get_logger()
        if isinstance(schema, str):
            schema = self.parse_json(schema)
        try:
            self.schema = ValidationSchema.model_validate(schema)
        except ValidationError as e:
            raise ValidationSchemaError(f"provided schema is not a valid validation schema: {e}") from e

    @staticmethod
    def parse_json(json_string: str) -> dict[str, Any]:
        """Decodes a JSON schema document.

        Args:
            json_string: The JSON text.

        Returns:
            The decoded document.

        Raises:
            ValidationSchemaError: If the text is not valid JSON or not a JSON
                object.
        """
        try:
            document = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ValidationSchemaError("provided json was not valid JSON") from e
        if not isinstance(document, dict):
            raise ValidationSchemaError("provided json was not a JSON object")
        return document

    def get_file_schema(self, file_name: str) -> FileSchema | None:
        """Finds the schema of a file, ignoring case.

        Args:
            file_name: The file or sheet name.

        Returns:
            The first matching file schema, or None.
        """
        wanted = file_name.strip().lower()
        return next((file for file in self.schema.files if file.name.strip().lower() == wanted), None)

    def get_column_schema(self, file_name: str, column_name: str) -> ColumnSchema | None:
        """Finds the schema of a column, ignoring case.

        Args:
            file_name: The file or sheet name.
            column_name: The column name.

        Returns:
            The first matching column schema, or None.
        """
        file = self.get_file_schema(file_name)
        if file is None:
            return None
        wanted = column_name.strip().lower()
        return next((column for column in file.columns if column.name.strip().lower() == wanted), None)

    def get_file_names(self) -> list[str]:
        """Returns the names of all files declared in the schema."""
        return [file.name for file in self.schema.files]

    def get_column_names(self, file_name: str) -> list[str]:
        """Returns the names of the columns declared for a file.

        Args:
            file_name: The file or sheet name.

        Returns:
            The column names in declaration order; empty for unknown files.
        """
        file = self.get_file_schema(file_name)
        return [column.name for column in file.columns] if file else []

    def get_submission_validation_schemas(self) -> list[RuleEntry]:
        """Returns the raw submission-level rule entries."""
        return self.schema.validations

    def get_media_validation_schemas(self, file_name: str) -> list[RuleEntry]:
        """Returns the raw media rule entries of a file."""
        file = self.get_file_schema(file_name)
        return file.media_validations if file else []

    def get_file_validation_schemas(self, file_name: str) -> list[RuleEntry]:
        """Returns the raw worksheet rule entries of a file."""
        file = self.get_file_schema(file_name)
        return file.validations if file else []

    def get_column_validation_schemas(self, file_name: str, column_name: str) -> list[RuleEntry]:
        """Returns the raw rule entries of a column."""
        column = self.get_column_schema(file_name, column_name)
        return column.validations if column else []

    def get_content_validation_schemas(self) -> list[RuleEntry]:
        """Returns the raw cross-sheet rule entries."""
        return self.schema.content_validations

    def get_submission_validations(self) -> list[MediaValidator]:
        """Builds the validators run against the whole submission.

        Returns:
            The validators in declaration order.
        """
        return self._build_validators(self.get_submission_validation_schemas(), RuleScope.MEDIA, RuleContext())

    def get_media_validations(self, file_name: str) -> list[MediaValidator]:
        """Builds the media validators of a file.

        Args:
            file_name: The file or sheet name.

        Returns:
            The validators in declaration order.
        """
        return self._build_validators(
            self.get_media_validation_schemas(file_name), RuleScope.MEDIA, self._file_context(file_name)
        )

    def get_file_validations(self, file_name: str) -> list[ContentValidator]:
        """Builds the worksheet-level validators of a file.

        Args:
            file_name: The file or sheet name.

        Returns:
            The validators in declaration order.
        """
        return self._build_validators(
            self.get_file_validation_schemas(file_name), RuleScope.FILE, self._file_context(file_name)
        )

    def get_column_validations(self, file_name: str, column_name: str) -> list[ContentValidator]:
        """Builds the validators of one column.

        Args:
            file_name: The file or sheet name.
            column_name: The column name.

        Returns:
            The validators in declaration order.
        """
        column = self.get_column_schema(file_name, column_name)
        if column is None:
            return []
        context = RuleContext(
            file_name=file_name, column_name=column.name, column_names=self.get_column_names(file_name)
        )
        return self._build_validators(column.validations, RuleScope.COLUMN, context)

    def get_all_column_validations(self, file_name: str) -> list[ContentValidator]:
        """Builds the validators of every column of a file.

        Args:
            file_name: The file or sheet name.

        Returns:
            The validators, column by column in declaration order.
        """
        validators: list[ContentValidator] = []
        for column_name in self.get_column_names(file_name):
            validators.extend(self.get_column_validations(file_name, column_name))
        return validators

    def get_content_validations(self) -> list[CollectionValidator]:
        """Builds the cross-sheet validators.

        Returns:
            The validators in declaration order.
        """
        return self._build_validators(self.get_content_validation_schemas(), RuleScope.COLLECTION, RuleContext())

    def to_catalog(self) -> RuleCatalog[str]:
        """Builds the rule catalog described by the schema.

        File names are used as classification keys. When the schema declares
        exactly one file, that file is also the default key, so a single CSV
        upload is validated against it whatever its name.

        Returns:
            The rule catalog.
        """
        file_names = self.get_file_names()
        return RuleCatalog(
            submission_validators=self.get_submission_validations(),
            media_validators={name: self.get_media_validations(name) for name in file_names},
            content_validators={
                name: [*self.get_file_validations(name), *self.get_all_column_validations(name)]
                for name in file_names
            },
            collection_validators=self.get_content_validations(),
            sheet_names={name: name for name in file_names},
            default_key=file_names[0] if len(file_names) == 1 else None,
        )

    def _file_context(self, file_name: str) -> RuleContext:
        """Builds the rule context of a file.

        Args:
            file_name: The file or sheet name.

        Returns:
            The context.
        """
        return RuleContext(file_name=file_name, column_names=self.get_column_names(file_name))

    def _build_validators(self, entries: list[RuleEntry], scope: RuleScope, context: RuleContext) -> list[Any]:
        """Builds the validators of a list of rule entries.

        Unknown rules, and rules declared at the wrong level, are logged and
        skipped.

        Args:
            entries: The rule entries.
            scope: The level the entries were declared at.
            context: Where the entries were declared.

        Returns:
            The validators in declaration order.

        Raises:
            ValidationSchemaError: If a known rule has an invalid
                configuration.
        """
        validators: list[Any] = []
        for entry in entries:
            for rule_name, config in entry.items():
                rule = ValidationRulesRegistry.find_matching_rule(rule_name)
                if rule is None:
                    self.logger.warning(f"Skipping unknown validation rule '{rule_name}'.")
                    continue
                if rule.scope != scope:
                    self.logger.warning(
                        f"Skipping validation rule '{rule_name}': it applies to {rule.scope} rules, not {scope} rules."
                    )
                    continue
                try:
                    validators.append(rule.build(config or {}, context))
                except (ArithmeticError, KeyError, TypeError, ValueError, re.error) as e:
                    raise ValidationSchemaError(f"invalid configuration for validation rule '{rule_name}': {e}") from e
        return validators
