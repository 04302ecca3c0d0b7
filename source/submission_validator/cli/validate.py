"""This module defines the validation commands of the Submission Validator CLI."""

import asyncio
import json
import uuid
from pathlib import Path
from typing import Any

import click
from submission_validator.cli.progress import make_spinner, should_show_progress
from submission_validator.exceptions.validation import ValidationSchemaError
from submission_validator.models.catalog import RuleCatalog
from submission_validator.models.inputs import ObjectStoreResult, UploadDescriptor
from submission_validator.models.reports import ValidationReport
from submission_validator.providers.config import ConfigProvider
from submission_validator.providers.gcs import GcsProvider
from submission_validator.providers.logging import LoggingProvider
from submission_validator.services.media_parser import MediaParser
from submission_validator.services.schema_parser import ValidationSchemaParser
from submission_validator.services.validation import ValidationService

EXIT_INVALID = 1
EXIT_UNPARSEABLE = 2

schema_option = click.option(
    "--schema",
    "schema_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a JSON validation schema. Without it only parsing is checked.",
)
no_progress_option = click.option("--no-progress", is_flag=True, help="Disable the progress spinner.")


def load_catalog(schema_path: Path | None) -> RuleCatalog[Any]:
    """Builds the rule catalog for a command.

    Args:
        schema_path: The path of the JSON schema, if any.

    Returns:
        The catalog described by the schema, or an empty catalog.
    """
    if schema_path is None:
        return RuleCatalog()
    try:
        return ValidationSchemaParser(schema_path.read_text(encoding="utf-8")).to_catalog()
    except ValidationSchemaError as e:
        click.secho(f"Invalid validation schema {schema_path}: {e}", fg="red", err=True)
        raise click.Abort() from e


def render_report(report: ValidationReport, output_format: str) -> None:
    """Prints a validation report.

    Args:
        report: The report to print.
        output_format: Either 'text' or 'json'.
    """
    if output_format == "json":
        click.echo(json.dumps(report.to_json_dict(), indent=2))
        return

    status = click.style("VALID", fg="green") if report.is_valid else click.style("INVALID", fg="red")
    click.echo(f"Submission is {status}")
    for media_state in report.media_state:
        click.echo(f"  {media_state.file_name}: {'ok' if media_state.is_valid else 'invalid'}")
        for error in media_state.file_errors:
            click.echo(f"    - {error}")
    for content_state in report.content_state:
        click.echo(f"  {content_state.file_name}: {'ok' if content_state.is_valid else 'invalid'}")
        for error in content_state.file_errors:
            click.echo(f"    - {error}")
        for header_error in content_state.header_errors:
            click.echo(f"    - [{header_error.code}] {header_error.message}: {header_error.col}")
        for row_error in content_state.row_errors:
            click.echo(f"    - [{row_error.code}] row {row_error.row}: {row_error.message}")


def run_validation(
    ctx: click.Context,
    raw_input: UploadDescriptor | ObjectStoreResult,
    catalog: RuleCatalog[Any],
    show_progress: bool,
) -> None:
    """Parses and validates a submission, then prints the report.

    Args:
        ctx: The click context.
        raw_input: The submission as an upload or an object-store result.
        catalog: The rules to validate against.
        show_progress: Whether to show a spinner.
    """
    with make_spinner("Parsing submission...", show_progress):
        media = asyncio.run(MediaParser().parse_unknown_media(raw_input))
    if media is None:
        click.secho("The submission could not be parsed.", fg="red", err=True)
        ctx.exit(EXIT_UNPARSEABLE)

    with make_spinner("Validating submission...", show_progress):
        report = ValidationService().validate(media, catalog)

    render_report(report, ctx.obj.output_format)
    if not report.is_valid:
        ctx.exit(EXIT_INVALID)


@click.command("validate")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@schema_option
@no_progress_option
@click.pass_context
def validate(ctx: click.Context, file_path: Path, schema_path: Path | None, no_progress: bool) -> None:
    """Validates a local submission file.

    Args:
        ctx: The click context.
        file_path: The file to validate.
        schema_path: The path of the JSON validation schema.
        no_progress: If True, disables the spinner.
    """
    catalog = load_catalog(schema_path)
    upload = UploadDescriptor(original_name=file_path.name, buffer=file_path.read_bytes())
    with LoggingProvider().set_correlation_id(str(uuid.uuid4())):
        run_validation(ctx, upload, catalog, should_show_progress(no_progress))


@click.command("validate-object")
@click.argument("key")
@click.option("--bucket", default=None, help="The bucket holding the submission. Defaults to the configured bucket.")
@schema_option
@no_progress_option
@click.pass_context
def validate_object(
    ctx: click.Context,
    key: str,
    bucket: str | None,
    schema_path: Path | None,
    no_progress: bool,
) -> None:
    """Validates a submission stored in Google Cloud Storage.

    Args:
        ctx: The click context.
        key: The object key of the submission.
        bucket: The bucket name.
        schema_path: The path of the JSON validation schema.
        no_progress: If True, disables the spinner.
    """
    catalog = load_catalog(schema_path)
    bucket_name = bucket or ConfigProvider.get_config().GCP_GCS_BUCKET_SUBMISSIONS
    result = GcsProvider().get_object(bucket_name, key)
    if result is None:
        click.secho(f"Object '{key}' not found in bucket '{bucket_name}'.", fg="red", err=True)
        ctx.exit(EXIT_UNPARSEABLE)

    with LoggingProvider().set_correlation_id(key):
        run_validation(ctx, result, catalog, should_show_progress(no_progress))
