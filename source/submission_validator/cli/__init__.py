"""This module initializes the CLI application."""

import click
from submission_validator.cli.upload import upload
from submission_validator.cli.validate import validate, validate_object
from submission_validator.providers.logging import LoggingProvider


class Context:
    """A context object to pass global options to subcommands."""

    def __init__(self, output_format: str):
        """Initializes the context.

        Args:
            output_format: The desired output format ('text' or 'json').
        """
        self.output_format = output_format


def create_cli() -> click.Group:
    """Create and configure the main CLI group with all subcommands.

    Returns:
        The main Click command group for the application.
    """

    @click.group()
    @click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
        help="Override the default log level for this command.",
    )
    @click.option(
        "--output",
        type=click.Choice(["text", "json"], case_sensitive=False),
        default="text",
        help="Set the output format.",
    )
    @click.pass_context
    def cli(ctx: click.Context, log_level: str | None, output: str) -> None:
        """Validates submission files against the rules of a template.

        Args:
            ctx: The Click context object.
            log_level: The desired logging level.
            output: The desired output format.
        """
        LoggingProvider().get_logger(level_override=log_level)
        ctx.obj = Context(output_format=output.lower())

    cli.add_command(upload)
    cli.add_command(validate)
    cli.add_command(validate_object)

    return cli
