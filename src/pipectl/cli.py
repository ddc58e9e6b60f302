"""Main CLI entry point for pipectl."""

import sys
from typing import Any

import click
from rich.console import Console

from pipectl import __version__
from pipectl.config import load_config
from pipectl.core.context import PipeCtlContext
from pipectl.core.output import OutputFormat
from pipectl.core.exceptions import PipeCtlError, ConfigError


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}


class OutputFormatType(click.ParamType):
    """Custom Click parameter type for output format."""

    name = "format"

    def convert(
        self,
        value: Any,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        try:
            return OutputFormat(value.lower())
        except ValueError:
            self.fail(
                f"Invalid format '{value}'. Choose from: table, json, yaml, raw",
                param,
                ctx,
            )


OUTPUT_FORMAT = OutputFormatType()


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"pipectl version {__version__}")
    ctx.exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-p",
    "--profile",
    metavar="NAME",
    envvar="PIPECTL_PROFILE",
    help="Configuration profile to use",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=OUTPUT_FORMAT,
    metavar="FORMAT",
    help="Output format: table, json, yaml, raw",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vvv for debug)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would happen without making changes",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    metavar="FILE",
    envvar="PIPECTL_CONFIG",
    help="Path to config file",
)
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    profile: str | None,
    output_format: OutputFormat | None,
    verbose: int,
    quiet: bool,
    dry_run: bool,
    no_color: bool,
    config_file: str | None,
) -> None:
    """PipeCtl - deploy pipelines and wait for them to be running.

    Submits a repository to the pipeline service, then streams the
    deployment logs while waiting for every resource to be running.

    \b
    Examples:
        pipectl pipeline deploy -r https://github.com/acme/shop.git --wait
        pipectl -o json pipeline deploy -r https://github.com/acme/shop.git
        pipectl config

    \b
    Configuration:
        ~/.pipectl/config.yaml   User configuration
        ./pipectl.yaml           Project configuration
        PIPECTL_*                Environment variables
    """
    try:
        config = load_config(config_file)
        config.get_profile(profile)

        ctx.obj = PipeCtlContext(
            config=config,
            profile=profile,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            dry_run=dry_run,
            color=not no_color,
        )

        if dry_run and not quiet:
            ctx.obj.output.print_warning("Dry-run mode enabled - no changes will be made")

    except ConfigError as e:
        console = Console(stderr=True)
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def register_commands() -> None:
    """Register all command groups."""
    from pipectl.commands.pipeline import pipeline

    cli.add_command(pipeline)


register_commands()


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    pipectl_ctx: PipeCtlContext = ctx.obj
    profile = pipectl_ctx.profile
    config_data = {
        "profile": pipectl_ctx.profile_name,
        "output_format": pipectl_ctx.output_format.value,
        "dry_run": pipectl_ctx.dry_run,
        "verbose": pipectl_ctx.verbose,
        "pipeline": {
            "url": profile.pipeline.get_url(),
            "namespace": profile.pipeline.get_namespace(),
            "has_token": bool(profile.pipeline.get_token()),
        },
        "deploy": {
            "timeout": profile.deploy.timeout,
            "wait": profile.deploy.wait,
            "poll_interval": profile.deploy.poll_interval,
        },
    }
    pipectl_ctx.output.print_data(config_data, title="Current Configuration")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except PipeCtlError as e:
        console = Console(stderr=True)
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
