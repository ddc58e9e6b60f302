"""Pipeline command group."""

import click

from pipectl.core.context import pass_context, PipeCtlContext


@click.group()
@pass_context
def pipeline(ctx: PipeCtlContext) -> None:
    """Pipeline operations - deploy a repository and wait for it.

    \b
    Examples:
        pipectl pipeline deploy -r https://github.com/acme/shop.git
        pipectl pipeline deploy -r https://github.com/acme/shop.git -b main --wait
        pipectl pipeline deploy -p shop -r git@github.com:acme/shop.git -v ENV=dev -t 10m -w
    """
    pass


# Import and register subcommands
from pipectl.commands.pipeline import deploy

pipeline.add_command(deploy.deploy)
