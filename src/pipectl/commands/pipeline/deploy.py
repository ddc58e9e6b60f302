"""Pipeline deploy command."""

from datetime import timedelta
from typing import Any

import click

from pipectl.core.async_utils import run_sync
from pipectl.core.context import pass_context, PipeCtlContext
from pipectl.core.exceptions import PipeCtlError, ValidationError
from pipectl.core.output import OutputFormat
from pipectl.core.signals import interrupt_on_signals
from pipectl.core.utils import parse_duration, translate_url_to_name
from pipectl.deploy import DeploymentRequest, DeployOutcome, DeployResult, PipelineDeployer
from pipectl.registry import ErrorKind, classify_error, is_transient_error

INTERRUPTED_EXIT_CODE = 130

TRANSIENT_HINT = "This looks like a temporary network problem. Running the command again may succeed."


class DurationType(click.ParamType):
    """Click parameter type for durations such as 90s, 5m or 1h30m."""

    name = "duration"

    def convert(
        self,
        value: Any,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> timedelta:
        if isinstance(value, timedelta):
            return value
        try:
            return parse_duration(str(value))
        except ValueError:
            self.fail(
                f"Invalid duration '{value}'. Use a number with a unit, e.g. 30s, 5m, 1h",
                param,
                ctx,
            )


DURATION = DurationType()


@click.command("deploy")
@click.option("-p", "--name", default=None, help="Name of the pipeline (defaults to the repository name)")
@click.option("-n", "--namespace", default=None, help="Namespace where the pipeline is deployed (defaults to the profile namespace)")
@click.option("-r", "--repository", default=None, help="The repository to deploy")
@click.option("-b", "--branch", default=None, help="The branch to deploy")
@click.option("-w", "--wait", is_flag=True, help="Wait until the pipeline finishes")
@click.option("--skip-if-exists", is_flag=True, help="Skip the deployment if the pipeline already exists in the namespace")
@click.option(
    "-t",
    "--timeout",
    type=DURATION,
    default=None,
    help="How long to wait for completion, e.g. 90s, 5m, 1h (default 5m, 0 means never)",
)
@click.option("-v", "--var", "variables", multiple=True, metavar="KEY=VALUE", help="Set a pipeline variable (can be set more than once)")
@click.option("-f", "--file", default=None, help="Relative path within the repository to the manifest file")
@click.option("--filename", default=None, hidden=True, help="Deprecated, use --file")
@pass_context
def deploy(
    ctx: PipeCtlContext,
    name: str | None,
    namespace: str | None,
    repository: str | None,
    branch: str | None,
    wait: bool,
    skip_if_exists: bool,
    timeout: timedelta | None,
    variables: tuple[str, ...],
    file: str | None,
    filename: str | None,
) -> None:
    """Deploy a pipeline from a git repository.

    \b
    Examples:
        pipectl pipeline deploy -r https://github.com/acme/shop.git
        pipectl pipeline deploy -r https://github.com/acme/shop.git -b main -w -t 10m
        pipectl pipeline deploy -p shop -r https://github.com/acme/shop.git -v ENV=dev -v DEBUG=true
    """
    if filename:
        ctx.output.print_warning(
            "the 'filename' flag is deprecated and will be removed in a future version. "
            "Please consider using 'file' flag"
        )
        if not file:
            file = filename
        else:
            ctx.output.print_warning(
                "flags 'filename' and 'file' can not be used at the same time. 'file' flag will take precedence"
            )

    if not repository:
        raise click.UsageError("Missing option '-r' / '--repository'.")

    name = name or translate_url_to_name(repository)
    deploy_config = ctx.profile.deploy
    request = DeploymentRequest(
        name=name,
        repository=repository,
        branch=branch,
        file=file,
        variables=variables,
        namespace=namespace or ctx.profile.pipeline.get_namespace(),
    )
    wait = wait or deploy_config.wait
    timeout_seconds = timeout.total_seconds() if timeout is not None else deploy_config.timeout

    if ctx.dry_run:
        ctx.log_dry_run("deploy pipeline", {**request.to_dict(), "wait": wait, "timeout": timeout_seconds})
        return

    try:
        result = run_sync(_run_deploy(ctx, request, wait, timeout_seconds, skip_if_exists))
    except ValidationError as e:
        ctx.output.print_error(str(e))
        raise click.exceptions.Exit(1)
    except PipeCtlError as e:
        _print_remote_error(ctx, e)
        raise click.exceptions.Exit(1)

    _report(ctx, result)


async def _run_deploy(
    ctx: PipeCtlContext,
    request: DeploymentRequest,
    wait: bool,
    timeout: float,
    skip_if_exists: bool,
) -> DeployResult:
    async with ctx.pipeline_client() as client:
        deployer = PipelineDeployer(
            client,
            ctx.profile.deploy,
            progress=ctx.progress,
            log_sink=ctx.output.print_line,
        )
        with interrupt_on_signals() as token:
            return await deployer.deploy(
                request,
                token,
                wait=wait,
                timeout=timeout,
                skip_if_exists=skip_if_exists,
            )


def _print_remote_error(ctx: PipeCtlContext, error: BaseException | str) -> None:
    """Show a remote error with a remediation hint when one is known."""
    classification = classify_error(error)
    if classification.kind != ErrorKind.UNKNOWN:
        ctx.output.print_error(classification.message, hint=classification.hint)
        return

    hint = TRANSIENT_HINT if is_transient_error(error) else None
    ctx.output.print_error(str(error), hint=hint)


def _report(ctx: PipeCtlContext, result: DeployResult) -> None:
    if ctx.output_format != OutputFormat.TABLE:
        ctx.output.print_data(result.to_dict())

    if result.outcome == DeployOutcome.INTERRUPTED:
        ctx.output.print_error(result.reason or "interrupted")
        raise click.exceptions.Exit(INTERRUPTED_EXIT_CODE)

    if result.outcome.is_error:
        _print_remote_error(ctx, result.error or result.reason or result.outcome.value)
        raise click.exceptions.Exit(1)

    if ctx.output_format == OutputFormat.TABLE:
        ctx.output.print_success(result.reason or result.outcome.value)
