"""End-to-end pipeline deployment: submit, then optionally wait."""

from typing import TYPE_CHECKING

from pipectl.config import DeployConfig
from pipectl.core.async_utils import InterruptToken
from pipectl.core.exceptions import DeployInterrupted, ValidationError
from pipectl.core.logging import StructuredLogger
from pipectl.core.progress import ProgressManager
from pipectl.deploy.coordinator import WaitCoordinator
from pipectl.deploy.models import (
    DeploymentRequest,
    DeployOutcome,
    DeployResult,
    WaitOutcome,
)
from pipectl.deploy.poller import ReadinessPoller
from pipectl.deploy.streamer import LogSink, ProgressStreamer
from pipectl.deploy.submission import SubmissionTask, parse_variables

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient

logger = StructuredLogger(__name__)

_WAIT_TO_DEPLOY = {
    WaitOutcome.SUCCEEDED: DeployOutcome.SUCCESS,
    WaitOutcome.FAILED: DeployOutcome.FAILED,
    WaitOutcome.INTERRUPTED: DeployOutcome.INTERRUPTED,
    WaitOutcome.TIMED_OUT: DeployOutcome.TIMED_OUT,
}


class PipelineDeployer:
    """Deploys a pipeline and waits for it when asked to.

    The client is injected and shared read-only by every component this
    deployer builds.
    """

    def __init__(
        self,
        client: "PipelineClient",
        config: DeployConfig | None = None,
        progress: ProgressManager | None = None,
        log_sink: LogSink | None = None,
    ):
        self._client = client
        self._config = config or DeployConfig()
        self._progress = progress or ProgressManager(enabled=False)
        self._log_sink = log_sink or (
            lambda line: self._progress.console.print(line, markup=False, highlight=False)
        )

    async def deploy(
        self,
        request: DeploymentRequest,
        interrupt: InterruptToken,
        wait: bool | None = None,
        timeout: float | None = None,
        skip_if_exists: bool = False,
    ) -> DeployResult:
        """Run one deployment.

        Validation and submission errors are raised unchanged. Interrupts,
        readiness failures and timeouts are reported in the result.

        Args:
            request: What to deploy
            interrupt: External cancellation token
            wait: Wait for resources to be running; defaults to config
            timeout: Seconds to wait, zero waits forever; defaults to config
            skip_if_exists: Do nothing if the pipeline is already deployed

        Returns:
            DeployResult describing the outcome
        """
        if not request.name or not request.repository:
            raise ValidationError("pipeline name and repository are required")
        parse_variables(request.variables)

        wait = self._config.wait if wait is None else wait
        timeout = self._config.timeout if timeout is None else timeout
        log = logger.bind(pipeline=request.name)

        if skip_if_exists and await self._client.pipeline_exists(request.name, namespace=request.namespace):
            log.info("Pipeline already deployed, skipping")
            return DeployResult(
                request.name,
                DeployOutcome.SKIPPED,
                f"Skipping repository '{request.name}' because it's already deployed",
            )

        with self._progress.status(f"Deploying repository '{request.name}'..."):
            try:
                action = await SubmissionTask(self._client).submit(request, interrupt)
            except DeployInterrupted as e:
                return DeployResult(request.name, DeployOutcome.INTERRUPTED, str(e), error=e)

        if not wait:
            return DeployResult(
                request.name,
                DeployOutcome.SCHEDULED,
                f"Repository '{request.name}' scheduled for deployment",
                action=action,
            )

        coordinator = WaitCoordinator(
            self._client,
            ReadinessPoller(
                self._client,
                interval=self._config.poll_interval,
                transition_statuses=self._config.transition_statuses,
                error_status=self._config.error_status,
                namespace=request.namespace,
            ),
            ProgressStreamer(self._client, self._log_sink, namespace=request.namespace),
            on_status=self._progress.update,
            namespace=request.namespace,
        )
        with self._progress.status(f"Waiting for repository '{request.name}' to be deployed..."):
            result = await coordinator.wait(request.name, action, timeout, interrupt)

        log.debug("Wait finished", outcome=result.outcome.value)
        reason = result.reason
        if result.succeeded:
            reason = f"Repository '{request.name}' successfully deployed"
        return DeployResult(
            request.name,
            _WAIT_TO_DEPLOY[result.outcome],
            reason,
            action=action,
            error=result.error,
        )
