"""Waiting on a submitted deployment while streaming its logs."""

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from pipectl.core.async_utils import InterruptToken, TaskScope
from pipectl.core.exceptions import TimeoutError
from pipectl.core.logging import StructuredLogger
from pipectl.deploy.models import ActionHandle, WaitOutcome, WaitResult, WaitState
from pipectl.deploy.poller import ReadinessPoller
from pipectl.deploy.streamer import ProgressStreamer

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient

logger = StructuredLogger(__name__)

StatusCallback = Callable[[str], None]


class WaitCoordinator:
    """Runs the log streamer and the readiness check side by side.

    Both run as children of one TaskScope and the wait is raced against the
    interrupt token. The scope is cancelled on every return path, including
    success, so neither child outlives ``wait``. Children are not awaited
    after cancellation.
    """

    def __init__(
        self,
        client: "PipelineClient",
        poller: ReadinessPoller,
        streamer: ProgressStreamer,
        on_status: StatusCallback | None = None,
        namespace: str | None = None,
    ):
        self._client = client
        self._poller = poller
        self._streamer = streamer
        self._on_status = on_status or (lambda message: None)
        self._namespace = namespace
        self.state = WaitState.STARTING
        self.scope: TaskScope | None = None

    async def wait(
        self,
        name: str,
        action: ActionHandle,
        timeout: float,
        interrupt: InterruptToken,
    ) -> WaitResult:
        """Wait until the deployment of ``name`` settles.

        Returns:
            WaitResult with the outcome and, for failures, the reason
        """
        if self.state != WaitState.STARTING:
            raise RuntimeError("WaitCoordinator.wait can only run once")

        if interrupt.interrupted:
            self.state = WaitState.INTERRUPTED
            return WaitResult(WaitOutcome.INTERRUPTED, "interrupted by user")

        async with TaskScope(f"wait:{name}") as scope:
            self.scope = scope
            self.state = WaitState.WAITING
            self._on_status(f"Waiting for repository '{name}' to be deployed...")

            scope.spawn(self._streamer.stream(name, action.name), name=f"stream:{name}")
            readiness = scope.spawn(self._wait_until_ready(name, action, timeout), name=f"ready:{name}")
            interrupted = asyncio.ensure_future(interrupt.wait())
            try:
                await asyncio.wait({readiness, interrupted}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                interrupted.cancel()

            if interrupt.interrupted:
                scope.cancel()
                self.state = WaitState.INTERRUPTED
                logger.info("CTRL+C received, starting shutdown sequence")
                return WaitResult(WaitOutcome.INTERRUPTED, "interrupted by user")

            error = readiness.exception()
            if error is not None:
                scope.cancel()
                self.state = WaitState.FAILED
                logger.info(f"exit signal received due to error: {error}")
                outcome = WaitOutcome.TIMED_OUT if isinstance(error, TimeoutError) else WaitOutcome.FAILED
                return WaitResult(outcome, str(error), error=error)

            self.state = WaitState.SUCCEEDED
            return WaitResult(WaitOutcome.SUCCEEDED)

    async def _wait_until_ready(self, name: str, action: ActionHandle, timeout: float) -> None:
        await self._client.wait_for_action_to_finish(name, action.name, timeout, namespace=self._namespace)
        self._on_status("Waiting for containers to be healthy...")
        await self._poller.wait_until_running(name, timeout)
