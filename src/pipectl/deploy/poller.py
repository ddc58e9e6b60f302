"""Polling of deployed resources until they settle."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from pipectl.config import DEFAULT_TRANSITION_STATUSES
from pipectl.core.async_utils import run_with_timeout
from pipectl.core.exceptions import ReadinessError, ReadinessTimeout
from pipectl.core.logging import get_logger
from pipectl.core.utils import format_duration

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient

logger = get_logger(__name__)

ERROR_STATUS = "error"
TRANSITION_STATUSES = frozenset(DEFAULT_TRANSITION_STATUSES)


def check_all_resources_running(
    name: str,
    resource_status: Mapping[str, str],
    transition_statuses: Iterable[str] = TRANSITION_STATUSES,
    error_status: str = ERROR_STATUS,
) -> bool:
    """Evaluate one status snapshot.

    Returns True when no resource is in a transitional status. Statuses that
    are neither transitional nor the error status count as settled.

    Raises:
        ReadinessError: If any resource has the error status
    """
    transitional = frozenset(transition_statuses)
    all_running = True
    failed = False
    for resource_id, status in resource_status.items():
        logger.info(f"Resource {resource_id} is {status}")
        if status == error_status:
            failed = True
        elif status in transitional:
            all_running = False

    if failed:
        raise ReadinessError(f"repository '{name}' deployed with errors", name=name)
    return all_running


class ReadinessPoller:
    """Polls resource status of a deployment on a fixed interval."""

    def __init__(
        self,
        client: "PipelineClient",
        interval: float = 1.0,
        transition_statuses: Iterable[str] = TRANSITION_STATUSES,
        error_status: str = ERROR_STATUS,
        namespace: str | None = None,
    ):
        self._client = client
        self._interval = interval
        self._transition_statuses = frozenset(transition_statuses)
        self._error_status = error_status
        self._namespace = namespace

    async def wait_until_running(self, name: str, timeout: float) -> None:
        """Poll until every resource of ``name`` is running.

        A ``timeout`` of zero or less waits forever. Poll errors are not
        retried here.

        Raises:
            ReadinessTimeout: If resources are still transitioning at timeout
            ReadinessError: If a resource reports the error status
        """
        await run_with_timeout(
            self._poll(name),
            timeout,
            f"'{name}' deploy didn't finish after {format_duration(timeout)}",
            error_cls=ReadinessTimeout,
        )

    async def _poll(self, name: str) -> None:
        while True:
            await asyncio.sleep(self._interval)
            resource_status = await self._client.get_resources_status(name, namespace=self._namespace)
            if check_all_resources_running(
                name,
                resource_status,
                self._transition_statuses,
                self._error_status,
            ):
                return
