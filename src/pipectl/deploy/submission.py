"""Submission of a deployment request to the pipeline service."""

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pipectl.core.async_utils import InterruptToken, race_interrupt
from pipectl.core.exceptions import DeployInterrupted, ValidationError
from pipectl.core.logging import StructuredLogger
from pipectl.deploy.models import ActionHandle, DeploymentRequest, Variable

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient

logger = StructuredLogger(__name__)


def parse_variable(raw: str) -> Variable:
    """Split a ``KEY=VALUE`` string on the first ``=``.

    Raises:
        ValidationError: If the string has no ``=``
    """
    parts = raw.split("=", 1)
    if len(parts) != 2:
        raise ValidationError(f"invalid variable value '{raw}': must follow KEY=VALUE format")
    return Variable(name=parts[0], value=parts[1])


def parse_variables(raw_variables: Iterable[str]) -> list[Variable]:
    """Parse variables in order, stopping at the first invalid entry."""
    return [parse_variable(raw) for raw in raw_variables]


class SubmissionTask:
    """Submits a deployment as a unit of work the user can abort."""

    def __init__(self, client: "PipelineClient"):
        self._client = client
        # Calls left running after an interrupt, kept referenced until done
        self._abandoned: set[asyncio.Task[Any]] = set()

    @property
    def abandoned(self) -> set[asyncio.Task[Any]]:
        return set(self._abandoned)

    async def submit(self, request: DeploymentRequest, interrupt: InterruptToken) -> ActionHandle:
        """Submit ``request`` and return the action created for it.

        Variables are validated before anything is sent. If ``interrupt``
        fires before the service answers, the call is abandoned and
        DeployInterrupted is raised. Service errors propagate unchanged.

        Raises:
            ValidationError: If a variable is not KEY=VALUE
            DeployInterrupted: If interrupted before the call resolved
        """
        variables = parse_variables(request.variables)

        if interrupt.interrupted:
            raise DeployInterrupted()

        logger.info(
            f"deploy pipeline {request.name} defined on file='{request.file or ''}' "
            f"repository={request.repository} branch={request.branch or ''} "
            f"on namespace={request.namespace or ''}"
        )

        call = self._client.deploy(
            request.name,
            request.repository,
            branch=request.branch,
            filename=request.file,
            variables=variables,
            namespace=request.namespace,
        )
        try:
            action = await race_interrupt(call, interrupt, abandoned=self._abandoned)
        except DeployInterrupted:
            logger.info("CTRL+C received, starting shutdown sequence")
            raise
        except Exception as e:
            logger.info(f"exit signal received due to error: {e}")
            raise

        logger.debug("Deployment submitted", pipeline=request.name, action=action.name)
        return action
