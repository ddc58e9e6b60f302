"""Pipeline deployment orchestration module."""

from pipectl.deploy.coordinator import WaitCoordinator
from pipectl.deploy.models import (
    ActionHandle,
    DeploymentRequest,
    DeployOutcome,
    DeployResult,
    ResourceStatusSnapshot,
    Variable,
    WaitOutcome,
    WaitResult,
    WaitState,
)
from pipectl.deploy.orchestrator import PipelineDeployer
from pipectl.deploy.poller import ReadinessPoller, check_all_resources_running
from pipectl.deploy.streamer import ProgressStreamer
from pipectl.deploy.submission import SubmissionTask, parse_variables

__all__ = [
    "ActionHandle",
    "DeploymentRequest",
    "DeployOutcome",
    "DeployResult",
    "PipelineDeployer",
    "ProgressStreamer",
    "ReadinessPoller",
    "ResourceStatusSnapshot",
    "SubmissionTask",
    "Variable",
    "WaitCoordinator",
    "WaitOutcome",
    "WaitResult",
    "WaitState",
    "check_all_resources_running",
    "parse_variables",
]
