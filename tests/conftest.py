"""Pytest fixtures for pipectl tests."""

import asyncio
import os
from typing import Any, Generator

import pytest
from click.testing import CliRunner

from pipectl.config import (
    DeployConfig,
    PipeCtlConfig,
    PipelineServiceConfig,
    ProfileConfig,
)
from pipectl.core.context import PipeCtlContext
from pipectl.core.output import OutputFormat
from pipectl.deploy.models import ActionHandle, ResourceStatusSnapshot


class FakePipelineClient:
    """In-memory stand-in for PipelineClient.

    ``resources`` is a list of snapshots returned by successive polls; the
    last one repeats. Setting ``hold_logs`` keeps the log stream open until
    it is cancelled.
    """

    def __init__(
        self,
        resources: list[dict[str, str]] | None = None,
        log_lines: list[str] | None = None,
        log_error: Exception | None = None,
        hold_logs: bool = False,
        action_error: Exception | None = None,
        deploy_error: Exception | None = None,
        exists: bool = False,
    ):
        self.resources = resources if resources is not None else [{"api": "running"}]
        self.log_lines = log_lines or []
        self.log_error = log_error
        self.hold_logs = hold_logs
        self.action_error = action_error
        self.deploy_error = deploy_error
        self.exists = exists
        self.deploy_release: asyncio.Event | None = None
        self.deploy_calls: list[dict[str, Any]] = []
        self.poll_count = 0
        self.stream_cancelled = False

    async def deploy(self, name: str, repository: str, **kwargs: Any) -> ActionHandle:
        self.deploy_calls.append({"name": name, "repository": repository, **kwargs})
        if self.deploy_release is not None:
            await self.deploy_release.wait()
        if self.deploy_error is not None:
            raise self.deploy_error
        return ActionHandle(name="action-1", status="queued")

    async def pipeline_exists(self, name: str, namespace: str | None = None) -> bool:
        return self.exists

    async def wait_for_action_to_finish(
        self, name: str, action_name: str, timeout: float, namespace: str | None = None
    ) -> None:
        if self.action_error is not None:
            raise self.action_error

    async def get_resources_status(self, name: str, namespace: str | None = None) -> ResourceStatusSnapshot:
        index = min(self.poll_count, len(self.resources) - 1)
        self.poll_count += 1
        return ResourceStatusSnapshot(self.resources[index])

    async def stream_logs(self, name: str, action_name: str, namespace: str | None = None):
        try:
            for line in self.log_lines:
                yield line
            if self.log_error is not None:
                raise self.log_error
            if self.hold_logs:
                await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.stream_cancelled = True
            raise


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def fake_client() -> FakePipelineClient:
    """Create an in-memory pipeline client."""
    return FakePipelineClient()


@pytest.fixture
def make_client() -> type[FakePipelineClient]:
    """Factory for in-memory pipeline clients with custom behaviour."""
    return FakePipelineClient


@pytest.fixture
def mock_config() -> PipeCtlConfig:
    """Create a mock configuration."""
    return PipeCtlConfig(
        profiles={
            "default": ProfileConfig(
                pipeline=PipelineServiceConfig(
                    url="https://pipelines.test.com",
                    token="test-token",
                    namespace="dev",
                ),
                deploy=DeployConfig(poll_interval=0.01),
            )
        }
    )


@pytest.fixture
def mock_context(mock_config: PipeCtlConfig) -> PipeCtlContext:
    """Create a mock PipeCtl context."""
    return PipeCtlContext(
        config=mock_config,
        profile="default",
        output_format=OutputFormat.TABLE,
        verbose=0,
        quiet=False,
        dry_run=False,
        color=False,
    )


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before each test."""
    env_vars = [
        "PIPECTL_URL",
        "PIPECTL_TOKEN",
        "PIPECTL_NAMESPACE",
        "PIPECTL_PROFILE",
        "PIPECTL_CONFIG",
        "OKTETO_URL",
        "OKTETO_TOKEN",
        "OKTETO_NAMESPACE",
    ]

    original = {k: os.environ.get(k) for k in env_vars}

    # Remove vars for clean test
    for k in env_vars:
        os.environ.pop(k, None)

    yield

    # Restore original values
    for k, v in original.items():
        if v is not None:
            os.environ[k] = v
        else:
            os.environ.pop(k, None)


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file."""
    config_content = """
version: "1"
global:
  output_format: table
profiles:
  default:
    pipeline:
      url: https://pipelines.test.com
      token: test-token
      namespace: dev
    deploy:
      timeout: 60
      poll_interval: 0.01
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_content)
    return str(config_file)
