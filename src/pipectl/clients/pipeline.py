"""Pipeline service API client using httpx."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx

from pipectl.config import PipelineServiceConfig
from pipectl.core.async_utils import run_with_timeout
from pipectl.core.exceptions import AuthenticationError, ConfigError, PipelineError
from pipectl.core.logging import StructuredLogger
from pipectl.core.utils import format_duration
from pipectl.deploy.models import ActionHandle, ResourceStatusSnapshot, Variable

logger = StructuredLogger(__name__)

ACTION_RUNNING_STATUSES = frozenset({"queued", "progressing"})
ACTION_ERROR_STATUS = "error"


class PipelineClient:
    """Async client for the remote pipeline service REST API.

    One client may be shared by concurrently running tasks; it holds no
    per-request state.
    """

    def __init__(
        self,
        config: PipelineServiceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        action_poll_interval: float = 1.0,
    ):
        self._config = config
        self._transport = transport
        self._action_poll_interval = action_poll_interval
        self._client: httpx.AsyncClient | None = None

    @property
    def namespace(self) -> str | None:
        return self._config.get_namespace()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            url = self._config.get_url()
            token = self._config.get_token()

            if not url:
                raise ConfigError("Pipeline service URL not configured")
            if not token:
                raise AuthenticationError("Pipeline service token not configured")

            headers = {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }

            self._client = httpx.AsyncClient(
                base_url=url.rstrip("/"),
                headers=headers,
                timeout=self._config.timeout,
                verify=not self._config.insecure,
                transport=self._transport,
            )

            logger.debug("Created pipeline client", url=url)

        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make an API request."""
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()

            if response.content:
                return response.json()
            return None

        except httpx.HTTPStatusError as e:
            raise self._status_error(e.response, e)

        except httpx.RequestError as e:
            raise PipelineError(f"Request failed: {e}")

    @staticmethod
    def _status_error(response: httpx.Response, error: Exception) -> PipelineError:
        try:
            error_data = response.json()
            message = error_data.get("message", str(error))
        except Exception:
            message = response.text or str(error)
        return PipelineError(message, status_code=response.status_code)

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request."""
        return await self._request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        """Make a POST request."""
        return await self._request("POST", path, **kwargs)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PipelineClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _pipelines_path(self, namespace: str | None) -> str:
        ns = namespace or self.namespace
        if not ns:
            raise ConfigError("Namespace not configured")
        return f"/api/v1/namespaces/{ns}/pipelines"

    # Pipeline operations
    async def deploy(
        self,
        name: str,
        repository: str,
        branch: str | None = None,
        filename: str | None = None,
        variables: list[Variable] | None = None,
        namespace: str | None = None,
    ) -> ActionHandle:
        """Submit a pipeline deployment and return its action."""
        payload: dict[str, Any] = {
            "name": name,
            "repository": repository,
            "variables": [{"name": v.name, "value": v.value} for v in variables or []],
        }
        if branch:
            payload["branch"] = branch
        if filename:
            payload["filename"] = filename

        response = await self.post(self._pipelines_path(namespace), json=payload)
        action = (response or {}).get("action") or {}
        if not action.get("name"):
            raise PipelineError(f"Pipeline service returned no action for '{name}'")
        return ActionHandle(name=action["name"], status=action.get("status", ""))

    async def pipeline_exists(self, name: str, namespace: str | None = None) -> bool:
        """Check whether a pipeline with this name is already deployed."""
        try:
            await self.get(f"{self._pipelines_path(namespace)}/{name}")
        except PipelineError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    async def get_action(self, name: str, action_name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get the current state of a pipeline action."""
        return await self.get(f"{self._pipelines_path(namespace)}/{name}/actions/{action_name}") or {}

    async def wait_for_action_to_finish(
        self,
        name: str,
        action_name: str,
        timeout: float,
        namespace: str | None = None,
    ) -> None:
        """Block until the action leaves the queued/progressing states.

        Raises:
            PipelineError: If the action finishes with the error status
            TimeoutError: If the action is still running after ``timeout``
        """

        async def _wait() -> None:
            while True:
                action = await self.get_action(name, action_name, namespace)
                status = action.get("status", "")
                logger.debug("Action status", pipeline=name, action=action_name, status=status)
                if status == ACTION_ERROR_STATUS:
                    raise PipelineError(f"pipeline '{name}' failed")
                if status not in ACTION_RUNNING_STATUSES:
                    return
                await asyncio.sleep(self._action_poll_interval)

        await run_with_timeout(
            _wait(),
            timeout,
            f"'{name}' deploy didn't finish after {format_duration(timeout)}",
        )

    async def get_resources_status(self, name: str, namespace: str | None = None) -> ResourceStatusSnapshot:
        """Get the status of every resource deployed by a pipeline."""
        response = await self.get(f"{self._pipelines_path(namespace)}/{name}/resources") or {}
        statuses = {
            item["id"]: item.get("status", "")
            for item in response.get("items", [])
            if item.get("id")
        }
        return ResourceStatusSnapshot(statuses)

    async def stream_logs(
        self,
        name: str,
        action_name: str,
        namespace: str | None = None,
    ) -> AsyncIterator[str]:
        """Yield log lines of a pipeline action until the server closes the stream."""
        path = f"{self._pipelines_path(namespace)}/{name}/logs"
        try:
            async with self.client.stream(
                "GET",
                path,
                params={"action": action_name, "follow": "true"},
                timeout=httpx.Timeout(self._config.timeout, read=None),
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise self._status_error(response, PipelineError(f"HTTP {response.status_code}"))
                async for line in response.aiter_lines():
                    if line:
                        yield line
        except httpx.RequestError as e:
            raise PipelineError(f"Request failed: {e}")
