"""Forwarding of pipeline logs while a deployment runs."""

import asyncio
import json
from collections.abc import Callable
from typing import TYPE_CHECKING

from pipectl.core.logging import get_logger

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient

logger = get_logger(__name__)

LogSink = Callable[[str], None]


def format_log_entry(line: str) -> str:
    """Unwrap JSON log entries to their message; pass other lines through."""
    try:
        entry = json.loads(line)
    except ValueError:
        return line
    if isinstance(entry, dict) and isinstance(entry.get("message"), str):
        return entry["message"]
    return line


class ProgressStreamer:
    """Streams the logs of one pipeline action to a sink.

    Log delivery is best effort: errors end the stream with a warning and are
    never raised to the caller. Cancellation is propagated.
    """

    def __init__(
        self,
        client: "PipelineClient",
        sink: LogSink,
        namespace: str | None = None,
    ):
        self._client = client
        self._sink = sink
        self._namespace = namespace

    async def stream(self, name: str, action_name: str) -> int:
        """Forward log entries until the stream closes.

        Returns:
            Number of entries forwarded
        """
        forwarded = 0
        try:
            async for line in self._client.stream_logs(name, action_name, namespace=self._namespace):
                self._sink(format_log_entry(line))
                forwarded += 1
        except asyncio.CancelledError:
            logger.debug(f"log stream of '{name}' cancelled")
            raise
        except Exception as e:
            logger.warning(f"there was an error streaming pipeline logs: {e}")
        return forwarded
