"""API clients for external services."""

from pipectl.clients.pipeline import PipelineClient

__all__ = ["PipelineClient"]
