"""Core utilities and shared components for pipectl."""

# Note: Import context lazily to avoid circular imports
# Use: from pipectl.core.context import PipeCtlContext, pass_context
from pipectl.core.exceptions import PipeCtlError, ConfigError, PipelineError, ValidationError
from pipectl.core.output import OutputFormatter, console

__all__ = [
    "PipeCtlError",
    "ConfigError",
    "PipelineError",
    "ValidationError",
    "OutputFormatter",
    "console",
]
