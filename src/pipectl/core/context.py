"""Click context object for sharing state across commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click
from rich.markup import escape

from pipectl.config import PipeCtlConfig, ProfileConfig, get_default_config
from pipectl.core.logging import LogLevel, StructuredLogger, setup_logging
from pipectl.core.output import OutputFormat, OutputFormatter
from pipectl.core.progress import ProgressManager

if TYPE_CHECKING:
    from pipectl.clients.pipeline import PipelineClient


class PipeCtlContext:
    """Shared context object for pipectl commands.

    This object is passed through Click's context mechanism and provides
    access to configuration, clients, and utilities.
    """

    def __init__(
        self,
        config: PipeCtlConfig | None = None,
        profile: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: int = 0,
        quiet: bool = False,
        dry_run: bool = False,
        color: bool = True,
    ):
        self._config = config or get_default_config()
        self._profile_name = profile or "default"

        # Output settings (CLI overrides config)
        self._output_format = output_format or self._config.global_settings.output_format
        self._verbose = verbose
        self._quiet = quiet
        self._dry_run = dry_run or self._config.global_settings.dry_run
        self._color = color and self._config.global_settings.color != "never"

        # Determine log level from verbosity
        if verbose >= 3:
            log_level = LogLevel.DEBUG
        elif verbose >= 1:
            log_level = LogLevel.INFO
        elif quiet:
            log_level = LogLevel.ERROR
        else:
            log_level = self._config.global_settings.verbosity

        setup_logging(log_level, rich_output=self._color)
        self._logger = StructuredLogger("context")

        self._output = OutputFormatter(
            format=self._output_format,
            color=self._color,
            quiet=quiet,
        )
        self._progress = ProgressManager(
            console=self._output.console,
            enabled=not quiet and self._output_format == OutputFormat.TABLE,
        )

    @property
    def config(self) -> PipeCtlConfig:
        """Get the loaded configuration."""
        return self._config

    @property
    def profile(self) -> ProfileConfig:
        """Get the current profile configuration."""
        return self._config.get_profile(self._profile_name)

    @property
    def profile_name(self) -> str:
        """Get the current profile name."""
        return self._profile_name

    @property
    def output(self) -> OutputFormatter:
        """Get the output formatter."""
        return self._output

    @property
    def progress(self) -> ProgressManager:
        """Get the spinner manager."""
        return self._progress

    @property
    def output_format(self) -> OutputFormat:
        """Get the output format."""
        return self._output_format

    @property
    def dry_run(self) -> bool:
        """Check if dry-run mode is enabled."""
        return self._dry_run

    @property
    def verbose(self) -> int:
        """Get verbosity level."""
        return self._verbose

    @property
    def quiet(self) -> bool:
        """Check if quiet mode is enabled."""
        return self._quiet

    @property
    def logger(self) -> StructuredLogger:
        """Get the context logger."""
        return self._logger

    def pipeline_client(self) -> "PipelineClient":
        """Create a pipeline service client for the current profile.

        The client owns an async HTTP connection pool, so each command opens
        and closes its own with ``async with``.
        """
        from pipectl.clients.pipeline import PipelineClient

        return PipelineClient(self.profile.pipeline)

    def log_dry_run(self, action: str, details: dict[str, Any] | None = None) -> None:
        """Log a dry-run action."""
        if self._dry_run:
            msg = f"[dry-run] {action}"
            if details:
                detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
                msg = f"{msg} ({detail_str})"
            self._output.print(f"[dim]{escape(msg)}[/dim]")


# Click decorator for passing context
pass_context = click.make_pass_decorator(PipeCtlContext, ensure=True)
