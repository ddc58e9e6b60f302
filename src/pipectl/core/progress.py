"""Progress indicator utilities for long-running operations."""

from contextlib import contextmanager
from typing import Generator

from rich.console import Console
from rich.status import Status


class ProgressManager:
    """Manages the spinner shown while waiting on remote operations.

    Only one status is live at a time; ``update`` changes the message of the
    current one and is a no-op when none is running.
    """

    def __init__(self, console: Console | None = None, enabled: bool = True):
        """Initialize progress manager.

        Args:
            console: Rich console to use for output
            enabled: When False, no spinner is rendered
        """
        self._console = console or Console()
        self._enabled = enabled
        self._status: Status | None = None

    @property
    def console(self) -> Console:
        return self._console

    @contextmanager
    def status(
        self,
        message: str,
        spinner: str = "dots",
    ) -> Generator[Status | None, None, None]:
        """Create a status spinner context.

        The spinner is stopped on every exit path.

        Args:
            message: Status message to display
            spinner: Spinner style to use

        Yields:
            Rich Status object, or None when disabled
        """
        if not self._enabled:
            yield None
            return

        status = self._console.status(message, spinner=spinner)
        status.start()
        self._status = status
        try:
            yield status
        finally:
            status.stop()
            self._status = None

    def update(self, message: str) -> None:
        """Change the message of the running spinner."""
        if self._status is not None:
            self._status.update(message)
