"""Tests for progress indicator utilities."""

from io import StringIO

import pytest
from rich.console import Console

from pipectl.core.progress import ProgressManager


class TestProgressManager:
    """Tests for ProgressManager class."""

    def test_init_with_console(self):
        """Test initialization with custom console."""
        console = Console(file=StringIO())
        manager = ProgressManager(console=console)
        assert manager.console is console

    def test_status_context(self):
        """Test status spinner context."""
        console = Console(file=StringIO(), force_terminal=True)
        manager = ProgressManager(console=console)

        with manager.status("Deploying...") as status:
            assert status is not None
            assert manager._status is status

        assert manager._status is None

    def test_status_disabled(self):
        """Test that a disabled manager renders nothing."""
        buffer = StringIO()
        manager = ProgressManager(console=Console(file=buffer, force_terminal=True), enabled=False)

        with manager.status("Deploying...") as status:
            assert status is None
            manager.update("still going")

        assert buffer.getvalue() == ""

    def test_update(self):
        """Test changing the spinner message."""
        console = Console(file=StringIO(), force_terminal=True)
        manager = ProgressManager(console=console)

        with manager.status("Deploying...") as status:
            manager.update("Waiting for containers to be healthy...")
            assert status.status == "Waiting for containers to be healthy..."

    def test_update_without_status(self):
        """Test update is a no-op when nothing is running."""
        manager = ProgressManager(console=Console(file=StringIO()))
        manager.update("ignored")

    def test_status_stops_on_error(self):
        """Test the spinner is stopped when the block raises."""
        console = Console(file=StringIO(), force_terminal=True)
        manager = ProgressManager(console=console)

        with pytest.raises(ValueError):
            with manager.status("Deploying..."):
                raise ValueError("boom")

        assert manager._status is None
