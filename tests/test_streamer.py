"""Tests for log streaming."""

import asyncio
import json
import logging

import pytest

from pipectl.core.exceptions import PipelineError
from pipectl.deploy.streamer import ProgressStreamer, format_log_entry


class TestFormatLogEntry:
    """Tests for format_log_entry."""

    def test_plain_line(self):
        assert format_log_entry("Cloning repository...") == "Cloning repository..."

    def test_json_entry(self):
        line = json.dumps({"level": "info", "message": "Deploying api", "timestamp": 1})
        assert format_log_entry(line) == "Deploying api"

    def test_json_without_message(self):
        line = json.dumps({"level": "info"})
        assert format_log_entry(line) == line

    def test_json_scalar(self):
        assert format_log_entry("42") == "42"


class TestProgressStreamer:
    """Tests for ProgressStreamer."""

    @pytest.mark.asyncio
    async def test_forwards_lines_in_order(self, make_client):
        client = make_client(log_lines=["one", json.dumps({"message": "two"}), "three"])
        received: list[str] = []

        forwarded = await ProgressStreamer(client, received.append).stream("shop", "action-1")

        assert forwarded == 3
        assert received == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_error_is_only_a_warning(self, make_client, caplog):
        caplog.set_level(logging.WARNING, logger="pipectl")
        client = make_client(log_lines=["one"], log_error=PipelineError("stream closed"))
        received: list[str] = []

        forwarded = await ProgressStreamer(client, received.append).stream("shop", "action-1")

        assert forwarded == 1
        assert received == ["one"]
        assert "there was an error streaming pipeline logs: stream closed" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, make_client):
        client = make_client(log_lines=["one"], hold_logs=True)
        received: list[str] = []

        task = asyncio.create_task(ProgressStreamer(client, received.append).stream("shop", "action-1"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.stream_cancelled is True
        assert received == ["one"]
