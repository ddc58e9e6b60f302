"""Tests for output formatting."""

import json
from io import StringIO

import pytest
import yaml
from rich.console import Console

from pipectl.core.output import OutputFormat, OutputFormatter


def make_formatter(format: OutputFormat = OutputFormat.TABLE, quiet: bool = False):
    buffer = StringIO()
    console = Console(file=buffer, width=120, no_color=True)
    return OutputFormatter(format=format, color=False, quiet=quiet, console=console), buffer


class TestOutputFormatter:
    """Tests for OutputFormatter."""

    def test_print_json(self):
        formatter, buffer = make_formatter(OutputFormat.JSON)
        formatter.print_data({"name": "shop", "outcome": "success"})
        assert json.loads(buffer.getvalue()) == {"name": "shop", "outcome": "success"}

    def test_print_yaml(self):
        formatter, buffer = make_formatter(OutputFormat.YAML)
        formatter.print_data({"name": "shop"})
        assert yaml.safe_load(buffer.getvalue()) == {"name": "shop"}

    def test_print_raw(self):
        formatter, buffer = make_formatter(OutputFormat.RAW)
        formatter.print_data({"name": "shop", "outcome": "success"})
        assert buffer.getvalue().splitlines() == ["name: shop", "outcome: success"]

    def test_print_table_dict(self):
        formatter, buffer = make_formatter()
        formatter.print_data({"name": "shop"}, title="Result")
        output = buffer.getvalue()
        assert "Result" in output
        assert "shop" in output

    def test_print_table_list(self):
        formatter, buffer = make_formatter()
        formatter.print_data([{"id": "api", "status": "running"}])
        output = buffer.getvalue()
        assert "status" in output
        assert "running" in output

    def test_print_table_empty(self):
        formatter, buffer = make_formatter()
        formatter.print_data([])
        assert "No data to display" in buffer.getvalue()

    def test_print_line_keeps_markup_literal(self):
        formatter, buffer = make_formatter()
        formatter.print_line("[bold]step 1[/bold]")
        assert buffer.getvalue() == "[bold]step 1[/bold]\n"

    def test_quiet_suppresses_messages(self):
        formatter, buffer = make_formatter(quiet=True)
        formatter.print("hello")
        formatter.print_line("log")
        formatter.print_success("done")
        formatter.print_warning("careful")
        assert buffer.getvalue() == ""

    def test_print_success(self):
        formatter, buffer = make_formatter()
        formatter.print_success("Repository 'shop' successfully deployed")
        assert "Repository 'shop' successfully deployed" in buffer.getvalue()

    def test_print_error_goes_to_stderr(self, capsys):
        formatter, buffer = make_formatter(quiet=True)
        formatter.print_error("deploy failed", hint="Please try again later.")
        captured = capsys.readouterr()
        assert "deploy failed" in captured.err
        assert "Please try again later." in captured.err
        assert buffer.getvalue() == ""
