"""Common utilities for pipectl."""

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlparse


def parse_duration(duration_str: str) -> timedelta:
    """Parse duration string to timedelta.

    Supports formats like: 500ms, 30s, 5m, 2h, 1d
    Also supports combinations: 1h30m, 2m30s
    A bare number is read as seconds, so "0" means zero.

    Args:
        duration_str: Duration string

    Returns:
        timedelta object

    Raises:
        ValueError: If format is invalid
    """
    if not duration_str:
        raise ValueError("Duration string cannot be empty")

    value = duration_str.strip().lower()
    if re.fullmatch(r"\d+(\.\d+)?", value):
        return timedelta(seconds=float(value))

    pattern = re.compile(r"(\d+(?:\.\d+)?)(ms|[smhdw])")
    matches = pattern.findall(value)

    if not matches or pattern.sub("", value):
        raise ValueError(f"Invalid duration format: {duration_str}")

    total = timedelta()
    units = {
        "ms": "milliseconds",
        "s": "seconds",
        "m": "minutes",
        "h": "hours",
        "d": "days",
        "w": "weeks",
    }

    for amount, unit in matches:
        total += timedelta(**{units[unit]: float(amount)})

    return total


def format_duration(seconds: float) -> str:
    """Format seconds the way durations are written on the command line.

    Examples: 0.0004 -> "400µs", 0.5 -> "500ms", 2 -> "2s", 300 -> "5m0s",
    5400 -> "1h30m0s"
    """
    if seconds <= 0:
        return "0s"
    if seconds < 0.001:
        return f"{max(1, round(seconds * 1_000_000))}µs"
    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    secs_str = f"{secs:g}"

    if hours:
        return f"{int(hours)}h{int(minutes)}m{secs_str}s"
    if minutes:
        return f"{int(minutes)}m{secs_str}s"
    return f"{secs_str}s"


def translate_url_to_name(repository: str) -> str:
    """Derive a pipeline name from a repository URL.

    Handles https and scp-like ssh URLs:
    ``git@github.com:org/My_Repo.git`` -> ``my-repo``

    Args:
        repository: Repository URL

    Returns:
        Lowercase name safe for use as a resource name
    """
    repository = repository.strip().rstrip("/")
    if "://" in repository:
        path = urlparse(repository).path
    elif ":" in repository:
        path = repository.split(":", 1)[1]
    else:
        path = repository

    name = path.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]

    name = re.sub(r"[^a-z0-9-]+", "-", name.lower()).strip("-")
    return name


def get_config_dir() -> Path:
    """Get the pipectl config directory."""
    return Path(os.environ.get("PIPECTL_CONFIG_DIR", "~/.pipectl")).expanduser()


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
