"""Image registry error handling."""

from pipectl.registry.errors import (
    ErrorClassification,
    ErrorKind,
    classify_error,
    classify_kind,
    get_error_message,
    get_registry_and_repo,
    is_transient_error,
)

__all__ = [
    "ErrorClassification",
    "ErrorKind",
    "classify_error",
    "classify_kind",
    "get_error_message",
    "get_registry_and_repo",
    "is_transient_error",
]
