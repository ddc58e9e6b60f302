"""Custom exceptions for pipectl."""

from typing import Any


class PipeCtlError(Exception):
    """Base exception for all pipectl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(PipeCtlError):
    """Configuration-related errors."""

    pass


class ValidationError(PipeCtlError):
    """Input validation errors."""

    pass


class AuthenticationError(PipeCtlError):
    """Authentication/authorization errors."""

    pass


class PipelineError(PipeCtlError):
    """Pipeline service API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class DeployInterrupted(PipeCtlError):
    """The user interrupted the operation before it finished."""

    def __init__(self, message: str = "interrupt signal received", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class TimeoutError(PipeCtlError):
    """Operation timeout errors."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.timeout_seconds = timeout_seconds


class ReadinessTimeout(TimeoutError):
    """Resources did not settle before the wait timeout."""

    pass


class ReadinessError(PipeCtlError):
    """A deployed resource reported the error status."""

    def __init__(
        self,
        message: str,
        name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.name = name


class UserError(PipeCtlError):
    """Error with a remediation hint meant to be shown to the user."""

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.hint = hint
