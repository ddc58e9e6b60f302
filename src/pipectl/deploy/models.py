"""Deployment data models."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class WaitState(str, Enum):
    """States of the wait coordinator."""

    STARTING = "starting"
    WAITING = "waiting"
    INTERRUPTED = "interrupted"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


class WaitOutcome(str, Enum):
    """Terminal result of waiting on a deployment."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    TIMED_OUT = "timed_out"


class DeployOutcome(str, Enum):
    """Result of a deploy command as reported to the caller."""

    SUCCESS = "success"
    SCHEDULED = "scheduled"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_error(self) -> bool:
        return self in (DeployOutcome.INTERRUPTED, DeployOutcome.FAILED, DeployOutcome.TIMED_OUT)


@dataclass(frozen=True)
class Variable:
    """Pipeline variable passed to the remote service."""

    name: str
    value: str


@dataclass(frozen=True)
class DeploymentRequest:
    """Everything needed to submit one pipeline deployment."""

    name: str
    repository: str
    branch: str | None = None
    file: str | None = None
    variables: tuple[str, ...] = ()
    namespace: str | None = None

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable one
        object.__setattr__(self, "variables", tuple(self.variables))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "repository": self.repository,
            "branch": self.branch,
            "file": self.file,
            "variables": list(self.variables),
            "namespace": self.namespace,
        }


@dataclass(frozen=True)
class ActionHandle:
    """Remote unit of work created by a deployment submission."""

    name: str
    status: str = ""


class ResourceStatusSnapshot(Mapping[str, str]):
    """Read-only view of resource id -> status at one point in time."""

    def __init__(self, statuses: Mapping[str, str] | None = None):
        self._statuses = MappingProxyType(dict(statuses or {}))

    def __getitem__(self, key: str) -> str:
        return self._statuses[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._statuses)

    def __len__(self) -> int:
        return len(self._statuses)

    def __repr__(self) -> str:
        return f"ResourceStatusSnapshot({dict(self._statuses)!r})"


@dataclass(frozen=True)
class WaitResult:
    """Outcome of the wait coordinator, produced once per wait."""

    outcome: WaitOutcome
    reason: str | None = None
    error: BaseException | None = field(default=None, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.outcome == WaitOutcome.SUCCEEDED


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a full deploy run."""

    name: str
    outcome: DeployOutcome
    reason: str | None = None
    action: ActionHandle | None = None
    error: BaseException | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "action": self.action.name if self.action else None,
        }
