"""Classification of errors reported by the image build and push backend.

The backend surfaces errors as plain strings from several transports, so
classification is done by substring matching against ordered rule tables.
Matching is case sensitive. Every function here is pure.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pipectl.core.exceptions import UserError

DEFAULT_REGISTRY = "docker.io"


class ErrorKind(str, Enum):
    """Categories of backend errors."""

    AUTH_DENIED = "auth_denied"
    UNAUTHENTICATED = "unauthenticated"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorClassification:
    """A classified error with the text to show the user."""

    kind: ErrorKind
    message: str
    hint: str | None = None

    def to_user_error(self) -> UserError:
        return UserError(self.message, hint=self.hint)


def _contains_any(*substrings: str) -> Callable[[str], bool]:
    return lambda text: any(s in text for s in substrings)


def _contains_all(*substrings: str) -> Callable[[str], bool]:
    return lambda text: all(s in text for s in substrings)


is_logged_in_without_push_permission = _contains_any("insufficient_scope: authorization failed")

is_not_logged_into_registry = _contains_any(
    "failed to authorize: failed to fetch anonymous token",
    "UNAUTHORIZED: authentication required",
)

is_build_service_unavailable = _contains_any(
    "connect: connection refused",
    "500 Internal Server Error",
    "context canceled",
)

# First match wins
CLASSIFICATION_RULES: list[tuple[Callable[[str], bool], ErrorKind]] = [
    (is_logged_in_without_push_permission, ErrorKind.AUTH_DENIED),
    (is_not_logged_into_registry, ErrorKind.UNAUTHENTICATED),
    (is_build_service_unavailable, ErrorKind.SERVICE_UNAVAILABLE),
]

TRANSIENT_RULES: list[Callable[[str], bool]] = [
    _contains_all("failed commit on ref", "500 Internal Server Error"),
    _contains_all("transport is closing"),
    _contains_all("transport: error while dialing: dial tcp: i/o timeout"),
    _contains_all("error reading from server: EOF"),
    _contains_all("error while dialing: dial tcp: lookup buildkit", "no such host"),
    _contains_all("failed commit on ref", "400 Bad Request"),
    _contains_all("failed to do request", "http: server closed idle connection"),
    _contains_all("failed to do request", "tls: use of closed connection"),
    _contains_all("Canceled", "the client connection is closing"),
    _contains_all("Canceled", "context canceled"),
]


def _error_text(error: BaseException | str) -> str:
    return error if isinstance(error, str) else str(error)


def get_registry_and_repo(tag: str) -> tuple[str, str]:
    """Split an image reference into registry host and repository.

    The first path segment is the registry when it looks like a host (has a
    dot or a port, or is ``localhost``); otherwise the registry is Docker Hub.

    >>> get_registry_and_repo("registry.example.com/team/app:1.0")
    ('registry.example.com', 'team/app:1.0')
    >>> get_registry_and_repo("myimg:latest")
    ('docker.io', 'myimg:latest')
    """
    parts = tag.split("/", 1)
    if len(parts) == 2:
        host = parts[0]
        if "." in host or ":" in host or host == "localhost":
            return host, parts[1]
    return DEFAULT_REGISTRY, tag


def classify_kind(error: BaseException | str) -> ErrorKind:
    """Return the category of an error."""
    text = _error_text(error)
    for predicate, kind in CLASSIFICATION_RULES:
        if predicate(text):
            return kind
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException | str, tag: str | None = None) -> ErrorClassification:
    """Classify an error raised while building or pushing an image.

    When the image reference ``tag`` is unknown the message and hint do not
    name an image or registry.
    """
    text = _error_text(error)
    kind = classify_kind(text)

    if kind == ErrorKind.SERVICE_UNAVAILABLE:
        return ErrorClassification(
            kind,
            "buildkit service is not available at the moment",
            "Please try again later.",
        )

    if tag is None:
        if kind == ErrorKind.AUTH_DENIED:
            return ErrorClassification(
                kind,
                "error building image: You are not authorized to push the image",
                "Please log in into the registry with a user with push permissions "
                "or use another image.",
            )
        if kind == ErrorKind.UNAUTHENTICATED:
            return ErrorClassification(
                kind,
                "error building image: You are not authorized to push the image",
                "Log in into the registry and verify that you have permissions to push the image.",
            )
        return ErrorClassification(kind, f"error building image: {text}")

    registry, repo = get_registry_and_repo(tag)
    if kind == ErrorKind.AUTH_DENIED:
        return ErrorClassification(
            kind,
            f"error building image '{tag}': You are not authorized to push image '{repo}'",
            f"Please log in into the registry '{registry}' with a user with push permissions "
            f"to '{repo}' or use another image.",
        )
    if kind == ErrorKind.UNAUTHENTICATED:
        return ErrorClassification(
            kind,
            f"error building image '{tag}': You are not authorized to push image '{repo}'",
            f"Log in into the registry '{registry}' and verify that you have permissions "
            f"to push the image '{repo}'.",
        )
    return ErrorClassification(kind, f"error building image '{tag}': {text}")


def get_error_message(error: BaseException | str | None, tag: str | None = None) -> UserError | None:
    """Wrap an error as a UserError with a remediation hint."""
    if error is None:
        return None
    return classify_error(error, tag).to_user_error()


def is_transient_error(error: BaseException | str | None) -> bool:
    """Return True if the error is a network condition worth retrying.

    "context canceled" paired with "Canceled" is treated as transient.
    """
    if error is None:
        return False
    text = _error_text(error)
    if not text:
        return False
    return any(rule(text) for rule in TRANSIENT_RULES)
