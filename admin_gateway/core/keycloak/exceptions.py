"""Keycloak-specific exceptions for error handling.

Every gateway operation surfaces failures as ``OperationFailed`` or one of its
narrower kinds, so callers that only care about "did it work" catch one class
while callers that want to retry can look for ``Transient``.
"""
from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

if TYPE_CHECKING:
    from .mass import RevocationReport

F = TypeVar("F", bound=Callable)


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class KeycloakAPIError(KeycloakError):
    """HTTP error from Keycloak Admin API.

    Attributes:
        status_code: HTTP status code (0 when the request never got a response)
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class OperationFailed(KeycloakError):
    """An administrative operation could not be completed."""

    kind = "OperationFailed"


class NotFound(OperationFailed):
    """Realm, role, group or user does not exist."""

    kind = "NotFound"


class Conflict(OperationFailed):
    """Server rejected the write because the resource already exists."""

    kind = "Conflict"


class Unauthorized(OperationFailed):
    """Gateway credentials were rejected or lack the needed admin role."""

    kind = "Unauthorized"


class Transient(OperationFailed):
    """Network failure or temporarily unavailable server; safe to retry."""

    kind = "Transient"


class MassRevocationFailed(OperationFailed):
    """A mass revocation stopped part way through.

    Attributes:
        report: Items revoked before the failure, plus the first error
    """

    kind = "MassRevocationFailed"

    def __init__(self, message: str, report: "RevocationReport"):
        self.report = report
        super().__init__(message)


class NotImplementedOperation(KeycloakError):
    """Operation exists on the API surface but has no implementation."""

    kind = "NotImplemented"


_STATUS_KINDS = {
    401: Unauthorized,
    403: Unauthorized,
    404: NotFound,
    409: Conflict,
    502: Transient,
    503: Transient,
    504: Transient,
}


def error_from_api(error: KeycloakAPIError, message: str) -> OperationFailed:
    """Map a raw HTTP failure to the matching error kind."""
    if error.status_code == 0:
        kind = Transient
    else:
        kind = _STATUS_KINDS.get(error.status_code, OperationFailed)
    detail = error.message or str(error)
    return kind(f"{message}: {detail}")


def translate_errors(message: str, not_found: Optional[str] = None) -> Callable[[F], F]:
    """Decorator normalizing every failure of an admin operation.

    Args:
        message: Prefix used for the rewrapped error message
        not_found: Optional message used verbatim when the server answers 404

    Kinds already raised (``OperationFailed`` subclasses and
    ``NotImplementedOperation``) pass through untouched.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except (OperationFailed, NotImplementedOperation):
                raise
            except KeycloakAPIError as e:
                if not_found and e.status_code == 404:
                    raise NotFound(not_found) from e
                raise error_from_api(e, message) from e
            except Exception as e:
                raise OperationFailed(f"{message}: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator
