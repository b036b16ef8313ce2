"""Sequential mass revocation with partial-failure accounting."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, TypeVar

from .exceptions import KeycloakAPIError, MassRevocationFailed, OperationFailed, error_from_api

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class RevocationReport:
    """What a mass operation removed, and why it stopped if it did."""

    operation: str
    revoked: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.revoked)

    @property
    def completed(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "revoked": list(self.revoked),
            "count": self.count,
            "completed": self.completed,
            "error": self.error,
        }


def _stop(report: RevocationReport, label: str, error: Exception) -> MassRevocationFailed:
    """Record ``error`` on the report and build the exception that ends the run."""
    if isinstance(error, KeycloakAPIError):
        cause: Exception = error_from_api(error, f"Failed to {label}")
    elif isinstance(error, OperationFailed):
        cause = error
    else:
        cause = OperationFailed(f"Failed to {label}: {error}")
    report.error = str(cause)
    logger.warning(
        "%s stopped after %d item(s): %s", report.operation, report.count, report.error
    )
    return MassRevocationFailed(
        f"An unexpected error occurred during {report.operation}: {report.error}", report
    )


def lookup(report: RevocationReport, label: str, fetch: Callable[[], T]) -> T:
    """Run a listing call made part way through a mass operation.

    A failure ends the run like a failed revocation, so the report of what
    was already removed reaches the caller.

    Raises:
        MassRevocationFailed: carrying the report of what was done so far
    """
    try:
        return fetch()
    except Exception as e:
        raise _stop(report, label, e) from e


def revoke_each(
    operation: str,
    items: Iterable[T],
    revoke: Callable[[T], None],
    describe: Callable[[T], str],
    report: Optional[RevocationReport] = None,
) -> RevocationReport:
    """Apply ``revoke`` to every item in order, stopping at the first failure.

    Items revoked before the failure stay revoked; there is no rollback.

    Raises:
        MassRevocationFailed: carrying the report of what was done so far
    """
    report = report or RevocationReport(operation)
    for item in items:
        label = describe(item)
        try:
            revoke(item)
        except Exception as e:
            raise _stop(report, f"revoke {label}", e) from e
        report.revoked.append(label)
    logger.info("%s revoked %d item(s)", operation, report.count)
    return report
