"""Partial updates for realm and role representations.

Update maps arrive as free-form JSON objects. Only the fields enumerated here
are applied; unknown keys and values of the wrong type are dropped without
error so a typo in a request never fails the whole update.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Tuple

logger = logging.getLogger(__name__)


def _accepts(expected: type, value: Any) -> bool:
    if value is None:
        return True
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


@dataclass
class RepresentationPatch:
    """Validated subset of an update map, ready to apply to a representation."""

    FIELDS: ClassVar[Dict[str, type]] = {}

    values: Dict[str, Any] = field(default_factory=dict)
    ignored: Tuple[str, ...] = ()

    @classmethod
    def from_updates(cls, updates: Mapping[str, Any] | None):
        values: Dict[str, Any] = {}
        ignored = []
        for key, value in (updates or {}).items():
            expected = cls.FIELDS.get(key)
            if expected is None or not _accepts(expected, value):
                ignored.append(key)
                continue
            values[key] = value
        if ignored:
            logger.debug("%s ignored keys: %s", cls.__name__, ", ".join(sorted(ignored)))
        return cls(values=values, ignored=tuple(ignored))

    def apply(self, representation: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite matching fields in place and return the representation."""
        representation.update(self.values)
        return representation


class RealmPatch(RepresentationPatch):
    FIELDS: ClassVar[Dict[str, type]] = {
        "realm": str,
        "displayName": str,
        "displayNameHtml": str,
        "enabled": bool,
        "sslRequired": str,
        "registrationAllowed": bool,
        "registrationEmailAsUsername": bool,
        "rememberMe": bool,
        "verifyEmail": bool,
        "loginWithEmailAllowed": bool,
        "duplicateEmailsAllowed": bool,
        "resetPasswordAllowed": bool,
        "editUsernameAllowed": bool,
        "bruteForceProtected": bool,
        "permanentLockout": bool,
        "maxFailureWaitSeconds": int,
        "failureFactor": int,
        "accessTokenLifespan": int,
        "accessCodeLifespan": int,
        "ssoSessionIdleTimeout": int,
        "ssoSessionMaxLifespan": int,
        "offlineSessionIdleTimeout": int,
        "revokeRefreshToken": bool,
        "passwordPolicy": str,
        "loginTheme": str,
        "accountTheme": str,
        "adminTheme": str,
        "emailTheme": str,
        "internationalizationEnabled": bool,
        "supportedLocales": list,
        "defaultLocale": str,
        "smtpServer": dict,
        "attributes": dict,
        "eventsEnabled": bool,
        "adminEventsEnabled": bool,
    }


class RolePatch(RepresentationPatch):
    FIELDS: ClassVar[Dict[str, type]] = {
        "name": str,
        "description": str,
        "attributes": dict,
    }
