"""Keycloak Admin API client library.

This package provides a modular, testable interface to Keycloak Admin API operations.

Architecture:
- client.py: HTTP client with password-grant authentication and auto-refresh
- realm.py: Realm lifecycle and partial updates
- roles.py: Realm roles, composites and user role mappings
- groups.py: Groups, memberships and hierarchy traversal
- users.py: User lifecycle and credentials
- sessions.py: Session listing and logout
- attributes.py: Single-valued custom user attributes
- patch.py: Enumerated partial updates for realms and roles
- mass.py: Sequential mass revocation with partial-failure reports
- exceptions.py: Typed exceptions for error handling

Usage:
    from admin_gateway.core.keycloak import KeycloakClient, RoleService

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_password("master", "admin-cli", "", "admin", "password")

    roles = RoleService(client)
    roles.grant_role_to_user("demo", user_id, "editor")
"""
from .client import (
    KeycloakClient,
    connect,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    OperationFailed,
    NotFound,
    Conflict,
    Unauthorized,
    Transient,
    MassRevocationFailed,
    NotImplementedOperation,
    translate_errors,
)
from .patch import RealmPatch, RolePatch
from .mass import RevocationReport, lookup, revoke_each
from .realm import RealmService
from .roles import RoleService
from .groups import GroupService, GroupIndex
from .users import UserService, PendingUserChange
from .sessions import SessionService
from .attributes import AttributeService, list_custom_attributes

__all__ = [
    # Client
    "KeycloakClient",
    "connect",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "OperationFailed",
    "NotFound",
    "Conflict",
    "Unauthorized",
    "Transient",
    "MassRevocationFailed",
    "NotImplementedOperation",
    "translate_errors",

    # Updates and reports
    "RealmPatch",
    "RolePatch",
    "RevocationReport",
    "lookup",
    "revoke_each",

    # Services
    "RealmService",
    "RoleService",
    "GroupService",
    "GroupIndex",
    "UserService",
    "PendingUserChange",
    "SessionService",
    "AttributeService",
    "list_custom_attributes",
]
