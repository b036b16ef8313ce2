"""Keycloak role management operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, NotFound, OperationFailed, translate_errors
from .mass import RevocationReport, revoke_each
from .patch import RolePatch

DEFAULT_ROLE_DESCRIPTION = "Role implemented via API"

logger = logging.getLogger(__name__)


def _role_ref(role: Mapping[str, Any]) -> Dict[str, Any]:
    """Minimal role payload accepted by role-mapping and composite endpoints."""
    return {"id": role["id"], "name": role["name"]}


class RoleService:
    """Service for managing Keycloak realm roles and their assignments."""

    def __init__(self, client: KeycloakClient):
        """Initialize role service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @translate_errors("An unexpected error occurred while creating role")
    def create_role(self, realm: str, role_name: str, description: str = DEFAULT_ROLE_DESCRIPTION) -> None:
        payload = {"name": role_name, "description": description}
        self.client.post(f"/admin/realms/{realm}/roles", json=payload)
        logger.info("Role '%s' created in realm '%s'", role_name, realm)

    @translate_errors("Failed to remove role")
    def remove_role(self, realm: str, role_name: str) -> None:
        self.client.delete(f"/admin/realms/{realm}/roles/{role_name}")
        logger.info("Role '%s' removed from realm '%s'", role_name, realm)

    @translate_errors("Failed to retrieve role")
    def get_role(self, realm: str, role_name: str) -> Dict[str, Any]:
        return self.client.get(f"/admin/realms/{realm}/roles/{role_name}").json()

    @translate_errors("An error occurred while listing roles")
    def list_roles(self, realm: str) -> List[Dict[str, Any]]:
        return self.client.get(f"/admin/realms/{realm}/roles").json() or []

    @translate_errors("Failed to update role")
    def update_role(self, realm: str, role_name: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        """Overwrite role fields named in ``updates`` and push the result.

        Unknown keys are ignored. No version check is made between the fetch
        and the push.
        """
        representation = self.get_role(realm, role_name)
        RolePatch.from_updates(updates).apply(representation)
        self.client.put(f"/admin/realms/{realm}/roles/{role_name}", json=representation)
        logger.info("Role '%s' updated in realm '%s'", role_name, realm)
        return representation

    def _resolve_roles(self, realm: str, role_names: Sequence[str]) -> List[Dict[str, Any]]:
        """Resolve every name before anything is written; one miss aborts all."""
        if not role_names:
            raise OperationFailed("No child roles supplied")
        return [_role_ref(self.get_role(realm, name)) for name in role_names]

    @translate_errors("Failed to add composite role")
    def add_composite_role(self, realm: str, parent_role: str, child_roles: Sequence[str]) -> None:
        children = self._resolve_roles(realm, child_roles)
        self.client.post(f"/admin/realms/{realm}/roles/{parent_role}/composites", json=children)
        logger.info("Attached %d composite(s) to role '%s'", len(children), parent_role)

    @translate_errors("Failed to remove composite role")
    def remove_composite_role(self, realm: str, parent_role: str, child_roles: Sequence[str]) -> None:
        children = self._resolve_roles(realm, child_roles)
        self.client.delete(f"/admin/realms/{realm}/roles/{parent_role}/composites", json=children)
        logger.info("Detached %d composite(s) from role '%s'", len(children), parent_role)

    # ─────────────────────────────────────────────────────────────────────
    # User role mappings
    # ─────────────────────────────────────────────────────────────────────
    def _resolve_user_and_role(self, realm: str, user_id: str, role_name: str) -> Tuple[Dict, Dict]:
        try:
            user = self.client.get(f"/admin/realms/{realm}/users/{user_id}").json()
            role = self.client.get(f"/admin/realms/{realm}/roles/{role_name}").json()
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise NotFound(f"User or role not found: {e.message}") from e
            raise
        return user, role

    @translate_errors("Failed to list user roles")
    def list_user_realm_roles(self, realm: str, user_id: str) -> List[Dict[str, Any]]:
        """Realm roles mapped directly on the user."""
        return self.client.get(f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm").json() or []

    @translate_errors("An error occurred while granting the role")
    def grant_role_to_user(self, realm: str, user_id: str, role_name: str) -> None:
        _, role = self._resolve_user_and_role(realm, user_id, role_name)
        self.client.post(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm",
            json=[_role_ref(role)],
        )
        logger.info("Granted role '%s' to user %s", role_name, user_id)

    @translate_errors("An unexpected error occurred while revoking role")
    def revoke_role_from_user(self, realm: str, user_id: str, role_name: str) -> None:
        """Remove one realm role from the user.

        A role that is not currently assigned is reported as ``NotFound``
        even though there is nothing left to change.
        """
        _, role = self._resolve_user_and_role(realm, user_id, role_name)
        assigned = {r.get("name") for r in self.list_user_realm_roles(realm, user_id)}
        if role_name not in assigned:
            raise NotFound(f"Role not found on user {user_id}: {role_name}")
        self.client.delete(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm",
            json=[_role_ref(role)],
        )
        logger.info("Revoked role '%s' from user %s", role_name, user_id)

    @translate_errors("An error occurred while revoking roles from the user")
    def revoke_all_roles_from_user(self, realm: str, user_id: str) -> int:
        """Remove every directly mapped realm role from the user.

        Having nothing to revoke is an error, not a no-op.

        Returns:
            Number of roles removed
        """
        roles = self.list_user_realm_roles(realm, user_id)
        if not roles:
            raise OperationFailed("User does not have any roles to revoke.")
        self.client.delete(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm",
            json=[_role_ref(r) for r in roles],
        )
        logger.info("Revoked %d role(s) from user %s", len(roles), user_id)
        return len(roles)

    @translate_errors("An unexpected error occurred while revoking all roles")
    def revoke_all_roles(self, realm: str) -> RevocationReport:
        """Delete every realm role except the realm's default composite role."""
        default_role = f"default-roles-{realm}".lower()
        roles = [r for r in self.list_roles(realm) if r.get("name", "").lower() != default_role]
        return revoke_each(
            "revoke_all_roles",
            roles,
            lambda role: self.client.delete(f"/admin/realms/{realm}/roles/{role['name']}"),
            lambda role: f"role {role['name']}",
        )
