"""Administrative gateway: one entry point per admin operation.

The gateway holds a single authenticated Keycloak client and a fixed target
realm. Realm operations take the realm name explicitly; everything else acts
on the target realm. Destructive operations are recorded in the audit trail.
"""
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence

from scripts import audit

from .keycloak import (
    AttributeService,
    GroupService,
    KeycloakClient,
    MassRevocationFailed,
    NotImplementedOperation,
    OperationFailed,
    PendingUserChange,
    RealmService,
    RevocationReport,
    RoleService,
    SessionService,
    UserService,
    list_custom_attributes,
)

PERMISSIONS_NOT_IMPLEMENTED = (
    "Permission management requires Keycloak authorization setup and will be implemented later."
)


class AdminGateway:
    """Synchronous façade over the Keycloak admin services."""

    def __init__(self, client: KeycloakClient, realm_name: str, operator: str = "api"):
        self.client = client
        self.realm_name = realm_name
        self.operator = operator
        self.realms = RealmService(client)
        self.roles = RoleService(client)
        self.groups = GroupService(client)
        self.users = UserService(client)
        self.sessions = SessionService(client)
        self.attributes = AttributeService(client)

    def _audit(self, event_type: str, target: str, *, realm: Optional[str] = None,
               details: Optional[dict] = None, success: bool = True) -> None:
        audit.safe_log_admin_event(
            event_type,
            target,
            operator=self.operator,
            realm=realm or self.realm_name,
            details=details,
            success=success,
        )

    def _mass(self, event_type: str, run) -> RevocationReport:
        try:
            report = run()
        except MassRevocationFailed as e:
            self._audit(event_type, "*", details=e.report.to_dict(), success=False)
            raise
        except OperationFailed as e:
            self._audit(event_type, "*", details={"error": str(e)}, success=False)
            raise
        self._audit(event_type, "*", details=report.to_dict())
        return report

    # ─────────────────────────────────────────────────────────────────────
    # Realms
    # ─────────────────────────────────────────────────────────────────────
    def create_realm(self, realm_name: str) -> None:
        self.realms.create_realm(realm_name)

    def update_realm(self, realm_name: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        return self.realms.update_realm(realm_name, updates)

    def delete_realm(self, realm_name: str) -> None:
        self.realms.delete_realm(realm_name)
        self._audit("realm_delete", realm_name, realm=realm_name)

    # ─────────────────────────────────────────────────────────────────────
    # Roles
    # ─────────────────────────────────────────────────────────────────────
    def create_role(self, role_name: str) -> None:
        self.roles.create_role(self.realm_name, role_name)

    def remove_role(self, role_name: str) -> None:
        self.roles.remove_role(self.realm_name, role_name)
        self._audit("role_delete", role_name)

    def update_role(self, role_name: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        return self.roles.update_role(self.realm_name, role_name, updates)

    def get_role(self, role_name: str) -> Dict[str, Any]:
        return self.roles.get_role(self.realm_name, role_name)

    def list_roles(self) -> List[Dict[str, Any]]:
        return self.roles.list_roles(self.realm_name)

    def add_composite_role(self, parent_role: str, child_roles: Sequence[str]) -> None:
        self.roles.add_composite_role(self.realm_name, parent_role, child_roles)

    def remove_composite_role(self, parent_role: str, child_roles: Sequence[str]) -> None:
        self.roles.remove_composite_role(self.realm_name, parent_role, child_roles)

    def grant_role_to_user(self, user_id: str, role_name: str) -> None:
        self.roles.grant_role_to_user(self.realm_name, user_id, role_name)
        self._audit("role_grant", user_id, details={"role": role_name})

    def revoke_role_from_user(self, user_id: str, role_name: str) -> None:
        self.roles.revoke_role_from_user(self.realm_name, user_id, role_name)
        self._audit("role_revoke", user_id, details={"role": role_name})

    def revoke_all_roles_from_user(self, user_id: str) -> int:
        count = self.roles.revoke_all_roles_from_user(self.realm_name, user_id)
        self._audit("role_revoke", user_id, details={"roles_revoked": count})
        return count

    def revoke_all_roles(self) -> RevocationReport:
        return self._mass("revoke_all_roles", lambda: self.roles.revoke_all_roles(self.realm_name))

    # ─────────────────────────────────────────────────────────────────────
    # Groups
    # ─────────────────────────────────────────────────────────────────────
    def create_group(self, group_name: str) -> None:
        self.groups.create_group(self.realm_name, group_name)

    def update_group(self, group_name: str, new_group_name: str,
                     representation: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return self.groups.update_group(self.realm_name, group_name, new_group_name, representation)

    def delete_group(self, group_name: str) -> None:
        self.groups.delete_group(self.realm_name, group_name)
        self._audit("group_delete", group_name)

    def list_groups(self) -> List[Dict[str, Any]]:
        return self.groups.list_groups(self.realm_name)

    def list_groups_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.groups.list_groups_for_user(self.realm_name, user_id)

    def list_users_in_group(self, group_name: str) -> List[Dict[str, Any]]:
        return self.groups.list_users_in_group(self.realm_name, group_name)

    def assign_group_to_user(self, group_name: str, user_id: str) -> None:
        self.groups.assign_group_to_user(self.realm_name, group_name, user_id)

    def revoke_group_from_user(self, group_name: str, user_id: str) -> None:
        self.groups.revoke_group_from_user(self.realm_name, group_name, user_id)

    def list_user_groups(self) -> List[Dict[str, Any]]:
        return self.groups.list_user_groups(self.realm_name)

    def list_group_groups(self) -> List[Dict[str, Any]]:
        return self.groups.list_group_groups(self.realm_name)

    def list_user_group_groups(self) -> List[Dict[str, Any]]:
        return self.groups.list_user_group_groups(self.realm_name)

    def walk_group_tree(self, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.groups.walk_group_tree(self.realm_name, max_depth)

    # ─────────────────────────────────────────────────────────────────────
    # Users and sessions
    # ─────────────────────────────────────────────────────────────────────
    def create_user(self, user: Mapping[str, Any]) -> Dict[str, Any]:
        return self.users.create_user(self.realm_name, user)

    def update_user(self, user: Mapping[str, Any]) -> Dict[str, Any]:
        return self.users.update_user(self.realm_name, user)

    def delete_user(self, user_id: str) -> None:
        self.users.delete_user(self.realm_name, user_id)
        self._audit("user_delete", user_id)

    def enable_user(self, user_id: str) -> PendingUserChange:
        """Return the user marked enabled; call ``commit()`` on the result to persist."""
        return self.users.enable_user(self.realm_name, user_id)

    def disable_user(self, user_id: str) -> PendingUserChange:
        """Return the user marked disabled; call ``commit()`` on the result to persist."""
        return self.users.disable_user(self.realm_name, user_id)

    def update_password(self, user_id: str, old_password: Optional[str], new_password: str) -> None:
        self.users.update_password(self.realm_name, user_id, new_password)

    def logout_user(self, user_id: str) -> None:
        self.sessions.logout_user(self.realm_name, user_id)
        self._audit("session_revoke", user_id)

    def list_user_sessions(self, user_id: str) -> List[Dict[str, Any]]:
        return self.sessions.get_user_sessions(self.realm_name, user_id)

    def get_user_information(self, user_id: str) -> Dict[str, Any]:
        return self.users.get_user(self.realm_name, user_id)

    def list_users(self) -> List[Dict[str, Any]]:
        return self.users.list_users(self.realm_name)

    # ─────────────────────────────────────────────────────────────────────
    # Permissions
    # ─────────────────────────────────────────────────────────────────────
    def create_permission(self, permission_name: str, attributes: Mapping[str, Any]) -> None:
        raise NotImplementedOperation(PERMISSIONS_NOT_IMPLEMENTED)

    def update_permission(self, permission_name: str, updates: Mapping[str, Any]) -> None:
        raise NotImplementedOperation(PERMISSIONS_NOT_IMPLEMENTED)

    def delete_permission(self, permission_name: str) -> None:
        raise NotImplementedOperation(PERMISSIONS_NOT_IMPLEMENTED)

    # ─────────────────────────────────────────────────────────────────────
    # Custom attributes
    # ─────────────────────────────────────────────────────────────────────
    def add_custom_attribute(self, user_id: str, key: str, value: str) -> Dict[str, Any]:
        return self.attributes.add_custom_attribute(self.realm_name, user_id, key, value)

    def remove_custom_attribute(self, user_id: str, key: str) -> Dict[str, Any]:
        return self.attributes.remove_custom_attribute(self.realm_name, user_id, key)

    def list_custom_attributes(self, user: Mapping[str, Any]) -> Dict[str, str]:
        return list_custom_attributes(user)

    # ─────────────────────────────────────────────────────────────────────
    # Mass revocation
    # ─────────────────────────────────────────────────────────────────────
    def revoke_all_users(self) -> RevocationReport:
        return self._mass("revoke_all_users", lambda: self.users.revoke_all_users(self.realm_name))

    def revoke_all_groups(self) -> RevocationReport:
        return self._mass("revoke_all_groups", lambda: self.groups.revoke_all_groups(self.realm_name))

    def revoke_all_user_groups(self) -> RevocationReport:
        return self._mass("revoke_all_user_groups", lambda: self.groups.revoke_all_user_groups(self.realm_name))

    def revoke_all_group_groups(self) -> RevocationReport:
        return self._mass("revoke_all_group_groups", lambda: self.groups.revoke_all_group_groups(self.realm_name))

    def revoke_all_user_group_groups(self) -> RevocationReport:
        return self._mass(
            "revoke_all_user_group_groups",
            lambda: self.groups.revoke_all_user_group_groups(self.realm_name),
        )
