"""Keycloak user management operations."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from .client import KeycloakClient
from .exceptions import OperationFailed, translate_errors
from .mass import RevocationReport, revoke_each

logger = logging.getLogger(__name__)


@dataclass
class PendingUserChange:
    """A user representation changed in memory but not yet sent to the server.

    ``enable_user``/``disable_user`` only fetch and mutate; nothing reaches
    Keycloak until ``commit()`` is called.
    """

    service: "UserService"
    realm: str
    representation: Dict[str, Any]
    committed: bool = False

    def commit(self) -> Dict[str, Any]:
        self.service.update_user(self.realm, self.representation)
        self.committed = True
        return self.representation


class UserService:
    """Service for managing Keycloak users."""

    def __init__(self, client: KeycloakClient):
        """Initialize user service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @translate_errors("An unexpected error occurred while creating user")
    def create_user(self, realm: str, user: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a user from a full representation.

        Returns:
            The submitted representation, with ``id`` filled in when the
            server reported it through the Location header
        """
        created = dict(user)
        resp = self.client.post(f"/admin/realms/{realm}/users", json=created)
        location = resp.headers.get("Location", "") if resp is not None else ""
        if location and "id" not in created:
            created["id"] = location.rstrip("/").rsplit("/", 1)[-1]
        logger.info("User '%s' created in realm '%s'", created.get("username"), realm)
        return created

    @translate_errors("An unexpected error occurred while updating the user")
    def update_user(self, realm: str, user: Mapping[str, Any]) -> Dict[str, Any]:
        user_id = user.get("id")
        if not user_id:
            raise OperationFailed("User representation must include an id")
        self.client.put(f"/admin/realms/{realm}/users/{user_id}", json=dict(user))
        logger.info("User %s updated", user_id)
        return dict(user)

    @translate_errors("An unexpected error occurred while deleting the user")
    def delete_user(self, realm: str, user_id: str) -> None:
        self.client.delete(f"/admin/realms/{realm}/users/{user_id}")
        logger.info("User %s deleted from realm '%s'", user_id, realm)

    @translate_errors("Failed to retrieve user")
    def get_user(self, realm: str, user_id: str) -> Dict[str, Any]:
        return self.client.get(f"/admin/realms/{realm}/users/{user_id}").json()

    @translate_errors("Failed to list users")
    def list_users(self, realm: str) -> List[Dict[str, Any]]:
        return self.client.get(f"/admin/realms/{realm}/users").json() or []

    def _pending_enabled(self, realm: str, user_id: str, enabled: bool) -> PendingUserChange:
        representation = self.get_user(realm, user_id)
        representation["enabled"] = enabled
        logger.debug("User %s marked enabled=%s (not committed)", user_id, enabled)
        return PendingUserChange(self, realm, representation)

    @translate_errors("An unexpected error occurred while enabling the user")
    def enable_user(self, realm: str, user_id: str) -> PendingUserChange:
        return self._pending_enabled(realm, user_id, True)

    @translate_errors("An unexpected error occurred while disabling the user")
    def disable_user(self, realm: str, user_id: str) -> PendingUserChange:
        return self._pending_enabled(realm, user_id, False)

    @translate_errors("Failed to update password")
    def update_password(self, realm: str, user_id: str, new_password: str, temporary: bool = False) -> None:
        """Reset the user's password credential.

        The current password is not verified; the admin API has no such check.
        """
        credential = {"type": "password", "value": new_password, "temporary": temporary}
        self.client.put(f"/admin/realms/{realm}/users/{user_id}/reset-password", json=credential)
        logger.info("Password reset for user %s", user_id)

    @translate_errors("An unexpected error occurred while revoking all users")
    def revoke_all_users(self, realm: str) -> RevocationReport:
        return revoke_each(
            "revoke_all_users",
            self.list_users(realm),
            lambda user: self.client.delete(f"/admin/realms/{realm}/users/{user['id']}"),
            lambda user: f"user {user.get('username') or user['id']}",
        )
