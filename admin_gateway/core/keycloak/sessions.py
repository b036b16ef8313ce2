"""Keycloak session management operations."""
from __future__ import annotations
import logging
from typing import Dict, List

from .client import KeycloakClient
from .exceptions import translate_errors

logger = logging.getLogger(__name__)


class SessionService:
    """Service for managing Keycloak user sessions."""

    def __init__(self, client: KeycloakClient):
        """Initialize session service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @translate_errors("Failed to list user sessions")
    def get_user_sessions(self, realm: str, user_id: str) -> List[Dict]:
        """Get all active sessions for a user."""
        return self.client.get(f"/admin/realms/{realm}/users/{user_id}/sessions").json() or []

    @translate_errors("Failed to logout user")
    def logout_user(self, realm: str, user_id: str) -> None:
        """End every session of the user; a user without sessions is not an error."""
        self.client.post(f"/admin/realms/{realm}/users/{user_id}/logout")
        logger.info("Logged out user %s", user_id)
