"""Keycloak realm management operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, Mapping

from .client import KeycloakClient
from .exceptions import translate_errors
from .patch import RealmPatch

logger = logging.getLogger(__name__)


class RealmService:
    """Service for managing Keycloak realms."""

    def __init__(self, client: KeycloakClient):
        """Initialize realm service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @translate_errors("Failed to retrieve realm")
    def get_realm(self, realm: str) -> Dict[str, Any]:
        return self.client.get(f"/admin/realms/{realm}").json()

    @translate_errors("Failed to create realm")
    def create_realm(self, realm: str) -> None:
        """Create an enabled realm.

        Unlike an idempotent bootstrap, a duplicate name is an error: the
        server answers 409 and the caller gets ``Conflict``.
        """
        self.client.post("/admin/realms", json={"realm": realm, "enabled": True})
        logger.info("Realm '%s' created", realm)

    @translate_errors("Failed to update realm")
    def update_realm(self, realm: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        """Overwrite realm fields named in ``updates`` and push the result.

        Fetch and push are two separate calls; a concurrent change made
        between them is overwritten.

        Args:
            realm: Realm name
            updates: Field name to new value; unknown keys are ignored

        Returns:
            The representation that was sent back to the server
        """
        representation = self.get_realm(realm)
        patch = RealmPatch.from_updates(updates)
        patch.apply(representation)
        self.client.put(f"/admin/realms/{realm}", json=representation)
        logger.info("Realm '%s' updated (%d field(s))", realm, len(patch.values))
        return representation

    @translate_errors("Failed to delete realm")
    def delete_realm(self, realm: str) -> None:
        self.client.delete(f"/admin/realms/{realm}")
        logger.info("Realm '%s' deleted", realm)
