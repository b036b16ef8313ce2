"""Custom user attributes stored in the user's ``attributes`` map."""
from __future__ import annotations
import logging
from typing import Any, Dict, Mapping

from .client import KeycloakClient
from .exceptions import translate_errors

logger = logging.getLogger(__name__)


class AttributeService:
    """Read and write single-valued custom attributes on users."""

    def __init__(self, client: KeycloakClient):
        self.client = client

    def _user(self, realm: str, user_id: str) -> Dict[str, Any]:
        return self.client.get(f"/admin/realms/{realm}/users/{user_id}").json()

    @translate_errors("Failed to add custom attribute")
    def add_custom_attribute(self, realm: str, user_id: str, key: str, value: str) -> Dict[str, Any]:
        """Set ``key`` to exactly ``[value]``, replacing any previous values."""
        user = self._user(realm, user_id)
        attributes = user.get("attributes") or {}
        attributes[key] = [value]
        user["attributes"] = attributes
        self.client.put(f"/admin/realms/{realm}/users/{user_id}", json=user)
        logger.info("Attribute '%s' set on user %s", key, user_id)
        return user

    @translate_errors("Failed to remove custom attribute")
    def remove_custom_attribute(self, realm: str, user_id: str, key: str) -> Dict[str, Any]:
        user = self._user(realm, user_id)
        attributes = user.get("attributes")
        if attributes and key in attributes:
            del attributes[key]
        user["attributes"] = attributes
        self.client.put(f"/admin/realms/{realm}/users/{user_id}", json=user)
        logger.info("Attribute '%s' removed from user %s", key, user_id)
        return user


@translate_errors("Failed to list custom attributes")
def list_custom_attributes(user: Mapping[str, Any]) -> Dict[str, str]:
    """First value of every attribute of an already fetched user representation."""
    attributes = user.get("attributes") or {}
    result = {}
    for key, values in attributes.items():
        if isinstance(values, list):
            result[key] = values[0]
        else:
            result[key] = values
    return result
