"""Keycloak group management operations."""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, NotFound, translate_errors
from .mass import RevocationReport, lookup, revoke_each

# Keycloak pages children listings; ask for everything in one go
CHILDREN_PAGE_SIZE = 1000

logger = logging.getLogger(__name__)


class GroupIndex:
    """Name to group lookup built from one listing of the top-level groups.

    Keycloak has no exact lookup by name, so operations that resolve a name
    build one index per call instead of rescanning the listing per item.
    """

    def __init__(self, groups: List[Dict[str, Any]]):
        self.groups = groups
        self._by_name: Dict[str, Dict[str, Any]] = {}
        for group in groups:
            # first match wins on duplicate names
            self._by_name.setdefault(group.get("name"), group)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self.groups)

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        return self._by_name.get(name)

    def require(self, name: str) -> Dict[str, Any]:
        group = self._by_name.get(name)
        if group is None:
            raise NotFound(f"Group with name {name} not found.")
        return group


class GroupService:
    """Service for managing Keycloak groups and memberships."""

    def __init__(self, client: KeycloakClient):
        """Initialize group service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def index(self, realm: str) -> GroupIndex:
        return GroupIndex(self._top_level_groups(realm))

    def _top_level_groups(self, realm: str) -> List[Dict[str, Any]]:
        return self.client.get(f"/admin/realms/{realm}/groups").json() or []

    def _users(self, realm: str) -> List[Dict[str, Any]]:
        return self.client.get(f"/admin/realms/{realm}/users").json() or []

    def _user_groups(self, realm: str, user_id: str) -> List[Dict[str, Any]]:
        return self.client.get(f"/admin/realms/{realm}/users/{user_id}/groups").json() or []

    def subgroups(self, realm: str, group_id: str) -> List[Dict[str, Any]]:
        """Direct children of a group.

        Older servers embed ``subGroups`` in the group representation; newer
        ones only report ``subGroupCount`` and serve the children separately.
        """
        representation = self.client.get(f"/admin/realms/{realm}/groups/{group_id}").json() or {}
        children = representation.get("subGroups") or []
        if not children and representation.get("subGroupCount"):
            children = self.client.get(
                f"/admin/realms/{realm}/groups/{group_id}/children",
                params={"first": 0, "max": CHILDREN_PAGE_SIZE},
            ).json() or []
        return children

    @translate_errors("An unexpected error occurred while creating group")
    def create_group(self, realm: str, group_name: str) -> None:
        self.client.post(f"/admin/realms/{realm}/groups", json={"name": group_name})
        logger.info("Group '%s' created in realm '%s'", group_name, realm)

    @translate_errors("An unexpected error occurred while updating the group")
    def update_group(
        self,
        realm: str,
        group_name: str,
        new_group_name: str,
        updated: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Rename a group and copy over the supplied optional fields.

        Only ``attributes``, ``realmRoles``, ``clientRoles`` and ``subGroups``
        are taken from ``updated``, and only when present.
        """
        group = dict(self.index(realm).require(group_name))
        group["name"] = new_group_name
        for key in ("attributes", "realmRoles", "clientRoles", "subGroups"):
            if updated and updated.get(key) is not None:
                group[key] = updated[key]
        self.client.put(f"/admin/realms/{realm}/groups/{group['id']}", json=group)
        logger.info("Group '%s' updated (now '%s')", group_name, new_group_name)
        return group

    @translate_errors("An unexpected error occurred while deleting the group")
    def delete_group(self, realm: str, group_name: str) -> None:
        group = self.index(realm).require(group_name)
        self.client.delete(f"/admin/realms/{realm}/groups/{group['id']}")
        logger.info("Group '%s' deleted from realm '%s'", group_name, realm)

    @translate_errors("An error occurred while listing groups")
    def list_groups(self, realm: str) -> List[Dict[str, Any]]:
        return self._top_level_groups(realm)

    @translate_errors("Failed to list groups for user")
    def list_groups_for_user(self, realm: str, user_id: str) -> List[Dict[str, Any]]:
        return self._user_groups(realm, user_id)

    @translate_errors("Failed to list users in group")
    def list_users_in_group(self, realm: str, group_name: str) -> List[Dict[str, Any]]:
        group = self.index(realm).require(group_name)
        return self.client.get(f"/admin/realms/{realm}/groups/{group['id']}/members").json() or []

    def _membership_call(self, realm: str, group_name: str, user_id: str, action: str) -> None:
        group = self.index(realm).require(group_name)
        path = f"/admin/realms/{realm}/users/{user_id}/groups/{group['id']}"
        try:
            if action == "assign":
                self.client.put(path)
            else:
                self.client.delete(path)
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise NotFound(
                    f"Could not {action} group {'to' if action == 'assign' else 'from'} user. "
                    f"User with ID {user_id} not found."
                ) from e
            raise

    @translate_errors("An unexpected error occurred while assigning user to the group")
    def assign_group_to_user(self, realm: str, group_name: str, user_id: str) -> None:
        self._membership_call(realm, group_name, user_id, "assign")
        logger.info("User %s joined group '%s'", user_id, group_name)

    @translate_errors("An unexpected error occurred while revoking user from the group")
    def revoke_group_from_user(self, realm: str, group_name: str, user_id: str) -> None:
        self._membership_call(realm, group_name, user_id, "revoke")
        logger.info("User %s left group '%s'", user_id, group_name)

    @translate_errors("Error retrieving users with groups")
    def list_user_groups(self, realm: str) -> List[Dict[str, Any]]:
        """Every user, with ``attributes`` replaced by their group names."""
        users = self._users(realm)
        for user in users:
            names = [g.get("name") for g in self._user_groups(realm, user["id"])]
            user["attributes"] = {"groups": names}
        return users

    def _walk(self, realm: str, roots: List[Dict[str, Any]], max_depth: Optional[int]) -> Iterator[Dict[str, Any]]:
        """Pre-order walk below ``roots``; each group id is yielded once."""
        visited = set()
        stack = [(group, 0) for group in reversed(roots)]
        while stack:
            group, depth = stack.pop()
            group_id = group.get("id")
            if group_id in visited:
                continue
            visited.add(group_id)
            yield group
            if max_depth is not None and depth >= max_depth:
                continue
            for child in reversed(self.subgroups(realm, group_id)):
                if child.get("id") not in visited:
                    stack.append((child, depth + 1))

    @translate_errors("Error retrieving group hierarchy")
    def walk_group_tree(self, realm: str, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
        """Full hierarchy in pre-order, optionally bounded to ``max_depth`` levels below the top."""
        return list(self._walk(realm, self._top_level_groups(realm), max_depth))

    @translate_errors("Error retrieving group hierarchy")
    def list_group_groups(self, realm: str) -> List[Dict[str, Any]]:
        """Top-level groups each followed by their direct subgroups only."""
        result: List[Dict[str, Any]] = []
        for group in self._top_level_groups(realm):
            result.append(group)
            result.extend(self.subgroups(realm, group["id"]))
        return result

    @translate_errors("Error retrieving user group hierarchy")
    def list_user_group_groups(self, realm: str) -> List[Dict[str, Any]]:
        """For every user, each group they belong to followed by its direct subgroups."""
        result: List[Dict[str, Any]] = []
        for user in self._users(realm):
            for group in self._user_groups(realm, user["id"]):
                result.append(group)
                result.extend(self.subgroups(realm, group["id"]))
        return result

    # ─────────────────────────────────────────────────────────────────────
    # Mass revocation
    # ─────────────────────────────────────────────────────────────────────
    @translate_errors("An unexpected error occurred while revoking all groups")
    def revoke_all_groups(self, realm: str) -> RevocationReport:
        return revoke_each(
            "revoke_all_groups",
            self._top_level_groups(realm),
            lambda group: self.client.delete(f"/admin/realms/{realm}/groups/{group['id']}"),
            lambda group: f"group {group.get('name')}",
        )

    @translate_errors("An unexpected error occurred while revoking all user groups")
    def revoke_all_user_groups(self, realm: str) -> RevocationReport:
        """Make every user leave every group they belong to."""
        report = RevocationReport("revoke_all_user_groups")
        for user in self._users(realm):
            user_id = user["id"]
            groups = lookup(report, f"list groups of user {user_id}", lambda: self._user_groups(realm, user_id))
            revoke_each(
                report.operation,
                groups,
                lambda group: self.client.delete(f"/admin/realms/{realm}/users/{user_id}/groups/{group['id']}"),
                lambda group: f"{user.get('username', user_id)} from {group.get('name')}",
                report=report,
            )
        return report

    def _delete_subgroups(self, realm: str, parents: List[Dict[str, Any]], report: RevocationReport, seen: set) -> None:
        for parent in parents:
            if parent.get("id") in seen:
                continue
            found = lookup(report, f"list subgroups of group {parent.get('name')}",
                           lambda: self.subgroups(realm, parent["id"]))
            children = [c for c in found if c.get("id") not in seen]
            seen.update(c.get("id") for c in children)
            revoke_each(
                report.operation,
                children,
                lambda group: self.client.delete(f"/admin/realms/{realm}/groups/{group['id']}"),
                lambda group: f"group {group.get('path') or group.get('name')}",
                report=report,
            )

    @translate_errors("An unexpected error occurred while revoking all group groups")
    def revoke_all_group_groups(self, realm: str) -> RevocationReport:
        """Delete the direct subgroups of every top-level group."""
        report = RevocationReport("revoke_all_group_groups")
        self._delete_subgroups(realm, self._top_level_groups(realm), report, set())
        return report

    @translate_errors("An unexpected error occurred while revoking all user group groups")
    def revoke_all_user_group_groups(self, realm: str) -> RevocationReport:
        """Delete the direct subgroups of every group that has at least one member.

        A subgroup reachable from several users is deleted once.
        """
        report = RevocationReport("revoke_all_user_group_groups")
        seen: set = set()
        for user in self._users(realm):
            groups = lookup(report, f"list groups of user {user['id']}", lambda: self._user_groups(realm, user["id"]))
            self._delete_subgroups(realm, groups, report, seen)
        return report
