"""Pytest shared fixtures: an in-memory Keycloak admin API and a wired app."""
import copy
import os
import pathlib
import sys
import uuid
from typing import Any, Dict, List, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import pytest

from admin_gateway.config import AppConfig
from admin_gateway.core.gateway import AdminGateway
from admin_gateway.core.keycloak import KeycloakAPIError
from admin_gateway.flask_app import create_app
from scripts import audit

BASE_URL = "http://keycloak.test"


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Keycloak admin REST API
# ─────────────────────────────────────────────────────────────────────────────
class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, headers: Optional[dict] = None):
        self._payload = payload
        self.status_code = status_code
        self.headers = headers or {}

    def json(self):
        return copy.deepcopy(self._payload)


class FakeRealm:
    def __init__(self, name: str):
        self.representation: Dict[str, Any] = {"id": name, "realm": name, "enabled": True}
        self.roles: Dict[str, Dict[str, Any]] = {}
        self.composites: Dict[str, List[str]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.user_roles: Dict[str, List[str]] = {}
        self.credentials: Dict[str, Dict[str, Any]] = {}
        self.groups: Dict[str, Dict[str, Any]] = {}
        self.members: Dict[str, List[str]] = {}
        self.sessions: Dict[str, List[Dict[str, Any]]] = {}
        self.add_role(f"default-roles-{name}", "${role_default-roles}")

    def add_role(self, name: str, description: str = "") -> Dict[str, Any]:
        role = {"id": str(uuid.uuid4()), "name": name, "description": description,
                "composite": False, "clientRole": False, "attributes": {}}
        self.roles[name] = role
        return role


class FakeKeycloak:
    """Stand-in for ``KeycloakClient``: same method surface, state kept in dicts.

    Mirrors the newer admin API: group listings report ``subGroupCount`` and
    children are served from ``/groups/{id}/children``.
    """

    def __init__(self):
        self.base_url = BASE_URL
        self.is_authenticated = True
        self.realms: Dict[str, FakeRealm] = {"master": FakeRealm("master")}
        self.calls: List[tuple] = []
        self._failures: List[tuple] = []

    # Test helpers ──────────────────────────────────────────────────────────
    def fail_on(self, method: str, path_fragment: str, status: int = 500, after: int = 0) -> None:
        """Make the (``after``+1)-th matching call fail with ``status``."""
        self._failures.append([method, path_fragment, status, after])

    def add_group(self, realm: str, name: str, parent: Optional[str] = None) -> Dict[str, Any]:
        store = self.realms[realm]
        group_id = str(uuid.uuid4())
        parent_group = store.groups[parent] if parent else None
        path = f"{parent_group['path']}/{name}" if parent_group else f"/{name}"
        store.groups[group_id] = {"id": group_id, "name": name, "path": path,
                                  "parentId": parent, "attributes": {},
                                  "realmRoles": [], "clientRoles": {}}
        store.members[group_id] = []
        return store.groups[group_id]

    def add_session(self, realm: str, user_id: str) -> None:
        self.realms[realm].sessions.setdefault(user_id, []).append(
            {"id": str(uuid.uuid4()), "userId": user_id, "ipAddress": "127.0.0.1"}
        )

    def group_by_name(self, realm: str, name: str) -> Dict[str, Any]:
        return next(g for g in self.realms[realm].groups.values() if g["name"] == name)

    def user_role_names(self, realm: str, user_id: str) -> List[str]:
        return list(self.realms[realm].user_roles.get(user_id, []))

    # KeycloakClient surface ────────────────────────────────────────────────
    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> FakeResponse:
        return self._dispatch("GET", path, None)

    def post(self, path: str, json: Any = None, data: Optional[Dict] = None, **kwargs) -> FakeResponse:
        return self._dispatch("POST", path, json)

    def put(self, path: str, json: Any = None, **kwargs) -> FakeResponse:
        return self._dispatch("PUT", path, json)

    def delete(self, path: str, json: Any = None, **kwargs) -> FakeResponse:
        return self._dispatch("DELETE", path, json)

    # Routing ───────────────────────────────────────────────────────────────
    def _dispatch(self, method: str, path: str, body: Any) -> FakeResponse:
        self.calls.append((method, path))
        for failure in self._failures:
            if failure[0] == method and failure[1] in path:
                if failure[3] == 0:
                    self._failures.remove(failure)
                    raise KeycloakAPIError(failure[2], "injected failure", path)
                failure[3] -= 1
        assert path.startswith("/admin/realms"), path
        parts = [p for p in path[len("/admin/realms"):].split("/") if p]
        body = copy.deepcopy(body)
        if not parts:
            return self._realms(method, body, path)
        realm = self.realms.get(parts[0])
        if realm is None:
            raise KeycloakAPIError(404, "Realm not found.", path)
        rest = parts[1:]
        if not rest:
            return self._realm(method, parts[0], body, path)
        handler = {
            "roles": self._roles,
            "users": self._users,
            "groups": self._groups,
        }.get(rest[0])
        if handler is None:
            raise KeycloakAPIError(404, "Unknown resource", path)
        return handler(method, realm, rest[1:], body, path)

    def _realms(self, method, body, path):
        if method == "GET":
            return FakeResponse([r.representation for r in self.realms.values()])
        if method == "POST":
            name = body["realm"]
            if name in self.realms:
                raise KeycloakAPIError(409, "Conflict detected. See logs for details", path)
            self.realms[name] = FakeRealm(name)
            self.realms[name].representation.update(body)
            return FakeResponse(None, 201, {"Location": f"{BASE_URL}/admin/realms/{name}"})
        raise KeycloakAPIError(405, "Method not allowed", path)

    def _realm(self, method, name, body, path):
        store = self.realms[name]
        if method == "GET":
            return FakeResponse(store.representation)
        if method == "PUT":
            store.representation = body
            return FakeResponse(None, 204)
        if method == "DELETE":
            del self.realms[name]
            return FakeResponse(None, 204)
        raise KeycloakAPIError(405, "Method not allowed", path)

    def _role(self, store, name, path):
        role = store.roles.get(name)
        if role is None:
            raise KeycloakAPIError(404, "Could not find role", path)
        return role

    def _roles(self, method, store, rest, body, path):
        if not rest:
            if method == "GET":
                return FakeResponse(list(store.roles.values()))
            if method == "POST":
                if body["name"] in store.roles:
                    raise KeycloakAPIError(409, f"Role with name {body['name']} already exists", path)
                store.add_role(body["name"], body.get("description", ""))
                return FakeResponse(None, 201)
        elif len(rest) == 1:
            role = self._role(store, rest[0], path)
            if method == "GET":
                return FakeResponse(role)
            if method == "PUT":
                del store.roles[rest[0]]
                role.update({k: v for k, v in body.items() if k != "id"})
                store.roles[role["name"]] = role
                return FakeResponse(None, 204)
            if method == "DELETE":
                del store.roles[rest[0]]
                for names in store.user_roles.values():
                    if rest[0] in names:
                        names.remove(rest[0])
                return FakeResponse(None, 204)
        elif rest[1] == "composites":
            role = self._role(store, rest[0], path)
            children = store.composites.setdefault(role["name"], [])
            if method == "GET":
                return FakeResponse([store.roles[n] for n in children if n in store.roles])
            refs = [self._role(store, ref["name"], path)["name"] for ref in body]
            if method == "POST":
                children.extend(n for n in refs if n not in children)
            elif method == "DELETE":
                store.composites[role["name"]] = [n for n in children if n not in refs]
            role["composite"] = bool(store.composites[role["name"]])
            return FakeResponse(None, 204)
        raise KeycloakAPIError(405, "Method not allowed", path)

    def _user(self, store, user_id, path):
        user = store.users.get(user_id)
        if user is None:
            raise KeycloakAPIError(404, "User not found", path)
        return user

    def _users(self, method, store, rest, body, path):
        if not rest:
            if method == "GET":
                return FakeResponse(list(store.users.values()))
            if method == "POST":
                if any(u["username"] == body.get("username") for u in store.users.values()):
                    raise KeycloakAPIError(409, "User exists with same username", path)
                user_id = str(uuid.uuid4())
                body.pop("credentials", None)
                body.setdefault("enabled", False)
                body.setdefault("attributes", None)
                body["id"] = user_id
                store.users[user_id] = body
                location = f"{BASE_URL}/admin/realms/{store.representation['realm']}/users/{user_id}"
                return FakeResponse(None, 201, {"Location": location})
            raise KeycloakAPIError(405, "Method not allowed", path)

        user = self._user(store, rest[0], path)
        user_id = user["id"]
        sub = rest[1:]
        if not sub:
            if method == "GET":
                return FakeResponse(user)
            if method == "PUT":
                user.update(body)
                user["id"] = user_id
                return FakeResponse(None, 204)
            if method == "DELETE":
                del store.users[user_id]
                store.user_roles.pop(user_id, None)
                for members in store.members.values():
                    if user_id in members:
                        members.remove(user_id)
                return FakeResponse(None, 204)
        elif sub == ["role-mappings", "realm"]:
            assigned = store.user_roles.setdefault(user_id, [])
            if method == "GET":
                return FakeResponse([store.roles[n] for n in assigned if n in store.roles])
            names = [self._role(store, ref["name"], path)["name"] for ref in body]
            if method == "POST":
                assigned.extend(n for n in names if n not in assigned)
            elif method == "DELETE":
                store.user_roles[user_id] = [n for n in assigned if n not in names]
            return FakeResponse(None, 204)
        elif sub[0] == "groups":
            if len(sub) == 1:
                if method != "GET":
                    raise KeycloakAPIError(405, "Method not allowed", path)
                return FakeResponse([
                    self._summary(g) for gid, g in store.groups.items()
                    if user_id in store.members.get(gid, [])
                ])
            group = self._group(store, sub[1], path)
            members = store.members[group["id"]]
            if method == "PUT" and user_id not in members:
                members.append(user_id)
            elif method == "DELETE" and user_id in members:
                members.remove(user_id)
            return FakeResponse(None, 204)
        elif sub == ["reset-password"] and method == "PUT":
            store.credentials[user_id] = body
            return FakeResponse(None, 204)
        elif sub == ["sessions"] and method == "GET":
            return FakeResponse(store.sessions.get(user_id, []))
        elif sub == ["logout"] and method == "POST":
            store.sessions[user_id] = []
            return FakeResponse(None, 204)
        raise KeycloakAPIError(405, "Method not allowed", path)

    def _group(self, store, group_id, path):
        group = store.groups.get(group_id)
        if group is None:
            raise KeycloakAPIError(404, "Could not find group by id", path)
        return group

    def _summary(self, group):
        store = next(r for r in self.realms.values() if group["id"] in r.groups)
        summary = {k: v for k, v in group.items() if k != "parentId"}
        summary["subGroupCount"] = sum(1 for g in store.groups.values() if g["parentId"] == group["id"])
        return summary

    def _groups(self, method, store, rest, body, path):
        if not rest:
            if method == "GET":
                return FakeResponse([self._summary(g) for g in store.groups.values() if g["parentId"] is None])
            if method == "POST":
                if any(g["name"] == body["name"] and g["parentId"] is None for g in store.groups.values()):
                    raise KeycloakAPIError(409, f"Top level group named '{body['name']}' already exists.", path)
                group = self.add_group(store.representation["realm"], body["name"])
                return FakeResponse(None, 201, {"Location": f"{BASE_URL}{path}/{group['id']}"})
            raise KeycloakAPIError(405, "Method not allowed", path)

        group = self._group(store, rest[0], path)
        sub = rest[1:]
        if not sub:
            if method == "GET":
                return FakeResponse(self._summary(group))
            if method == "PUT":
                group.update({k: v for k, v in body.items() if k not in ("id", "subGroups", "subGroupCount")})
                return FakeResponse(None, 204)
            if method == "DELETE":
                self._delete_group(store, group["id"])
                return FakeResponse(None, 204)
        elif sub == ["children"] and method == "GET":
            return FakeResponse([self._summary(g) for g in store.groups.values() if g["parentId"] == group["id"]])
        elif sub == ["members"] and method == "GET":
            return FakeResponse([store.users[u] for u in store.members[group["id"]] if u in store.users])
        raise KeycloakAPIError(405, "Method not allowed", path)

    def _delete_group(self, store, group_id):
        for child_id in [g["id"] for g in store.groups.values() if g["parentId"] == group_id]:
            self._delete_group(store, child_id)
        store.groups.pop(group_id, None)
        store.members.pop(group_id, None)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def temp_audit_log(monkeypatch, tmp_path):
    """Keep the audit trail of every test in its own directory."""
    audit_dir = tmp_path / "audit"
    audit_file = audit_dir / "admin-events.jsonl"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_file)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_file


@pytest.fixture
def fake_keycloak():
    fake = FakeKeycloak()
    fake.realms["demo"] = FakeRealm("demo")
    return fake


@pytest.fixture
def gateway(fake_keycloak):
    return AdminGateway(fake_keycloak, "demo", operator="pytest")


@pytest.fixture
def app_config():
    return AppConfig(
        demo_mode=True,
        keycloak_server_url=BASE_URL,
        keycloak_realm="demo",
        keycloak_auth_realm="master",
        keycloak_username="admin",
        keycloak_password="admin",
        api_auth_enabled=False,
        api_token_issuer=f"{BASE_URL}/realms/master",
    )


@pytest.fixture
def app(gateway, app_config):
    flask_app = create_app(gateway=gateway, cfg=app_config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
