"""Low-level HTTP client for Keycloak Admin API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import logging
import os
import threading
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5

# Refresh this long before the server-declared expiry
TOKEN_REFRESH_LEEWAY = 10

logger = logging.getLogger(__name__)


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Resource-owner password grant (client id/secret + admin user)
    - Automatic token refresh before expiry
    - Centralized error handling

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_password("master", "admin-cli", "", "admin", "password")
        response = client.get("/admin/realms/demo/users")
    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_SERVER_URL env var)
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_SERVER_URL", "http://keycloak:8080")).rstrip("/")
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def authenticate_password(
        self,
        realm: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        scope: str = "openid",
    ) -> str:
        """Authenticate with the resource-owner password grant.

        Credentials are kept so the token can be refreshed transparently.

        Args:
            realm: Realm holding the client and the admin user
            client_id: OIDC client used for the grant
            client_secret: Client secret (empty for public clients)
            username: Admin username
            password: Admin password
            scope: Requested scope

        Returns:
            Access token
        """
        self._auth_params = {
            "realm": realm,
            "client_id": client_id,
            "client_secret": client_secret,
            "username": username,
            "password": password,
            "scope": scope,
        }
        with self._lock:
            self._refresh_token()
        return self._token

    def authenticate_admin(self, username: str, password: str, realm: str = "master") -> str:
        """Authenticate as admin user through the built-in admin-cli client."""
        return self.authenticate_password(realm, "admin-cli", "", username, password)

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def _refresh_token(self) -> None:
        params = self._auth_params
        if not params:
            raise KeycloakAPIError(401, "Token expired and no credentials stored for refresh", "")
        url = f"{self.base_url}/realms/{params['realm']}/protocol/openid-connect/token"
        data = {
            "grant_type": "password",
            "client_id": params["client_id"],
            "username": params["username"],
            "password": params["password"],
            "scope": params["scope"],
        }
        if params["client_secret"]:
            data["client_secret"] = params["client_secret"]
        try:
            resp = requests.post(url, data=data, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise KeycloakAPIError(0, str(e), url) from e
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        self._token = payload["access_token"]
        expires_in = int(payload.get("expires_in", 60))
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
        logger.debug("Obtained admin token for %s (expires in %ss)", params["username"], expires_in)

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._token or not self._token_expires_at:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_password first", "")

        with self._lock:
            if datetime.now() >= self._token_expires_at - timedelta(seconds=TOKEN_REFRESH_LEEWAY):
                self._refresh_token()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"

        try:
            resp = requests.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise KeycloakAPIError(0, str(e), url) from e
        self._handle_error(resp)
        return resp

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/admin/realms/demo/users")
            params: Query parameters
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Any = None, data: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication."""
        return self._request("POST", path, json=json, data=data, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        """Execute PUT request with automatic authentication."""
        return self._request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication.

        Keycloak expects a JSON body for role-mapping and composite removals.
        """
        if json is not None:
            kwargs["json"] = json
        return self._request("DELETE", path, **kwargs)

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, _error_text(resp), resp.url)


def _error_text(resp: requests.Response) -> str:
    """Prefer Keycloak's errorMessage field over the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return body.get("errorMessage") or body.get("error_description") or body.get("error") or resp.text
    return resp.text


def connect(
    server_url: str,
    realm: str,
    client_id: str,
    client_secret: str,
    username: str,
    password: str,
) -> KeycloakClient:
    """Build a client and authenticate it once, as done at application startup."""
    client = KeycloakClient(server_url)
    client.authenticate_password(realm, client_id, client_secret, username, password)
    return client
