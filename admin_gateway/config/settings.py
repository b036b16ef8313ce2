"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read {SECRETS_DIR}/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(var_name: str, default: bool) -> bool:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Keycloak connection
    keycloak_server_url: str
    keycloak_realm: str = "master"
    keycloak_auth_realm: str = "master"
    keycloak_client_id: str = "admin-cli"
    keycloak_client_secret: str = ""
    keycloak_username: str = "admin"
    keycloak_password: str = ""

    # Bearer token guard on /api/keycloak
    api_auth_enabled: bool = True
    api_token_issuer: str = ""
    api_required_role: str = "admin"

    # Logging
    log_level: str = "INFO"

    @property
    def jwks_url(self) -> str:
        """JWKS endpoint of the realm that issues bearer tokens for the API."""
        return f"{self.keycloak_server_url}/realms/{self.keycloak_auth_realm}/protocol/openid-connect/certs"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = _env_flag("DEMO_MODE", False)

    keycloak_server_url = _get_or_generate(
        "KEYCLOAK_SERVER_URL",
        demo_default="http://localhost:9091",
        demo_mode=demo_mode,
    ).rstrip("/")
    keycloak_realm = _get_or_generate("KEYCLOAK_REALM", demo_default="master", demo_mode=demo_mode)
    keycloak_auth_realm = os.environ.get("KEYCLOAK_AUTH_REALM") or keycloak_realm
    keycloak_client_id = os.environ.get("KEYCLOAK_CLIENT_ID") or "admin-cli"

    keycloak_client_secret = _load_secret_from_file("keycloak_client_secret", "KEYCLOAK_CLIENT_SECRET") or ""

    keycloak_username = _get_or_generate("KEYCLOAK_USERNAME", demo_default="admin", demo_mode=demo_mode)
    keycloak_password = _load_secret_from_file("keycloak_password", "KEYCLOAK_PASSWORD")
    if not keycloak_password:
        keycloak_password = _get_or_generate("KEYCLOAK_PASSWORD", demo_default="admin", demo_mode=demo_mode)

    # Audit log signing key is read by scripts.audit from the environment
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY")
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key
    elif demo_mode:
        demo_key = "demo-audit-signing-key-change-in-production"
        os.environ["AUDIT_LOG_SIGNING_KEY"] = demo_key
        print(f"[demo-mode] Using demo AUDIT_LOG_SIGNING_KEY: {demo_key[:20]}...")

    api_auth_enabled = _env_flag("API_AUTH_ENABLED", not demo_mode)
    api_token_issuer = (
        os.environ.get("API_TOKEN_ISSUER")
        or f"{keycloak_server_url}/realms/{keycloak_auth_realm}"
    )
    api_required_role = (os.environ.get("API_REQUIRED_ROLE") or "admin").strip()

    log_level = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(
        f"[settings] Mode={mode_label}; server={keycloak_server_url}; "
        f"realm={keycloak_realm}; auth_realm={keycloak_auth_realm}; client_id={keycloak_client_id}"
    )
    if not api_auth_enabled:
        print("[settings] WARNING: API bearer token check disabled (API_AUTH_ENABLED=false)")
    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        keycloak_server_url=keycloak_server_url,
        keycloak_realm=keycloak_realm,
        keycloak_auth_realm=keycloak_auth_realm,
        keycloak_client_id=keycloak_client_id,
        keycloak_client_secret=keycloak_client_secret,
        keycloak_username=keycloak_username,
        keycloak_password=keycloak_password,
        api_auth_enabled=api_auth_enabled,
        api_token_issuer=api_token_issuer,
        api_required_role=api_required_role,
        log_level=log_level,
    )
