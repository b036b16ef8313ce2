"""
Bearer token guard for the admin API.

When ``API_AUTH_ENABLED`` is on, every ``/api/keycloak`` request must carry a
Keycloak-issued JWT (RFC 6750) holding the configured realm role.

Security:
- RSA-SHA256 signature verification via JWKS (RFC 7517)
- Expiration and issuer validation (RFC 7519)
- JWKS caching (1-hour refresh)
"""

import logging
from typing import Any, Dict, List, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidSignatureError,
    PyJWKClientError,
)
from flask import current_app, g, jsonify, request

logger = logging.getLogger(__name__)

# Global JWKS client (cached singleton)
_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client for the auth realm.

    Returns:
        PyJWKClient: Configured client for Keycloak realm
    """
    global _jwks_client

    if _jwks_client is None:
        cfg = current_app.config["APP_CONFIG"]
        logger.info(f"Initializing JWKS client for: {cfg.jwks_url}")
        _jwks_client = PyJWKClient(
            cfg.jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "keycloak-admin-gateway/1.0"},
        )

    return _jwks_client


def validate_jwt_token(token: str) -> Dict[str, Any]:
    """
    Validate a JWT bearer token.

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.api_token_issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iss": True,
                "verify_aud": False,  # admin-cli tokens carry no API audience
                "require": ["exp", "iat"],
            },
            leeway=5,
        )
    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer (token from wrong Keycloak realm): {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except PyJWKClientError as e:
        raise TokenValidationError(f"Signing key unavailable: {e}")
    except jwt.InvalidTokenError as e:
        raise TokenValidationError(f"Token validation failed: {e}")

    logger.debug(f"JWT validated for subject: {claims.get('preferred_username') or claims.get('sub')}")
    return claims


def realm_roles(claims: Dict[str, Any]) -> List[str]:
    """Realm roles listed in the token's ``realm_access`` claim."""
    realm_access = claims.get("realm_access") or {}
    roles = realm_access.get("roles") or []
    return [role for role in roles if isinstance(role, str)]


def _error(status: int, error: str, message: str):
    response = jsonify({"error": error, "message": message})
    response.status_code = status
    if status == 401:
        response.headers["WWW-Authenticate"] = 'Bearer realm="keycloak-admin"'
    return response


def check_bearer_token():
    """
    Enforce the bearer token policy for the current request.

    Returns:
        None when the request may proceed, otherwise an error response
        (401 for a missing or invalid token, 403 for a missing role).
    """
    cfg = current_app.config["APP_CONFIG"]
    if not cfg.api_auth_enabled:
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        logger.warning("Admin API request missing Authorization header")
        return _error(401, "Unauthorized", "Authorization header required. Use 'Authorization: Bearer <token>'")

    if not auth_header.startswith("Bearer "):
        logger.warning(f"Admin API request with invalid Authorization format: {auth_header[:20]}")
        return _error(401, "Unauthorized", "Invalid Authorization header format. Expected 'Bearer <token>'")

    token = auth_header[7:].strip()
    if not token:
        return _error(401, "Unauthorized", "Bearer token is empty")

    try:
        claims = validate_jwt_token(token)
    except TokenValidationError as e:
        logger.warning(f"Admin API JWT validation failed: {e}")
        return _error(401, "Unauthorized", str(e))

    required_role = cfg.api_required_role
    if required_role and required_role not in realm_roles(claims):
        logger.warning(f"Admin API caller {claims.get('sub')} lacks role '{required_role}'")
        return _error(403, "Forbidden", f"Required role: {required_role}")

    g.token_claims = claims
    return None
