"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with the admin blueprints, error handlers and the
shared administrative gateway.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask

from admin_gateway.config import AppConfig, load_settings
from admin_gateway.core.gateway import AdminGateway
from admin_gateway.core.keycloak import connect


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(gateway: Optional[AdminGateway] = None, cfg: Optional[AppConfig] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        gateway: Pre-built gateway; when omitted, one is built by
            authenticating against Keycloak with the configured credentials
        cfg: Settings; loaded from the environment when omitted
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["DEMO_MODE"] = cfg.demo_mode
    app.json.sort_keys = False

    app.extensions["admin_gateway"] = gateway or build_gateway(cfg)

    # Register blueprints
    from admin_gateway.api import API_PREFIX, bp as keycloak_bp
    from admin_gateway.api import errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(keycloak_bp, url_prefix=API_PREFIX)

    # Register error handlers
    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] Keycloak admin API registered at {API_PREFIX} (realm={cfg.keycloak_realm})")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def build_gateway(cfg: AppConfig) -> AdminGateway:
    """Authenticate once with the password grant and wrap the client."""
    client = connect(
        cfg.keycloak_server_url,
        cfg.keycloak_auth_realm,
        cfg.keycloak_client_id,
        cfg.keycloak_client_secret,
        cfg.keycloak_username,
        cfg.keycloak_password,
    )
    return AdminGateway(client, cfg.keycloak_realm, operator=cfg.keycloak_username)


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)
