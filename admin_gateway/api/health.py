"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Ready once the gateway holds an authenticated Keycloak client."""
    gateway = current_app.extensions.get("admin_gateway")
    if gateway is None or not gateway.client.is_authenticated:
        return ("not ready", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
