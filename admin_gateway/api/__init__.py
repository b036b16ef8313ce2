"""HTTP boundary: Flask blueprints mounted under ``/api/keycloak``."""
from flask import Blueprint

from . import attributes, groups, permissions, realms, roles, users
from .decorators import check_bearer_token

API_PREFIX = "/api/keycloak"

bp = Blueprint("keycloak", __name__)
bp.before_request(check_bearer_token)

for _child in (realms, roles, groups, users, permissions, attributes):
    bp.register_blueprint(_child.bp)

__all__ = ["API_PREFIX", "bp"]
