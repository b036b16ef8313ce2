"""Realm lifecycle endpoints."""
from flask import Blueprint, jsonify

from .helpers import get_gateway, json_body, ok, required_arg

bp = Blueprint("realms", __name__, url_prefix="/realms")


@bp.route("", methods=["POST"])
def create_realm():
    get_gateway().create_realm(required_arg("realmName"))
    return ok()


@bp.route("/<realm_name>", methods=["PUT"])
def update_realm(realm_name):
    """Apply a partial update; unknown keys are ignored."""
    updates = json_body(dict, "object")
    return jsonify(get_gateway().update_realm(realm_name, updates))


@bp.route("/<realm_name>", methods=["DELETE"])
def delete_realm(realm_name):
    get_gateway().delete_realm(realm_name)
    return ok()
