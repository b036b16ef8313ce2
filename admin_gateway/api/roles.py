"""Realm role endpoints: CRUD, composites and user grants."""
from flask import Blueprint, abort, jsonify

from .helpers import get_gateway, json_body, ok, required_arg

bp = Blueprint("roles", __name__, url_prefix="/roles")


@bp.route("", methods=["POST"])
def create_role():
    get_gateway().create_role(required_arg("roleName"))
    return ok()


@bp.route("", methods=["GET"])
def list_roles():
    return jsonify(get_gateway().list_roles())


@bp.route("/<role_name>", methods=["GET"])
def get_role(role_name):
    return jsonify(get_gateway().get_role(role_name))


@bp.route("/<role_name>", methods=["PUT"])
def update_role(role_name):
    updates = json_body(dict, "object")
    return jsonify(get_gateway().update_role(role_name, updates))


@bp.route("/<role_name>", methods=["DELETE"])
def remove_role(role_name):
    get_gateway().remove_role(role_name)
    return ok()


def _child_roles():
    children = json_body(list, "list of role names")
    if not all(isinstance(child, str) for child in children):
        abort(400, description="Request body must be a JSON list of role names")
    return children


@bp.route("/composites/<parent_role>", methods=["POST"])
def add_composite_role(parent_role):
    get_gateway().add_composite_role(parent_role, _child_roles())
    return ok()


@bp.route("/composites/<parent_role>", methods=["DELETE"])
def remove_composite_role(parent_role):
    get_gateway().remove_composite_role(parent_role, _child_roles())
    return ok()


@bp.route("/grant/<user_id>/<role_name>", methods=["POST"])
def grant_role_to_user(user_id, role_name):
    get_gateway().grant_role_to_user(user_id, role_name)
    return ok()


@bp.route("/revoke/<user_id>/<role_name>", methods=["DELETE"])
def revoke_role_from_user(user_id, role_name):
    get_gateway().revoke_role_from_user(user_id, role_name)
    return ok()


@bp.route("/revoke/<user_id>", methods=["DELETE"])
def revoke_all_roles_from_user(user_id):
    get_gateway().revoke_all_roles_from_user(user_id)
    return ok()


@bp.route("/revoke", methods=["DELETE"])
def revoke_all_roles():
    return jsonify(get_gateway().revoke_all_roles().to_dict())
