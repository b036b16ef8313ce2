"""Group endpoints: CRUD, membership, hierarchy listings and mass revocation.

Static segments (``user``, ``group``, ``tree``, ``revoke``) take precedence
over ``<group_name>`` in the URL map.
"""
from flask import Blueprint, jsonify, request

from .helpers import get_gateway, ok, optional_int_arg, required_arg

bp = Blueprint("groups", __name__, url_prefix="/groups")


@bp.route("", methods=["POST"])
def create_group():
    get_gateway().create_group(required_arg("groupName"))
    return ok()


@bp.route("", methods=["GET"])
def list_groups():
    return jsonify(get_gateway().list_groups())


@bp.route("/<group_name>", methods=["PUT"])
def update_group(group_name):
    """Rename a group, copying attributes and role mappings from an optional body."""
    representation = request.get_json(silent=True)
    if not isinstance(representation, dict):
        representation = None
    updated = get_gateway().update_group(group_name, required_arg("newGroupName"), representation)
    return jsonify(updated)


@bp.route("/<group_name>", methods=["DELETE"])
def delete_group(group_name):
    get_gateway().delete_group(group_name)
    return ok()


@bp.route("/<group_name>", methods=["GET"])
def list_users_in_group(group_name):
    return jsonify(get_gateway().list_users_in_group(group_name))


@bp.route("/user/<user_id>", methods=["GET"])
def list_groups_for_user(user_id):
    return jsonify(get_gateway().list_groups_for_user(user_id))


@bp.route("/user/<user_id>", methods=["POST"])
def assign_group_to_user(user_id):
    get_gateway().assign_group_to_user(required_arg("groupName"), user_id)
    return ok()


@bp.route("/revoke/<user_id>", methods=["DELETE"])
def revoke_group_from_user(user_id):
    get_gateway().revoke_group_from_user(required_arg("groupName"), user_id)
    return ok()


@bp.route("/user", methods=["GET"])
def list_user_groups():
    return jsonify(get_gateway().list_user_groups())


@bp.route("/group", methods=["GET"])
def list_group_groups():
    return jsonify(get_gateway().list_group_groups())


@bp.route("/group/user", methods=["GET"])
def list_user_group_groups():
    return jsonify(get_gateway().list_user_group_groups())


@bp.route("/tree", methods=["GET"])
def walk_group_tree():
    return jsonify(get_gateway().walk_group_tree(optional_int_arg("maxDepth")))


# Mass revocation
@bp.route("/revoke", methods=["DELETE"])
def revoke_all_groups():
    return jsonify(get_gateway().revoke_all_groups().to_dict())


@bp.route("/user/revoke", methods=["DELETE"])
def revoke_all_user_groups():
    return jsonify(get_gateway().revoke_all_user_groups().to_dict())


@bp.route("/group/revoke", methods=["DELETE"])
def revoke_all_group_groups():
    return jsonify(get_gateway().revoke_all_group_groups().to_dict())


@bp.route("/group/revoke/user", methods=["DELETE"])
def revoke_all_user_group_groups():
    return jsonify(get_gateway().revoke_all_user_group_groups().to_dict())
