"""User endpoints: lifecycle, status, credentials and sessions."""
from flask import Blueprint, jsonify, request

from .helpers import flag_arg, get_gateway, json_body, ok, required_arg

bp = Blueprint("users", __name__, url_prefix="/users")


@bp.route("", methods=["POST"])
def create_user():
    created = get_gateway().create_user(json_body(dict, "user representation"))
    return jsonify(created), 201


@bp.route("", methods=["PUT"])
def update_user():
    return jsonify(get_gateway().update_user(json_body(dict, "user representation")))


@bp.route("", methods=["GET"])
def list_users():
    return jsonify(get_gateway().list_users())


@bp.route("/<user_id>", methods=["GET"])
def get_user_information(user_id):
    return jsonify(get_gateway().get_user_information(user_id))


@bp.route("/<user_id>", methods=["DELETE"])
def delete_user(user_id):
    get_gateway().delete_user(user_id)
    return ok()


def _status_change(change):
    """Echo the modified user, persisting it only with ``?commit=true``."""
    if flag_arg("commit"):
        change.commit()
    return jsonify(change.representation)


@bp.route("/status/<user_id>/enable", methods=["PUT"])
def enable_user(user_id):
    return _status_change(get_gateway().enable_user(user_id))


@bp.route("/status/<user_id>/disable", methods=["PUT"])
def disable_user(user_id):
    return _status_change(get_gateway().disable_user(user_id))


@bp.route("/status/<user_id>/logout", methods=["PUT"])
def logout_user(user_id):
    get_gateway().logout_user(user_id)
    return ok()


@bp.route("/password/<user_id>", methods=["PUT"])
def update_password(user_id):
    get_gateway().update_password(
        user_id,
        request.args.get("oldPassword"),
        required_arg("newPassword"),
    )
    return ok()


@bp.route("/sessions/<user_id>", methods=["GET"])
def list_user_sessions(user_id):
    return jsonify(get_gateway().list_user_sessions(user_id))


@bp.route("/revoke", methods=["DELETE"])
def revoke_all_users():
    return jsonify(get_gateway().revoke_all_users().to_dict())
