"""Custom user attribute endpoints."""
from flask import Blueprint, jsonify

from .helpers import get_gateway, json_body, ok, required_arg

bp = Blueprint("attributes", __name__, url_prefix="/custom/attribute")


@bp.route("", methods=["POST"])
def add_custom_attribute():
    # attributeName carries the user id
    get_gateway().add_custom_attribute(
        required_arg("attributeName"),
        required_arg("key"),
        required_arg("value"),
    )
    return ok()


@bp.route("/<user_id>", methods=["DELETE"])
def remove_custom_attribute(user_id):
    get_gateway().remove_custom_attribute(user_id, required_arg("key"))
    return ok()


@bp.route("", methods=["GET"])
def list_custom_attributes():
    """First value of each attribute of the user representation sent as body."""
    user = json_body(dict, "user representation")
    return jsonify(get_gateway().list_custom_attributes(user))
