"""Permission endpoints. Present on the surface, always answered with 501."""
from flask import Blueprint

from .helpers import get_gateway, required_arg

bp = Blueprint("permissions", __name__, url_prefix="/permissions")


@bp.route("", methods=["POST"])
def create_permission():
    get_gateway().create_permission(required_arg("permissionName"), {})


@bp.route("", methods=["PUT"])
def update_permission():
    get_gateway().update_permission(required_arg("permissionName"), {})


@bp.route("", methods=["DELETE"])
def delete_permission():
    get_gateway().delete_permission(required_arg("permissionName"))
