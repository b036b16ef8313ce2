"""Request parsing and response helpers shared by the admin blueprints."""
from __future__ import annotations
from typing import Any, Optional

from flask import abort, current_app, request

from admin_gateway.core.gateway import AdminGateway


def get_gateway() -> AdminGateway:
    return current_app.extensions["admin_gateway"]


def ok():
    """Plain ``OK`` body returned by every mutating endpoint."""
    return ("OK", 200, {"Content-Type": "text/plain"})


def required_arg(name: str) -> str:
    """Query parameter that must be present and non-empty."""
    value = request.args.get(name, "").strip()
    if not value:
        abort(400, description=f"Missing required query parameter '{name}'")
    return value


def optional_int_arg(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except ValueError:
        abort(400, description=f"Query parameter '{name}' must be an integer")
    if number < 0:
        abort(400, description=f"Query parameter '{name}' must not be negative")
    return number


def flag_arg(name: str) -> bool:
    return request.args.get(name, "false").strip().lower() in {"1", "true", "yes"}


def json_body(expected: type, what: str) -> Any:
    """Parsed JSON body, rejected with 400 unless it is an ``expected`` instance."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, expected):
        abort(400, description=f"Request body must be a JSON {what}")
    return payload
