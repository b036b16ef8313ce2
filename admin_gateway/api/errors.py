"""Error handlers for the application."""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from admin_gateway.core.keycloak import (
    Conflict,
    MassRevocationFailed,
    NotFound,
    NotImplementedOperation,
    OperationFailed,
    Transient,
    Unauthorized,
)

logger = logging.getLogger(__name__)

# Checked in order; most specific kinds first
KIND_STATUS = (
    (NotFound, 404),
    (Conflict, 409),
    (Unauthorized, 502),
    (Transient, 503),
    (MassRevocationFailed, 500),
    (OperationFailed, 500),
)


def status_for(error: OperationFailed) -> int:
    for kind, status in KIND_STATUS:
        if isinstance(error, kind):
            return status
    return 500


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(OperationFailed)
    def operation_failed(error):
        """Map gateway error kinds to HTTP statuses."""
        status = status_for(error)
        body = {"error": error.kind, "message": str(error)}
        if isinstance(error, MassRevocationFailed):
            body["report"] = error.report.to_dict()
        if status >= 500:
            logger.error("%s: %s", error.kind, error)
        else:
            logger.info("%s: %s", error.kind, error)
        return jsonify(body), status

    @app.errorhandler(NotImplementedOperation)
    def not_implemented(error):
        return jsonify({"error": error.kind, "message": str(error)}), 501

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return jsonify({"error": "Bad Request", "message": error.description}), 400

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method Not Allowed", "message": error.description}), 405

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
