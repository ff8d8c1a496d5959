"""
Error taxonomy for the marketplace core and the JSON handlers that render it.

Domain modules (bidding, onboarding) raise these; route handlers let them
propagate and ``register_error_handlers`` turns them into responses.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ServiceHubError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 400

    def __init__(self, message, fields=None):
        super().__init__(message)
        self.message = message
        self.fields = fields or {}

    def to_dict(self):
        data = {'error': self.message}
        if self.fields:
            data['fields'] = self.fields
        return data


class ValidationError(ServiceHubError):
    """Malformed or missing input."""
    status_code = 400


class NotFoundError(ServiceHubError):
    """Referenced job, bid, user or worker profile does not exist."""
    status_code = 404


class InvalidStateError(ServiceHubError):
    """Entity is in a state that does not allow the operation."""
    status_code = 409


class IneligibleWorkerError(InvalidStateError):
    """Worker is not both approved and verified."""
    status_code = 403


class ConflictError(ServiceHubError):
    """Concurrent modification or duplicate record."""
    status_code = 409


def register_error_handlers(app):
    """Attach JSON error handlers to the Flask app."""

    @app.errorhandler(ServiceHubError)
    def handle_service_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # get_headers() is a list of (name, value) pairs
        headers = dict(e.get_headers()) if hasattr(e, "get_headers") else {}
        response = getattr(e, "response", None)
        if response is not None:
            headers.update(response.headers)
        retry_after = headers.get("Retry-After")
        try:
            retry_after_seconds = int(retry_after) if retry_after else 60
        except (TypeError, ValueError):
            retry_after_seconds = 60
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "retry_after": retry_after_seconds,
        }), 429

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error: %s", e)
        return jsonify({'error': 'Internal server error'}), 500
