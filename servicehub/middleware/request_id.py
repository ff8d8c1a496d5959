"""
Request ID middleware for request tracing and logging
"""
import logging
import uuid

from flask import has_request_context, request


class RequestIdMiddleware:
    """
    WSGI middleware to add unique request ID to each request
    Useful for logging and tracing requests across services
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        # Honour an upstream proxy's id, otherwise mint one
        request_id = environ.get('HTTP_X_REQUEST_ID') or uuid.uuid4().hex
        environ['request_id'] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append(('X-Request-ID', request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)


def current_request_id():
    """Request id of the request being handled, or None outside a request."""
    if not has_request_context():
        return None
    return request.environ.get('request_id')


class RequestIdFilter(logging.Filter):
    """Stamp every log record with the current request id ("-" outside requests)."""

    def filter(self, record):
        record.request_id = current_request_id() or '-'
        return True
