"""Middleware package"""
from .request_id import RequestIdMiddleware, RequestIdFilter, current_request_id
from .sanitize import sanitize_json_input, sanitize_dict, set_security_headers

__all__ = [
    'RequestIdMiddleware',
    'RequestIdFilter',
    'current_request_id',
    'sanitize_json_input',
    'sanitize_dict',
    'set_security_headers',
]
