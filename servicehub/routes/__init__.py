"""API blueprints"""
from flask import request

from servicehub.errors import ValidationError
from servicehub.utils import parse_id


def json_body():
    """Decoded JSON object body, or ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def optional_id_arg(name):
    """Integer query-string id, None when absent, ValidationError when malformed."""
    value = request.args.get(name)
    if not value:
        return None
    return parse_id(value, name)
