"""
Validation utilities

Each ``validate_*`` returns a bool; ``require_fields`` and the parsers
collect field-level messages into a dict that ends up in
``ValidationError.fields``.
"""
import math
import re
from datetime import datetime

from servicehub.errors import ValidationError


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email or not isinstance(email, str):
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def normalize_phone(phone):
    """
    Reduce an Indian mobile number to its 10 significant digits.

    "+91 98765 43210", "919876543210" and "9876543210" all become
    "9876543210". Returns None if the input is not a valid mobile number.
    """
    if not phone or not isinstance(phone, str):
        return None

    digits = re.sub(r'[\s\-\(\)\.\+]', '', phone)
    if len(digits) == 12 and digits.startswith('91'):
        digits = digits[2:]

    if re.match(r'^[6-9]\d{9}$', digits):
        return digits
    return None


def validate_pincode(pincode):
    """Validate 6-digit Indian postal code"""
    if not pincode:
        return False
    return bool(re.match(r'^[1-9]\d{5}$', str(pincode)))


def require_fields(data, fields):
    """
    Collect missing/blank required fields.

    Returns:
        dict: field -> message for every missing field
    """
    errors = {}
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[field] = 'This field is required'
    return errors


def check_strings(data, fields, errors):
    """Record 'Must be a string' for any present, non-string value."""
    for field in fields:
        value = data.get(field)
        if value is not None and not isinstance(value, str) and field not in errors:
            errors[field] = 'Must be a string'
    return errors


def require_strings(data, fields):
    """``require_fields`` for free-text fields that must also be strings."""
    return check_strings(data, fields, require_fields(data, fields))


def check_choice(data, field, choices, errors):
    value = data.get(field)
    if value is not None and value not in choices:
        errors[field] = f'Must be one of: {", ".join(choices)}'


def parse_positive_amount(value, field, errors, required=True):
    """Parse a money amount; records an error and returns None when invalid."""
    if value is None or value == '':
        if required:
            errors[field] = 'This field is required'
        return None
    if isinstance(value, bool):
        errors[field] = 'Must be a number'
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        errors[field] = 'Must be a number'
        return None
    if not math.isfinite(amount):
        errors[field] = 'Must be a number'
        return None
    if amount <= 0:
        errors[field] = 'Must be greater than zero'
        return None
    return round(amount, 2)


def parse_iso_date(value, field, errors):
    """Parse YYYY-MM-DD; blank values are allowed and return None."""
    if not value:
        return None
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        errors[field] = 'Invalid date format. Use YYYY-MM-DD'
        return None


def parse_id(value, field):
    """Coerce an id from a payload or query string, raising ValidationError."""
    if value is None or value == '':
        raise ValidationError(f'{field} is required', {field: 'This field is required'})
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer', {field: 'Must be an integer'})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer', {field: 'Must be an integer'})


def raise_if_errors(errors, message='Validation failed'):
    if errors:
        raise ValidationError(message, errors)
