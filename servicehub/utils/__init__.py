"""Utilities package"""
from .validators import (
    validate_email, validate_pincode, normalize_phone, require_fields,
    check_strings, require_strings, check_choice, parse_positive_amount,
    parse_iso_date, parse_id, raise_if_errors,
)
from .helpers import generate_reference_number, parse_bool

__all__ = [
    'validate_email',
    'validate_pincode',
    'normalize_phone',
    'require_fields',
    'check_strings',
    'require_strings',
    'check_choice',
    'parse_positive_amount',
    'parse_iso_date',
    'parse_id',
    'raise_if_errors',
    'generate_reference_number',
    'parse_bool',
]
