"""
Helper utilities
"""
import secrets
import string
from datetime import datetime, timezone

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_reference_number(prefix='JOB', length=6, now=None):
    """
    Generate a human-readable reference such as ``JOB-20261019-7KQ2ZD``.

    Uniqueness is not guaranteed here; callers check against the table.
    """
    now = now or datetime.now(timezone.utc)
    token = ''.join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))
    return f'{prefix}-{now:%Y%m%d}-{token}'


def parse_bool(value):
    """
    Interpret JSON/query-string truthiness strictly.

    Returns:
        bool or None: None when the value is not recognisably boolean
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
    return None
