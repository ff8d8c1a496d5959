"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in create_app().
"""
from contextlib import contextmanager

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


@contextmanager
def atomic():
    """Commit the session on success, roll back and re-raise on any error."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

# Storage URI and the enabled flag come from app config (RATELIMIT_*).
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100 per minute"],
)
