"""
Base model with common fields and helpers
"""
from datetime import datetime, date, timezone

from servicehub.extensions import db


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """ISO-8601 string for a date/datetime column value, None passes through."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class BaseModel(db.Model):
    """Abstract base model with integer id and timestamps"""
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def timestamps(self):
        return {
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def update_from(self, data, allowed):
        """
        Copy whitelisted camelCase keys from ``data`` onto attributes.

        Args:
            data (dict): request payload
            allowed (dict): camelCase key -> attribute name

        Returns:
            list: attribute names that were set
        """
        changed = []
        for key, attr in allowed.items():
            if key in data:
                setattr(self, attr, data[key])
                changed.append(attr)
        return changed
