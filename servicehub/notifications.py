"""
In-app notification records.

Rows are added to the current session and committed together with the
state change they describe; pushing them to devices is handled elsewhere.
"""
from servicehub.extensions import db
from servicehub.models import Notification


def notify(user_id, type_, title, body=None, data=None):
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        body=body,
        data=data or {},
    )
    db.session.add(notification)
    return notification


def list_for_user(user_id, unread_only=False):
    query = Notification.query.filter_by(user_id=user_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_read(notification_id):
    """Returns the notification, or None if it does not exist."""
    notification = db.session.get(Notification, notification_id)
    if notification is None:
        return None
    notification.is_read = True
    db.session.commit()
    return notification
