from flask import Blueprint, jsonify, request

from servicehub import notifications
from servicehub.errors import NotFoundError
from servicehub.utils import parse_bool

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/<int:user_id>', methods=['GET'])
def list_notifications(user_id):
    """
    A user's notifications, newest first
    GET /api/notifications/:userId?unread=true
    """
    unread_only = parse_bool(request.args.get('unread')) is True
    items = notifications.list_for_user(user_id, unread_only=unread_only)
    return jsonify([item.to_dict() for item in items]), 200


@notifications_bp.route('/<int:notification_id>/read', methods=['PATCH'])
def mark_notification_read(notification_id):
    notification = notifications.mark_read(notification_id)
    if notification is None:
        raise NotFoundError('Notification not found')
    return jsonify(notification.to_dict()), 200
