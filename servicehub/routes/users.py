"""
User and worker directory routes.

Reads are open to the client app; approval and verification changes
require an admin token.
"""
from flask import Blueprint, jsonify, request

from servicehub import onboarding
from servicehub.errors import NotFoundError, ValidationError
from servicehub.extensions import db
from servicehub.models import User, ROLES
from servicehub.routes import json_body
from servicehub.routes.auth import require_admin
from servicehub.utils import parse_bool

users_bp = Blueprint('users', __name__)


@users_bp.route('/users', methods=['GET'])
def list_users():
    """
    List users, newest first
    GET /api/users?role=WORKER
    """
    query = User.query
    role = request.args.get('role')
    if role:
        if role not in ROLES:
            raise ValidationError('Invalid role filter', {'role': f'Must be one of: {", ".join(ROLES)}'})
        query = query.filter(User.role == role)
    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([user.to_dict() for user in users]), 200


@users_bp.route('/users/<int:user_id>', methods=['GET'])
def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return jsonify(user.to_dict()), 200


@users_bp.route('/users/<int:target_id>', methods=['PATCH'])
@require_admin
def update_user(target_id, user_id):
    """
    Edit a user; ``isActive`` approves or deactivates the account
    PATCH /api/users/:id
    Body: {"isActive": true}
    """
    user = onboarding.update_user(target_id, json_body())
    return jsonify(user.to_dict()), 200


@users_bp.route('/workers', methods=['GET'])
def list_workers():
    """
    List worker profiles
    GET /api/workers?eligible=true&category=plumbing

    ``eligible=true`` returns only approved and verified workers.
    """
    eligible = None
    if 'eligible' in request.args:
        eligible = parse_bool(request.args.get('eligible'))
        if eligible is None:
            raise ValidationError('Invalid eligible filter', {'eligible': 'Must be true or false'})
    rows = onboarding.list_workers(category=request.args.get('category') or None, eligible=eligible)
    return jsonify([onboarding.worker_to_dict(user, details) for user, details in rows]), 200


@users_bp.route('/workers/<int:worker_id>', methods=['GET'])
def get_worker(worker_id):
    details = onboarding.get_worker_details(worker_id)
    return jsonify(onboarding.worker_to_dict(details.user, details)), 200


@users_bp.route('/workers/<int:worker_id>/onboarding', methods=['GET'])
def worker_onboarding(worker_id):
    return jsonify(onboarding.onboarding_status(worker_id)), 200


@users_bp.route('/workers/<int:worker_id>', methods=['PATCH'])
@require_admin
def update_worker(worker_id, user_id):
    """
    Edit a worker profile; ``isVerified`` records KYC verification
    PATCH /api/workers/:userId
    Body: {"isVerified": true}
    """
    details = onboarding.update_worker_details(worker_id, json_body())
    return jsonify(details.to_dict(include_private=True)), 200
