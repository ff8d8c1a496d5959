"""
Authentication routes: OTP login, self-registration and admin bootstrap.

Login is the only place the ``isActive`` approval flag is enforced for
customers and workers: an unapproved account can verify its phone but
never receives a token.
"""
import datetime
import hmac
import logging
from functools import wraps

import jwt
from flask import Blueprint, current_app, jsonify, request

from servicehub import onboarding
from servicehub import sms_service
from servicehub.errors import ValidationError
from servicehub.extensions import atomic, db, limiter
from servicehub.models import OtpSession, User
from servicehub.models.otp_session import PROVIDER_MOCK, PROVIDER_TWOFACTOR
from servicehub.routes import json_body
from servicehub.utils import normalize_phone, require_fields, raise_if_errors

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


# MARK: - Token helpers

def generate_token(user):
    """Generate JWT token for user"""
    payload = {
        'user_id': user.id,
        'role': user.role,
        'exp': datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(days=current_app.config['JWT_EXPIRES_DAYS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'],
                      algorithm=current_app.config['JWT_ALGORITHM'])


def verify_token(token):
    """Verify JWT token and return user_id"""
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'],
                             algorithms=[current_app.config['JWT_ALGORITHM']])
        return payload.get('user_id')
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def require_auth(f):
    """Decorator to require an active, authenticated user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.headers.get('Authorization', '').replace('Bearer ', '', 1)
        user_id = verify_token(token) if token else None
        if not user_id:
            return jsonify({'error': 'Unauthorized'}), 401
        user = db.session.get(User, user_id)
        if not user or not user.is_active:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(user_id=user_id, *args, **kwargs)
    return decorated_function


def require_admin(f):
    """Wrap require_auth and additionally check that the user has admin role."""
    @wraps(f)
    @require_auth
    def wrapper(user_id, *args, **kwargs):
        user = db.session.get(User, user_id)
        if not user or not user.is_admin():
            return jsonify({'error': 'Admin access required'}), 403
        return f(user_id=user_id, *args, **kwargs)
    return wrapper


def _phone_from(data):
    raise_if_errors(require_fields(data, ('phone',)))
    phone = normalize_phone(data['phone'])
    if phone is None:
        raise ValidationError('Invalid phone number', {'phone': 'Invalid phone number'})
    return phone


# MARK: - OTP login

@auth_bp.route('/auth/send-otp', methods=['POST'])
@limiter.limit("5 per minute")
def send_otp():
    """Start an OTP login for a phone number"""
    data = json_body()
    phone = _phone_from(data)

    ok, result = sms_service.send_otp(phone)
    if not ok:
        return jsonify({'error': result}), 400

    mock = sms_service.is_mock_mode()
    with atomic():
        session = OtpSession.query.filter_by(phone=phone).first()
        if session is None:
            session = OtpSession(phone=phone)
            db.session.add(session)
        session.session_id = result
        session.provider = PROVIDER_MOCK if mock else PROVIDER_TWOFACTOR
        session.expires_at = OtpSession.expiry_from_now(current_app.config['OTP_TTL_SECONDS'])
        session.attempts = 0

    return jsonify({
        'success': True,
        'message': 'OTP sent (mock mode)' if mock else 'OTP sent successfully',
        'mock': mock,
    }), 200


@auth_bp.route('/auth/verify-otp', methods=['POST'])
def verify_otp():
    """Verify an OTP; issues a token for active accounts only"""
    data = json_body()
    raise_if_errors(require_fields(data, ('phone', 'otp')))
    phone = _phone_from(data)
    otp = str(data['otp']).strip()

    session = OtpSession.query.filter_by(phone=phone).first()
    if session is None or session.is_expired():
        if session is not None:
            with atomic():
                db.session.delete(session)
        return jsonify({'error': 'OTP session expired. Please request new OTP.'}), 400

    if session.attempts >= current_app.config['OTP_MAX_ATTEMPTS']:
        with atomic():
            db.session.delete(session)
        return jsonify({'error': 'Too many attempts. Please request new OTP.'}), 400

    ok, error = sms_service.verify_otp(session.session_id, otp)
    if not ok:
        with atomic():
            session.attempts += 1
        return jsonify({'error': error}), 400

    with atomic():
        db.session.delete(session)

    user = User.query.filter_by(phone=phone).first()
    if user is None:
        return jsonify({
            'success': True,
            'verified': True,
            'exists': False,
            'message': 'User not found. Please register.',
        }), 200

    if not user.is_active:
        logger.warning("Login refused for inactive user %s", user.id)
        return jsonify({
            'error': 'Account is awaiting admin approval',
            'verified': True,
            'exists': True,
        }), 403

    return jsonify({
        'success': True,
        'verified': True,
        'exists': True,
        'user': user.to_dict(),
        'token': generate_token(user),
    }), 200


@auth_bp.route('/auth/me', methods=['GET'])
@require_auth
def me(user_id):
    user = db.session.get(User, user_id)
    data = user.to_dict()
    if user.worker_details is not None:
        data['workerDetails'] = user.worker_details.to_dict()
    return jsonify({'success': True, 'user': data}), 200


# MARK: - Registration

@auth_bp.route('/auth/register/customer', methods=['POST'])
def register_customer():
    user = onboarding.register_customer(json_body())
    return jsonify({
        'user': user.to_dict(),
        'message': 'Customer registered successfully. Awaiting admin approval.',
    }), 201


@auth_bp.route('/auth/register/worker', methods=['POST'])
def register_worker():
    user = onboarding.register_worker(json_body())
    return jsonify({
        'user': user.to_dict(),
        'workerDetails': user.worker_details.to_dict(),
        'message': 'Worker registered successfully. Awaiting admin approval.',
    }), 201


# MARK: - Admin bootstrap

@auth_bp.route('/setup/admin', methods=['POST'])
@limiter.limit("5 per hour")
def setup_admin():
    """Create the first admin; requires ADMIN_SEED_SECRET to be configured"""
    seed_secret = current_app.config.get('ADMIN_SEED_SECRET')
    if not seed_secret:
        return jsonify({'error': 'Admin setup is disabled'}), 403

    data = json_body()
    provided = str(data.get('secretKey') or '')
    if not hmac.compare_digest(provided.encode(), seed_secret.encode()):
        return jsonify({'error': 'Invalid secret key'}), 403

    raise_if_errors(require_fields(data, ('phone',)))
    user, created = onboarding.create_admin(data['phone'], data.get('fullName'))
    return jsonify({
        'user': user.to_dict(),
        'message': 'Admin created successfully' if created else 'User upgraded to admin',
    }), 201 if created else 200
