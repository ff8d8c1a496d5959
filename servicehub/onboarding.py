"""
Worker onboarding gate.

Two independent admin-controlled flags decide whether a worker may take
part in the marketplace:

- ``User.is_active``: account approval (also required to log in)
- ``WorkerDetails.is_verified``: KYC document verification

``is_eligible_to_bid`` is the single predicate the bidding engine and the
assignable-workers listing consult.
"""
import logging

from sqlalchemy.exc import IntegrityError

from servicehub.errors import (
    ConflictError, IneligibleWorkerError, NotFoundError, ValidationError,
)
from servicehub.extensions import atomic, db
from servicehub.models import (
    CustomerDetails, User, WorkerDetails, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_WORKER,
)
from servicehub.models.worker import DOCUMENT_FIELDS
from servicehub.notifications import notify
from servicehub.utils import (
    check_strings, normalize_phone, parse_bool, raise_if_errors, require_fields,
    require_strings, validate_email, validate_pincode,
)

logger = logging.getLogger(__name__)

# camelCase payload key -> model attribute
USER_FIELDS = {
    'fullName': 'full_name',
    'email': 'email',
    'profilePhoto': 'profile_photo',
    'gender': 'gender',
    'dateOfBirth': 'date_of_birth',
}

ADDRESS_FIELDS = {
    'house': 'house',
    'street': 'street',
    'city': 'city',
    'pincode': 'pincode',
}

WORKER_FIELDS = {
    'category': 'category',
    'subService': 'sub_service',
    'experience': 'experience',
    'availability': 'availability',
    'idProof': 'id_proof',
    'policeVerification': 'police_verification',
    'skillCertificate': 'skill_certificate',
    'bankHolderName': 'bank_holder_name',
    'accountNumber': 'account_number',
    'ifscCode': 'ifsc_code',
    'upiId': 'upi_id',
    **ADDRESS_FIELDS,
}

# free-text keys; experience and pincode are parsed separately
USER_TEXT_FIELDS = tuple(USER_FIELDS)
WORKER_TEXT_FIELDS = tuple(k for k in WORKER_FIELDS if k not in ('experience', 'pincode'))


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------
def _validate_identity(data, errors):
    errors.update(require_fields(data, ('phone',)))
    errors.update(require_strings(data, ('fullName',)))
    check_strings(data, USER_TEXT_FIELDS + ('house', 'street', 'city'), errors)
    phone = None
    if data.get('phone'):
        phone = normalize_phone(data['phone'])
        if phone is None:
            errors['phone'] = 'Invalid phone number'
    if data.get('email') and not validate_email(data['email']):
        errors['email'] = 'Invalid email address'
    if data.get('pincode') and not validate_pincode(data['pincode']):
        errors['pincode'] = 'Invalid pincode'
    return phone


def _parse_experience(data, errors):
    experience = data.get('experience')
    if experience in (None, ''):
        return None
    try:
        years = int(experience)
    except (TypeError, ValueError):
        years = -1
    if years < 0:
        errors['experience'] = 'Must be a non-negative integer'
        return None
    return years


def _ensure_phone_free(phone):
    if User.query.filter_by(phone=phone).first() is not None:
        raise ConflictError('An account with this phone number already exists',
                            {'phone': 'Already registered'})


def _new_user(data, phone, role):
    user = User(phone=phone, role=role, is_active=False)
    user.update_from(data, USER_FIELDS)
    return user


def register_customer(data):
    """
    Create an inactive CUSTOMER account, plus an address profile when one
    is supplied.
    """
    errors = {}
    phone = _validate_identity(data, errors)
    raise_if_errors(errors)
    _ensure_phone_free(phone)

    try:
        with atomic():
            user = _new_user(data, phone, ROLE_CUSTOMER)
            db.session.add(user)
            if any(data.get(key) for key in ADDRESS_FIELDS):
                details = CustomerDetails(user=user)
                details.update_from(data, ADDRESS_FIELDS)
                db.session.add(details)
    except IntegrityError:
        raise ConflictError('An account with this phone number already exists',
                            {'phone': 'Already registered'})

    logger.info("Registered customer %s (awaiting approval)", user.id)
    return user


def register_worker(data):
    """
    Create an inactive WORKER account with an unverified KYC profile.
    Both flags must be flipped by an admin before the worker can bid.
    """
    errors = {}
    phone = _validate_identity(data, errors)
    errors.update(require_strings(data, ('category',)))
    check_strings(data, WORKER_TEXT_FIELDS, errors)
    experience = _parse_experience(data, errors)
    raise_if_errors(errors)
    _ensure_phone_free(phone)

    try:
        with atomic():
            user = _new_user(data, phone, ROLE_WORKER)
            db.session.add(user)
            details = WorkerDetails(user=user, is_verified=False, rating=0.0, total_earnings=0.0)
            details.update_from(data, WORKER_FIELDS)
            details.experience = experience
            db.session.add(details)
    except IntegrityError:
        raise ConflictError('An account with this phone number already exists',
                            {'phone': 'Already registered'})

    logger.info("Registered worker %s (awaiting approval and verification)", user.id)
    return user


def create_admin(phone, full_name=None):
    """Create an active admin, or promote and activate an existing account."""
    normalized = normalize_phone(phone)
    if normalized is None:
        raise ValidationError('Invalid phone number', {'phone': 'Invalid phone number'})
    if full_name is not None and not isinstance(full_name, str):
        raise ValidationError('Invalid full name', {'fullName': 'Must be a string'})

    with atomic():
        user = User.query.filter_by(phone=normalized).first()
        created = user is None
        if created:
            user = User(phone=normalized, full_name=full_name or 'Admin')
            db.session.add(user)
        user.role = ROLE_ADMIN
        user.is_active = True

    logger.warning("Admin account %s %s", user.id, "created" if created else "promoted")
    return user, created


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------
def eligibility_problems(user):
    """Reasons a user may not bid; empty list means eligible."""
    problems = []
    if not user.is_worker():
        problems.append('not a worker account')
        return problems
    if not user.is_active:
        problems.append('account not approved')
    details = user.worker_details
    if details is None:
        problems.append('worker profile missing')
    elif not details.is_verified:
        problems.append('documents not verified')
    return problems


def is_eligible_to_bid(worker_id):
    user = db.session.get(User, worker_id)
    return user is not None and not eligibility_problems(user)


def require_eligible_worker(worker_id):
    """Load the worker or raise NotFoundError / IneligibleWorkerError."""
    user = db.session.get(User, worker_id)
    if user is None:
        raise NotFoundError('Worker not found')
    problems = eligibility_problems(user)
    if problems:
        logger.warning("Worker %s refused by eligibility gate: %s", worker_id, ", ".join(problems))
        raise IneligibleWorkerError(
            'Worker is not eligible to bid: {}'.format(', '.join(problems)),
            {'workerId': problems},
        )
    return user


def list_assignable_workers(category=None):
    """Workers that pass the eligibility gate, best rated first."""
    query = (
        db.session.query(User, WorkerDetails)
        .join(WorkerDetails, WorkerDetails.user_id == User.id)
        .filter(
            User.role == ROLE_WORKER,
            User.is_active.is_(True),
            WorkerDetails.is_verified.is_(True),
        )
    )
    if category:
        query = query.filter(WorkerDetails.category == category)
    return query.order_by(WorkerDetails.rating.desc(), User.id.asc()).all()


def list_workers(category=None, eligible=None):
    if eligible:
        return list_assignable_workers(category)
    query = (
        db.session.query(User, WorkerDetails)
        .join(WorkerDetails, WorkerDetails.user_id == User.id)
        .filter(User.role == ROLE_WORKER)
    )
    if category:
        query = query.filter(WorkerDetails.category == category)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def worker_to_dict(user, details, include_private=False):
    data = details.to_dict(include_private=include_private)
    data['user'] = user.to_dict()
    data['isEligible'] = not eligibility_problems(user)
    return data


# ---------------------------------------------------------------------------
# Admin gates
# ---------------------------------------------------------------------------
def _coerce_flag(value, field):
    flag = parse_bool(value)
    if flag is None:
        raise ValidationError(f'{field} must be a boolean', {field: 'Must be true or false'})
    return flag


def _apply_approval(user, approved):
    if user.is_active == approved:
        return False
    user.is_active = approved
    if approved:
        notify(user.id, 'account', 'Account Approved',
               'Your account has been approved by an administrator.',
               {'isActive': True})
    else:
        notify(user.id, 'account', 'Account Deactivated',
               'Your account has been deactivated. Please contact support.',
               {'isActive': False})
    return True


def _apply_verification(details, verified):
    if details.is_verified == verified:
        return False
    details.is_verified = verified
    if verified:
        notify(details.user_id, 'kyc', 'Documents Verified',
               'Your documents have been verified.', {'isVerified': True})
    else:
        notify(details.user_id, 'kyc', 'Verification Revoked',
               'Your document verification has been revoked.', {'isVerified': False})
    return True


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def get_worker_details(worker_id):
    details = WorkerDetails.query.filter_by(user_id=worker_id).first()
    if details is None:
        raise NotFoundError('Worker not found')
    return details


def set_approval(user_id, approved):
    """Flip ``User.is_active``. Idempotent."""
    approved = _coerce_flag(approved, 'isActive')
    user = _get_user(user_id)
    with atomic():
        changed = _apply_approval(user, approved)
    if changed:
        logger.info("User %s approval set to %s", user_id, approved)
    return user


def set_verification(worker_id, verified):
    """Flip ``WorkerDetails.is_verified``. Idempotent, independent of approval."""
    verified = _coerce_flag(verified, 'isVerified')
    details = get_worker_details(worker_id)
    with atomic():
        changed = _apply_verification(details, verified)
    if changed:
        logger.info("Worker %s verification set to %s", worker_id, verified)
    return details


def update_user(user_id, data):
    """Admin edit of profile fields; ``isActive`` goes through the approval gate."""
    user = _get_user(user_id)
    errors = {}
    if 'fullName' in data:
        errors.update(require_strings(data, ('fullName',)))
    check_strings(data, USER_TEXT_FIELDS, errors)
    if data.get('email') and not validate_email(data['email']):
        errors['email'] = 'Invalid email address'
    approved = None
    if 'isActive' in data:
        approved = parse_bool(data['isActive'])
        if approved is None:
            errors['isActive'] = 'Must be true or false'
    raise_if_errors(errors)

    with atomic():
        user.update_from(data, USER_FIELDS)
        if approved is not None and _apply_approval(user, approved):
            logger.info("User %s approval set to %s", user_id, approved)
    return user


def update_worker_details(worker_id, data):
    """Admin edit of the worker profile; ``isVerified`` goes through the KYC gate."""
    details = get_worker_details(worker_id)
    errors = {}
    if 'category' in data:
        errors.update(require_strings(data, ('category',)))
    check_strings(data, WORKER_TEXT_FIELDS, errors)
    if data.get('pincode') and not validate_pincode(data['pincode']):
        errors['pincode'] = 'Invalid pincode'
    experience = _parse_experience(data, errors)
    verified = None
    if 'isVerified' in data:
        verified = parse_bool(data['isVerified'])
        if verified is None:
            errors['isVerified'] = 'Must be true or false'
    raise_if_errors(errors)

    with atomic():
        details.update_from(data, WORKER_FIELDS)
        if 'experience' in data:
            details.experience = experience
        if verified is not None and _apply_verification(details, verified):
            logger.info("Worker %s verification set to %s", worker_id, verified)
    return details


def onboarding_status(worker_id):
    """Checklist view of where a worker stands in onboarding."""
    details = get_worker_details(worker_id)
    user = details.user
    checklist = {
        'idProofUploaded': bool(details.id_proof),
        'policeVerificationUploaded': bool(details.police_verification),
        'skillCertificateUploaded': bool(details.skill_certificate),
        'bankDetailsProvided': bool(details.account_number and details.ifsc_code) or bool(details.upi_id),
        'accountApproved': bool(user.is_active),
        'documentsVerified': bool(details.is_verified),
    }
    problems = eligibility_problems(user)
    return {
        'workerId': user.id,
        'checklist': checklist,
        'documentsComplete': details.documents_complete,
        'missingDocuments': [
            key for key, attr in WORKER_FIELDS.items()
            if attr in DOCUMENT_FIELDS and not getattr(details, attr)
        ],
        'isEligible': not problems,
        'blockers': problems,
    }
