"""
Job-bid award engine.

Lifecycle of a customer-posted job from ``open`` through bid collection to
a single awarded worker. Every multi-row change runs in one transaction and
guards its writes with conditional UPDATEs, so two requests racing on the
same job can never both succeed:

- submitting a bid bumps ``total_bids`` only ``WHERE status = 'open'``
- awarding flips the job only ``WHERE status IN ('open', 'in_progress')``
  and the bid only ``WHERE status = 'pending'``

A guard that matches no row means another request got there first; the
transaction is rolled back and ``ConflictError`` raised.
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from servicehub.errors import (
    ConflictError, InvalidStateError, NotFoundError, ValidationError,
)
from servicehub.extensions import atomic, db
from servicehub.models import Bid, Job, User, WorkerDetails
from servicehub.models.base import utcnow
from servicehub.models.bid import BID_ACCEPTED, BID_PENDING, BID_REJECTED, BID_WITHDRAWN
from servicehub.models.job import (
    AWARDABLE_STATUSES, BUDGET_TYPES, CATEGORY_HOME_VISIT, JOB_ASSIGNED, JOB_CANCELLED,
    JOB_CATEGORIES, JOB_COMPLETED, JOB_IN_PROGRESS, JOB_OPEN, JOB_STATUSES, URGENCY_LEVELS,
)
from servicehub.notifications import notify
from servicehub.onboarding import require_eligible_worker
from servicehub.utils import (
    check_choice, generate_reference_number, parse_id, parse_iso_date,
    parse_positive_amount, raise_if_errors, check_strings, require_strings,
)

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 10


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def get_job(job_id):
    job = db.session.get(Job, job_id)
    if job is None:
        raise NotFoundError('Job not found')
    return job


def get_bid(bid_id):
    bid = db.session.get(Bid, bid_id)
    if bid is None:
        raise NotFoundError('Bid not found')
    return bid


def list_jobs(customer_id=None, status=None, category=None, service_type=None, worker_id=None):
    """Jobs newest first, optionally filtered. ``worker_id`` matches the awarded worker."""
    if status is not None and status not in JOB_STATUSES:
        raise ValidationError('Invalid status filter',
                              {'status': f'Must be one of: {", ".join(JOB_STATUSES)}'})
    query = Job.query
    if customer_id is not None:
        query = query.filter(Job.customer_id == customer_id)
    if status:
        query = query.filter(Job.status == status)
    if category:
        query = query.filter(Job.category == category)
    if service_type:
        query = query.filter(Job.service_type == service_type)
    if worker_id is not None:
        query = query.filter(Job.selected_worker_id == worker_id)
    return query.order_by(Job.created_at.desc(), Job.id.desc()).all()


def list_bids_for_job(job_id):
    get_job(job_id)
    return (
        Bid.query.filter_by(job_id=job_id)
        .order_by(Bid.amount.asc(), Bid.created_at.asc(), Bid.id.asc())
        .all()
    )


def list_bids_for_worker(worker_id):
    worker_id = parse_id(worker_id, 'workerId')
    return (
        Bid.query.filter_by(worker_id=worker_id)
        .order_by(Bid.created_at.desc(), Bid.id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Posting
# ---------------------------------------------------------------------------
def _unique_reference_number():
    for _ in range(MAX_REFERENCE_ATTEMPTS):
        candidate = generate_reference_number()
        if not Job.query.filter_by(reference_number=candidate).first():
            return candidate
    raise ConflictError('Could not allocate a job reference number, please retry')


def _validate_job_attributes(data):
    errors = require_strings(data, ('title', 'description', 'serviceType'))
    check_strings(data, ('preferredTime',), errors)
    category = data.get('category') or CATEGORY_HOME_VISIT
    if category not in JOB_CATEGORIES:
        errors['category'] = f'Must be one of: {", ".join(JOB_CATEGORIES)}'
    check_choice(data, 'budgetType', BUDGET_TYPES, errors)
    check_choice(data, 'urgency', URGENCY_LEVELS, errors)
    budget = parse_positive_amount(data.get('budget'), 'budget', errors, required=False)
    preferred_date = parse_iso_date(data.get('preferredDate'), 'preferredDate', errors)

    address = data.get('address')
    if address is not None and not isinstance(address, dict):
        errors['address'] = 'Must be an object'
        address = None
    if category == CATEGORY_HOME_VISIT and not (address and address.get('city')):
        errors['address'] = 'City is required for home visits'

    raise_if_errors(errors)
    return {
        'category': category,
        'budget': budget,
        'preferred_date': preferred_date,
        'address': address if category == CATEGORY_HOME_VISIT else None,
    }


def post_job(customer_id, data):
    """Create an ``open`` job for an existing, active customer."""
    customer_id = parse_id(customer_id, 'customerId')
    parsed = _validate_job_attributes(data)

    customer = db.session.get(User, customer_id)
    if customer is None:
        raise NotFoundError('Customer not found')
    if not customer.is_customer():
        raise InvalidStateError('Only customers can post jobs', {'customerId': 'Not a customer account'})
    if not customer.is_active:
        raise InvalidStateError('Customer account is not active', {'customerId': 'Account not approved'})

    with atomic():
        job = Job(
            reference_number=_unique_reference_number(),
            customer_id=customer.id,
            title=data['title'].strip(),
            description=data['description'].strip(),
            category=parsed['category'],
            service_type=data['serviceType'],
            budget=parsed['budget'],
            budget_type=data.get('budgetType') or 'fixed',
            address=parsed['address'],
            preferred_date=parsed['preferred_date'],
            preferred_time=data.get('preferredTime') or None,
            urgency=data.get('urgency') or 'normal',
            status=JOB_OPEN,
            total_bids=0,
        )
        db.session.add(job)

    logger.info("Job %s (%s) posted by customer %s", job.id, job.reference_number, customer.id)
    return job


# ---------------------------------------------------------------------------
# Bidding
# ---------------------------------------------------------------------------
def submit_bid(job_id, worker_id, data):
    """
    Place a ``pending`` bid on an open job.

    The worker must pass the eligibility gate and may hold only one
    non-withdrawn bid per job. ``total_bids`` is incremented atomically in
    the same transaction as the insert.
    """
    job_id = parse_id(job_id, 'jobId')
    worker_id = parse_id(worker_id, 'workerId')

    errors = require_strings(data, ('coverLetter',))
    check_strings(data, ('proposedTime', 'estimatedDuration'), errors)
    amount = parse_positive_amount(data.get('amount'), 'amount', errors)
    proposed_date = parse_iso_date(data.get('proposedDate'), 'proposedDate', errors)
    raise_if_errors(errors)

    job = get_job(job_id)
    if not job.is_open_for_bids:
        raise InvalidStateError(f'Job is not accepting bids (status: {job.status})')

    worker = require_eligible_worker(worker_id)
    details = worker.worker_details

    existing = _active_bid(job.id, worker.id)
    if existing is not None:
        raise ConflictError('Worker already has a bid on this job', {'bidId': existing.id})

    try:
        bid = _insert_bid(job, worker, details, amount, proposed_date, data)
    except IntegrityError:
        # another request from this worker inserted first
        logger.warning("Duplicate bid by worker %s on job %s rejected by the database", worker.id, job.id)
        raise ConflictError('Worker already has a bid on this job')

    db.session.refresh(job)
    logger.info("Bid %s placed on job %s by worker %s (amount %.2f)", bid.id, job.id, worker.id, amount)
    return bid


def _active_bid(job_id, worker_id):
    return (
        Bid.query.filter(Bid.job_id == job_id, Bid.worker_id == worker_id, Bid.status != BID_WITHDRAWN)
        .first()
    )


def _insert_bid(job, worker, details, amount, proposed_date, data):
    with atomic():
        bid = Bid(
            job_id=job.id,
            worker_id=worker.id,
            amount=amount,
            proposed_date=proposed_date,
            proposed_time=data.get('proposedTime') or None,
            estimated_duration=data.get('estimatedDuration') or None,
            cover_letter=data['coverLetter'].strip(),
            worker_name=worker.full_name,
            worker_rating=details.rating,
            worker_category=details.category,
            status=BID_PENDING,
            is_selected=False,
        )
        db.session.add(bid)
        result = db.session.execute(
            update(Job)
            .where(Job.id == job.id, Job.status == JOB_OPEN)
            .values(total_bids=Job.total_bids + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError('Job stopped accepting bids')
    return bid


def withdraw_bid(bid_id, worker_id):
    """Withdraw a worker's own pending bid."""
    worker_id = parse_id(worker_id, 'workerId')
    bid = get_bid(bid_id)
    if bid.worker_id != worker_id:
        raise ValidationError('Bid does not belong to this worker', {'workerId': 'Not the bid owner'})

    with atomic():
        result = db.session.execute(
            update(Bid)
            .where(Bid.id == bid.id, Bid.status == BID_PENDING)
            .values(status=BID_WITHDRAWN, withdrawn_at=utcnow(), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError(f'Only pending bids can be withdrawn (status: {bid.status})')

    db.session.refresh(bid)
    logger.info("Bid %s withdrawn by worker %s", bid.id, worker_id)
    return bid


# ---------------------------------------------------------------------------
# Award
# ---------------------------------------------------------------------------
def check_awardable(job, bid):
    """Pre-flight checks before the guarded writes in ``award_bid``."""
    if bid.job_id != job.id:
        raise ValidationError('Bid does not belong to this job', {'bidId': 'Belongs to another job'})
    if job.status not in AWARDABLE_STATUSES:
        raise InvalidStateError(f'Job already {job.status}')
    if bid.status != BID_PENDING:
        raise InvalidStateError(f'Bid is not pending (status: {bid.status})')
    require_eligible_worker(bid.worker_id)


def award_bid(job_id, bid_id):
    """
    Select one bid for a job.

    In a single transaction: the job becomes ``assigned`` with the bid and
    worker recorded, the bid becomes ``accepted``, and every other pending
    bid on the job becomes ``rejected``. Nothing is visible until commit.

    Returns:
        tuple: (job, selected_bid)
    """
    job = get_job(job_id)
    bid = get_bid(bid_id)
    check_awardable(job, bid)

    now = utcnow()
    with atomic():
        job_result = db.session.execute(
            update(Job)
            .where(Job.id == job.id, Job.status.in_(AWARDABLE_STATUSES))
            .values(
                status=JOB_ASSIGNED,
                selected_bid_id=bid.id,
                selected_worker_id=bid.worker_id,
                assigned_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if job_result.rowcount != 1:
            raise ConflictError('Job was assigned by another request')

        bid_result = db.session.execute(
            update(Bid)
            .where(Bid.id == bid.id, Bid.job_id == job.id, Bid.status == BID_PENDING)
            .values(status=BID_ACCEPTED, is_selected=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if bid_result.rowcount != 1:
            raise ConflictError('Bid changed while it was being awarded')

        rejected_workers = [
            worker_id for (worker_id,) in db.session.query(Bid.worker_id).filter(
                Bid.job_id == job.id, Bid.id != bid.id, Bid.status == BID_PENDING,
            )
        ]
        db.session.execute(
            update(Bid)
            .where(Bid.job_id == job.id, Bid.id != bid.id, Bid.status == BID_PENDING)
            .values(status=BID_REJECTED, is_selected=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        payload = {'jobId': job.id, 'bidId': bid.id}
        notify(bid.worker_id, 'bid_accepted', 'Bid Accepted',
               f'Your bid on "{job.title}" was selected.', payload)
        for worker_id in rejected_workers:
            notify(worker_id, 'bid_rejected', 'Bid Not Selected',
                   f'Another worker was selected for "{job.title}".', {'jobId': job.id})
        notify(job.customer_id, 'job_assigned', 'Worker Assigned',
               f'{bid.worker_name or "A worker"} will handle "{job.title}".', payload)

    db.session.refresh(job)
    db.session.refresh(bid)
    logger.info("Job %s assigned to worker %s via bid %s (%d sibling bids rejected)",
                job.id, bid.worker_id, bid.id, len(rejected_workers))
    return job, bid


# ---------------------------------------------------------------------------
# Job status
# ---------------------------------------------------------------------------
def _transition(job, target, **values):
    """Guarded status change from the job's current status."""
    if not job.can_transition_to(target):
        raise InvalidStateError(f'Cannot change job from {job.status} to {target}')
    result = db.session.execute(
        update(Job)
        .where(Job.id == job.id, Job.status == job.status)
        .values(status=target, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError('Job was modified by another request')


def start_negotiation(job_id):
    """open -> in_progress. Bidding closes; an award is still possible."""
    job = get_job(job_id)
    with atomic():
        _transition(job, JOB_IN_PROGRESS)
    db.session.refresh(job)
    logger.info("Job %s moved to negotiation", job.id)
    return job


def complete_job(job_id):
    """assigned -> completed, crediting the accepted amount to the worker."""
    job = get_job(job_id)
    with atomic():
        _transition(job, JOB_COMPLETED, completed_at=utcnow())
        bid = db.session.get(Bid, job.selected_bid_id) if job.selected_bid_id else None
        if bid is not None:
            db.session.execute(
                update(WorkerDetails)
                .where(WorkerDetails.user_id == bid.worker_id)
                .values(total_earnings=WorkerDetails.total_earnings + bid.amount)
                .execution_options(synchronize_session=False)
            )
        notify(job.customer_id, 'job_completed', 'Job Completed',
               f'"{job.title}" has been marked as completed.', {'jobId': job.id})
    db.session.refresh(job)
    logger.info("Job %s completed", job.id)
    return job


def cancel_job(job_id):
    """Cancel a non-terminal job; still-pending bids are rejected."""
    job = get_job(job_id)
    with atomic():
        _transition(job, JOB_CANCELLED, cancelled_at=utcnow())
        pending_workers = [
            worker_id for (worker_id,) in db.session.query(Bid.worker_id).filter(
                Bid.job_id == job.id, Bid.status == BID_PENDING,
            )
        ]
        db.session.execute(
            update(Bid)
            .where(Bid.job_id == job.id, Bid.status == BID_PENDING)
            .values(status=BID_REJECTED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        notified = set(pending_workers)
        if job.selected_worker_id:
            notified.add(job.selected_worker_id)
        for worker_id in notified:
            notify(worker_id, 'job_cancelled', 'Job Cancelled',
                   f'"{job.title}" was cancelled by the customer.', {'jobId': job.id})
    db.session.refresh(job)
    logger.info("Job %s cancelled", job.id)
    return job


STATUS_ACTIONS = {
    JOB_IN_PROGRESS: start_negotiation,
    JOB_COMPLETED: complete_job,
    JOB_CANCELLED: cancel_job,
}


def update_job_status(job_id, status):
    """Dispatch a requested status to the matching transition."""
    if status not in JOB_STATUSES:
        raise ValidationError('Invalid status', {'status': f'Must be one of: {", ".join(JOB_STATUSES)}'})
    action = STATUS_ACTIONS.get(status)
    if action is None:
        job = get_job(job_id)
        if status == JOB_ASSIGNED:
            raise InvalidStateError('Jobs are assigned by selecting a bid')
        raise InvalidStateError(f'Cannot change job from {job.status} to {status}')
    return action(job_id)


def delete_job(job_id):
    """Hard delete for cleanup; bids go with it."""
    job = get_job(job_id)
    with atomic():
        Bid.query.filter_by(job_id=job.id).delete(synchronize_session=False)
        db.session.delete(job)
    logger.warning("Job %s deleted", job_id)
