"""
Admin API routes.
Protected by role-based access (admin only).
"""
from flask import Blueprint, jsonify
from sqlalchemy import func

from servicehub.extensions import db
from servicehub.models import Bid, Job, User, WorkerDetails, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_WORKER
from servicehub.models.bid import BID_PENDING
from servicehub.models.job import JOB_STATUSES, JOB_COMPLETED
from servicehub.routes.auth import require_admin

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/stats', methods=['GET'])
@require_admin
def stats(user_id):
    """Aggregate marketplace counts."""
    jobs_by_status = dict(
        db.session.query(Job.status, func.count(Job.id)).group_by(Job.status).all()
    )
    eligible_workers = (
        db.session.query(func.count(User.id))
        .join(WorkerDetails, WorkerDetails.user_id == User.id)
        .filter(User.role == ROLE_WORKER, User.is_active.is_(True), WorkerDetails.is_verified.is_(True))
        .scalar()
    )
    pending_approval = User.query.filter(User.role != ROLE_ADMIN, User.is_active.is_(False)).count()
    revenue = (
        db.session.query(func.coalesce(func.sum(Bid.amount), 0.0))
        .join(Job, Job.selected_bid_id == Bid.id)
        .filter(Job.status == JOB_COMPLETED)
        .scalar()
    )

    return jsonify({
        'totalUsers': User.query.count(),
        'totalCustomers': User.query.filter_by(role=ROLE_CUSTOMER).count(),
        'totalWorkers': User.query.filter_by(role=ROLE_WORKER).count(),
        'eligibleWorkers': eligible_workers,
        'pendingApprovals': pending_approval,
        'totalJobs': sum(jobs_by_status.values()),
        'jobsByStatus': {status: jobs_by_status.get(status, 0) for status in JOB_STATUSES},
        'pendingBids': Bid.query.filter_by(status=BID_PENDING).count(),
        'revenue': round(float(revenue), 2),
    }), 200
