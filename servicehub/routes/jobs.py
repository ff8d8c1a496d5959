from flask import Blueprint, jsonify, request

from servicehub import bidding
from servicehub.routes import json_body, optional_id_arg

jobs_bp = Blueprint('jobs', __name__)


@jobs_bp.route('', methods=['POST'])
def create_job():
    """
    Post a new job
    POST /api/jobs
    Body: {
        "customerId": 1,
        "title": "Fix kitchen sink",
        "description": "Leaking under the basin",
        "category": "HOME_VISIT",
        "serviceType": "plumbing",
        "budget": 500,
        "address": {"city": "Pune", "pincode": "411001"}
    }
    """
    data = json_body()
    job = bidding.post_job(data.get('customerId'), data)
    return jsonify(job.to_dict()), 201


@jobs_bp.route('', methods=['GET'])
def list_jobs():
    """
    List jobs, newest first
    GET /api/jobs?customerId=1&status=open&category=HOME_VISIT&serviceType=plumbing&workerId=2
    """
    jobs = bidding.list_jobs(
        customer_id=optional_id_arg('customerId'),
        status=request.args.get('status') or None,
        category=request.args.get('category') or None,
        service_type=request.args.get('serviceType') or None,
        worker_id=optional_id_arg('workerId'),
    )
    return jsonify([job.to_dict() for job in jobs]), 200


@jobs_bp.route('/<int:job_id>', methods=['GET'])
def get_job(job_id):
    return jsonify(bidding.get_job(job_id).to_dict()), 200


@jobs_bp.route('/<int:job_id>', methods=['PATCH'])
def update_job_status(job_id):
    """
    Update job status
    PATCH /api/jobs/:id
    Body: {"status": "cancelled"}

    Allowed transitions:
    - open -> in_progress, cancelled
    - in_progress -> cancelled
    - assigned -> completed, cancelled

    ``assigned`` is only reached through select-bid.
    """
    data = json_body()
    job = bidding.update_job_status(job_id, data.get('status'))
    return jsonify(job.to_dict()), 200


@jobs_bp.route('/<int:job_id>', methods=['DELETE'])
def delete_job(job_id):
    bidding.delete_job(job_id)
    return jsonify({'message': 'Job deleted successfully'}), 200


@jobs_bp.route('/<int:job_id>/bids', methods=['GET'])
def list_job_bids(job_id):
    """Bids on a job, cheapest first"""
    bids = bidding.list_bids_for_job(job_id)
    return jsonify([bid.to_dict() for bid in bids]), 200


@jobs_bp.route('/<int:job_id>/select-bid/<int:bid_id>', methods=['POST'])
def select_bid(job_id, bid_id):
    """
    Award a job to one bid
    POST /api/jobs/:jobId/select-bid/:bidId

    The job becomes assigned, the bid accepted, and every other pending
    bid on the job rejected, all in one transaction.
    """
    job, bid = bidding.award_bid(job_id, bid_id)
    return jsonify({'job': job.to_dict(), 'selectedBid': bid.to_dict()}), 200
